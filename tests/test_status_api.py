"""Tests de la API de estado (FastAPI TestClient)."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from flex_monitor.core.domain import CycleOutcome, CycleSummary
from flex_monitor.core.errors import FetchError
from flex_monitor.core.monitoring import MonitorInfo, get_monitor_state
from flex_monitor.main import create_app


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def publish_cycle():
    outcomes = [
        CycleOutcome(source_name="inventory", record_count=5, duration=timedelta(seconds=1)),
        CycleOutcome(source_name="hosts", error=FetchError("https://h.example.com", "HTTP 503")),
    ]
    get_monitor_state().publish(CycleSummary.from_outcomes(outcomes, timedelta(seconds=2)))


class TestStatusApi:

    def test_health_always_ok(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_not_ready_before_first_cycle(self, client):
        assert client.get("/ready").status_code == 503

    def test_ready_after_cycle(self, client):
        publish_cycle()
        assert client.get("/ready").json() == {"status": "ready"}

    def test_status_reflects_last_cycle(self, client):
        get_monitor_state().configure(MonitorInfo(name="flex-test", source_count=2))
        publish_cycle()

        body = client.get("/status").json()

        assert body["name"] == "flex-test"
        assert body["cycle_count"] == 1
        assert body["last_cycle"]["total_records"] == 5
        assert body["last_cycle"]["total_errors"] == 1

    def test_status_before_any_cycle(self, client):
        body = client.get("/status").json()
        assert body["cycle_count"] == 0
        assert body["last_cycle"] is None

    def test_sources_sorted_by_name(self, client):
        publish_cycle()

        sources = client.get("/status/sources").json()["sources"]

        assert [s["source"] for s in sources] == ["hosts", "inventory"]
        assert "503" in sources[0]["error"]

    def test_single_source(self, client):
        publish_cycle()
        assert client.get("/status/sources/inventory").json()["record_count"] == 5
        assert client.get("/status/sources/missing").status_code == 404

    def test_metrics_include_batcher_stats(self, client):
        get_monitor_state().configure(MonitorInfo(), stats_provider=lambda: {"events_sent": 12})
        publish_cycle()

        body = client.get("/metrics").json()

        assert body["telemetry"] == {"events_sent": 12}
        assert body["last_cycle"]["source_count"] == 2
