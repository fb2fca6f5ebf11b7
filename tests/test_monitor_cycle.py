"""Tests del ciclo de monitoreo y del scheduler."""

import threading
import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from common.monitor_config import GlobalSettings
from conftest import NOW, make_source, stale_policy
from flex_monitor.alerts import AlertDispatcher
from flex_monitor.core.domain import CycleOutcome, CycleSummary
from flex_monitor.core.errors import AlertDeliveryError, ChannelError, FetchError, SubmissionError
from flex_monitor.core.monitoring import get_monitor_state
from flex_monitor.pipeline import SourceWorkerPool
from flex_monitor.staleness import evaluate_freshness
from flex_monitor.telemetry import InMemoryTelemetrySink, TelemetryBatcher
from jobs.monitor import CycleScheduler, MonitorCycle


def stale_outcome(name: str, behavior: str) -> CycleOutcome:
    freshness = evaluate_freshness(
        NOW - timedelta(minutes=10), timedelta(minutes=5), behavior, now=NOW
    )
    return CycleOutcome(source_name=name, record_count=1, is_stale=True, freshness=freshness)


@pytest.fixture
def sink() -> InMemoryTelemetrySink:
    return InMemoryTelemetrySink()


@pytest.fixture
def batcher(sink) -> TelemetryBatcher:
    return TelemetryBatcher(sink, host="test-host")


@pytest.fixture
def dispatcher() -> MagicMock:
    return MagicMock(spec=AlertDispatcher)


def build_cycle(outcomes, batcher, dispatcher, **settings) -> MonitorCycle:
    pool = MagicMock(spec=SourceWorkerPool)
    pool.run_cycle.return_value = outcomes
    return MonitorCycle(pool, batcher, dispatcher, GlobalSettings(**settings))


# =============================================================================
# CYCLE
# =============================================================================

class TestMonitorCycle:

    def test_summary_and_cycle_measurements(self, batcher, sink, dispatcher):
        sources = [make_source(name="a"), make_source(name="b")]
        outcomes = [
            CycleOutcome(source_name="a", record_count=3),
            CycleOutcome(source_name="b", error=FetchError("https://b.example.com", "HTTP 500")),
        ]
        cycle = build_cycle(outcomes, batcher, dispatcher)

        summary = cycle.run(sources)

        assert summary.total_records == 3
        assert summary.total_errors == 1
        assert summary.total_stale == 0
        names = [m.name for m in sink.measurements]
        assert names == [
            "flex.cycle.duration",
            "flex.cycle.records",
            "flex.cycle.errors",
            "flex.cycle.stale_files",
        ]
        assert sink.measurements[0].attributes["service.name"] == "enhanced-flex-monitor"

    def test_alerts_for_errors_and_alert_behavior_only(self, batcher, dispatcher):
        sources = [
            make_source(name="broken"),
            make_source(name="stale-alert", staleness=stale_policy("alert")),
            make_source(name="stale-continue", staleness=stale_policy("continue")),
        ]
        error = FetchError("https://broken.example.com", "HTTP 500")
        outcomes = [
            CycleOutcome(source_name="broken", error=error),
            stale_outcome("stale-alert", "alert"),
            stale_outcome("stale-continue", "continue"),
        ]
        cycle = build_cycle(outcomes, batcher, dispatcher, enable_alerts=True)

        cycle.run(sources)

        dispatcher.send_error_alert.assert_called_once_with("broken", "processing", error)
        dispatcher.send_staleness_alert.assert_called_once_with(
            "stale-alert", sources[1].url, timedelta(minutes=10), timedelta(minutes=5)
        )

    def test_alerts_disabled(self, batcher, dispatcher):
        outcomes = [CycleOutcome(source_name="a", error=RuntimeError("x"))]
        build_cycle(outcomes, batcher, dispatcher, enable_alerts=False).run([make_source(name="a")])

        dispatcher.send_error_alert.assert_not_called()

    def test_alert_failure_is_logged_not_raised(self, batcher, dispatcher, caplog):
        dispatcher.send_error_alert.side_effect = AlertDeliveryError([ChannelError("hook", "down")])
        outcomes = [CycleOutcome(source_name="a", error=RuntimeError("x"))]

        build_cycle(outcomes, batcher, dispatcher, enable_alerts=True).run([make_source(name="a")])

        assert "Error alert delivery failed" in caplog.text

    def test_flush_failure_is_logged_not_raised(self, dispatcher, caplog):
        failing = MagicMock()
        failing.send_measurements.side_effect = SubmissionError(["metrics: status 500"])
        batcher = TelemetryBatcher(failing, host="h")

        summary = build_cycle([], batcher, dispatcher).run([])

        assert summary.total_records == 0
        assert "Failed to send telemetry batch" in caplog.text

    def test_metrics_disabled_discards_pending(self, batcher, sink, dispatcher):
        batcher.add_record("FlexSample", {"id": 1})

        build_cycle([], batcher, dispatcher, enable_metrics=False).run([])

        assert sink.event_batches == []
        assert batcher.pending_counts() == (0, 0)

    def test_publishes_live_state(self, batcher, dispatcher):
        outcomes = [CycleOutcome(source_name="a", record_count=2)]

        build_cycle(outcomes, batcher, dispatcher).run([make_source(name="a")])

        state = get_monitor_state()
        assert state.ready is True
        assert state.snapshot()["cycle_count"] == 1
        assert state.sources()["a"]["record_count"] == 2


# =============================================================================
# SCHEDULER
# =============================================================================

class BlockingCycle:
    """Cycle stand-in that blocks until released."""

    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()
        self.runs = 0

    def run(self, sources):
        self.runs += 1
        self.started.set()
        self.release.wait(timeout=5)
        return CycleSummary.from_outcomes([], timedelta(0))


def build_scheduler(cycle, batcher, dispatcher, **kwargs) -> CycleScheduler:
    return CycleScheduler(
        cycle,
        [make_source()],
        interval=kwargs.pop("interval", timedelta(milliseconds=20)),
        batcher=batcher,
        dispatcher=dispatcher,
        **kwargs,
    )


class TestCycleScheduler:

    def test_tick_skipped_while_cycle_running(self, batcher, dispatcher):
        cycle = BlockingCycle()
        scheduler = build_scheduler(cycle, batcher, dispatcher)

        assert scheduler.tick() is True
        assert cycle.started.wait(timeout=2)
        assert scheduler.tick() is False
        assert scheduler.skipped_ticks == 1

        cycle.release.set()
        scheduler.shutdown()
        assert scheduler.tick() is True
        cycle.release.set()
        scheduler.shutdown()
        assert cycle.runs == 2

    def test_run_until_stopped(self, batcher, dispatcher):
        cycle = MagicMock()
        cycle.run.return_value = CycleSummary.from_outcomes([], timedelta(0))
        scheduler = build_scheduler(cycle, batcher, dispatcher, enable_alerts=True)
        stop = threading.Event()

        runner = threading.Thread(target=scheduler.run, args=(stop,))
        runner.start()
        time.sleep(0.15)
        stop.set()
        runner.join(timeout=5)

        assert not runner.is_alive()
        assert cycle.run.call_count >= 2
        statuses = [c.args[1] for c in dispatcher.send_health_alert.call_args_list]
        assert statuses == ["started", "stopped"]

    def test_shutdown_waits_at_most_grace(self, batcher, dispatcher, caplog):
        cycle = BlockingCycle()
        scheduler = build_scheduler(cycle, batcher, dispatcher, grace=timedelta(milliseconds=50))
        scheduler.tick()
        cycle.started.wait(timeout=2)

        start = time.monotonic()
        scheduler.shutdown()
        elapsed = time.monotonic() - start
        cycle.release.set()

        assert elapsed < 2
        assert "still running after grace period" in caplog.text

    def test_shutdown_final_flush(self, batcher, sink, dispatcher):
        scheduler = build_scheduler(MagicMock(), batcher, dispatcher)
        batcher.add_record("FlexSample", {"id": 1})

        scheduler.shutdown()

        assert len(sink.events) == 1

    def test_cycle_exception_releases_guard(self, batcher, dispatcher):
        cycle = MagicMock()
        cycle.run.side_effect = RuntimeError("unexpected")
        scheduler = build_scheduler(cycle, batcher, dispatcher)

        scheduler.tick()
        scheduler.shutdown()

        assert scheduler.tick() is True
        scheduler.shutdown()
