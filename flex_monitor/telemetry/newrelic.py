"""HTTP telemetry sink for the New Relic Events and Metrics APIs.

Events are posted as a JSON array of flat maps with ``X-Insert-Key``.
Measurements are wrapped in a common block and posted with ``Api-Key``:

    [{"common": {"timestamp": ..., "interval.ms": ..., "attributes": {...}},
      "metrics": [{"name", "type", "value", "timestamp", "attributes"}, ...]}]
"""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..core.domain import Measurement, MeasurementKind
from ..core.errors import SubmissionError
from .sink import TelemetrySink

logger = logging.getLogger(__name__)

USER_AGENT = "Enhanced-Flex-Monitor/1.0"
DEFAULT_SUBMIT_TIMEOUT = 30.0
DEFAULT_SERVICE_NAME = "enhanced-flex-monitor"

_ENDPOINTS = {
    "US": (
        "https://insights-collector.newrelic.com/v1/accounts/%s/events",
        "https://metric-api.newrelic.com/metric/v1",
    ),
    "EU": (
        "https://insights-collector.eu01.nr-data.net/v1/accounts/%s/events",
        "https://metric-api.eu.newrelic.com/metric/v1",
    ),
}


def default_endpoints(region: str) -> tuple[str, str]:
    """(events_url_template, metrics_url) for a region; unknown → US."""
    return _ENDPOINTS.get(region.upper(), _ENDPOINTS["US"])


@dataclass(frozen=True)
class NewRelicSettings:
    api_key: str
    account_id: str
    region: str = "US"
    events_url: str = ""
    metrics_url: str = ""

    @property
    def events_endpoint(self) -> str:
        template = self.events_url or default_endpoints(self.region)[0]
        return template % self.account_id if "%s" in template else template

    @property
    def metrics_endpoint(self) -> str:
        return self.metrics_url or default_endpoints(self.region)[1]


class NewRelicTelemetrySink(TelemetrySink):
    """Submits batches over HTTP; non-2xx or transport failure → SubmissionError."""

    def __init__(
        self,
        settings: NewRelicSettings,
        session: Optional[requests.Session] = None,
        interval_ms: int = 30000,
        service_name: str = DEFAULT_SERVICE_NAME,
        timeout: float = DEFAULT_SUBMIT_TIMEOUT,
    ):
        self._settings = settings
        self._session = session or requests.Session()
        self._interval_ms = interval_ms
        self._service_name = service_name
        self._timeout = timeout
        self._host = socket.gethostname()

    def send_events(self, events: Sequence[Dict[str, Any]]) -> None:  # type: ignore[override]
        self._post(
            "events",
            self._settings.events_endpoint,
            list(events),
            {"X-Insert-Key": self._settings.api_key},
            count=len(events),
        )

    def send_measurements(self, measurements: Sequence[Measurement]) -> None:  # type: ignore[override]
        self._post(
            "metrics",
            self._settings.metrics_endpoint,
            self._metrics_payload(measurements),
            {"Api-Key": self._settings.api_key},
            count=len(measurements),
        )

    def health_check(self) -> None:
        """Submit one synthetic gauge to verify credentials and reachability."""
        probe = Measurement(
            name="flex.health.check",
            kind=MeasurementKind.GAUGE,
            value=1.0,
            attributes={"service.name": self._service_name, "check.type": "health"},
        )
        self.send_measurements([probe])
        logger.info("[NEWRELIC] Health check completed successfully")

    def _metrics_payload(self, measurements: Sequence[Measurement]) -> List[Dict[str, Any]]:
        return [
            {
                "common": {
                    "timestamp": int(time.time() * 1000),
                    "interval.ms": self._interval_ms,
                    "attributes": {
                        "service.name": self._service_name,
                        "host": self._host,
                    },
                },
                "metrics": [m.to_payload() for m in measurements],
            }
        ]

    def _post(self, kind: str, url: str, body: Any, auth: Dict[str, str], count: int) -> None:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        headers.update(auth)

        start = time.monotonic()
        try:
            response = self._session.post(url, json=body, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(
                "[NEWRELIC] Failed to send %s count=%d duration=%.3fs: %s",
                kind, count, time.monotonic() - start, e,
            )
            raise SubmissionError([f"{kind}: {e}"]) from e

        if not 200 <= response.status_code < 300:
            raise SubmissionError(
                [f"{kind}: New Relic API returned status {response.status_code}"]
            )

        logger.info(
            "[NEWRELIC] Sent %s count=%d status=%d duration=%.3fs",
            kind, count, response.status_code, time.monotonic() - start,
        )
