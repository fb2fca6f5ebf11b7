"""TelemetryBatcher - in-memory buffer of records and measurements.

Features:
- Two pending lists guarded by a single lock
- flush() swaps the lists out under the lock and submits without holding it,
  so concurrent adds during a flush land in the next batch
- Events and measurements are submitted independently; both are attempted
  and every failure is reported
- No retry: a failed snapshot is dropped and counted
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from ..core.domain import Measurement, Record
from ..core.errors import SubmissionError
from .sink import TelemetrySink

logger = logging.getLogger(__name__)

COLLECTOR_VERSION = "1.0.0"


@dataclass
class BatcherStats:
    """Batcher counters."""
    events_added: int = 0
    metrics_added: int = 0
    events_sent: int = 0
    metrics_sent: int = 0
    events_dropped: int = 0
    metrics_dropped: int = 0
    events_error_count: int = 0
    metrics_error_count: int = 0
    last_event_sent: Optional[float] = None
    last_metric_sent: Optional[float] = None
    start_time: float = field(default_factory=time.time)


class TelemetryBatcher:
    """Accumulates telemetry between cycle boundaries."""

    def __init__(
        self,
        sink: TelemetrySink,
        clock: Optional[Callable[[], float]] = None,
        host: Optional[str] = None,
    ):
        self._sink = sink
        self._clock = clock or time.time
        self._host = host or socket.gethostname()

        self._events: List[Dict[str, Any]] = []
        self._measurements: List[Measurement] = []
        self._lock = threading.Lock()

        self._stats = BatcherStats()
        self._stats_lock = threading.Lock()

    def add_record(self, category: str, record: Record) -> None:
        """Queue one record as an event of type ``category``."""
        event: Dict[str, Any] = {
            "eventType": category,
            "timestamp": int(self._clock()),
        }
        event.update(record)
        event["collector.version"] = COLLECTOR_VERSION
        event["collector.host"] = self._host

        with self._lock:
            self._events.append(event)
            pending = len(self._events)
        with self._stats_lock:
            self._stats.events_added += 1

        logger.debug(
            "[BATCHER] Event added type=%s batch_size=%d attributes=%d",
            category, pending, len(record),
        )

    def add_measurement(self, measurement: Measurement) -> None:
        attributes = {"collector.version": COLLECTOR_VERSION, "collector.host": self._host}
        attributes.update(measurement.attributes)
        measurement = replace(measurement, attributes=attributes)

        with self._lock:
            self._measurements.append(measurement)
        with self._stats_lock:
            self._stats.metrics_added += 1

    def flush(self) -> None:
        """Submit everything pending.

        Raises:
            SubmissionError: listing each failed submission kind, after both
                kinds were attempted
        """
        with self._lock:
            events, self._events = self._events, []
            measurements, self._measurements = self._measurements, []

        failures: List[str] = []

        if events:
            try:
                self._sink.send_events(events)
            except Exception as e:
                failures.append(f"events: {e}")
                with self._stats_lock:
                    self._stats.events_error_count += 1
                    self._stats.events_dropped += len(events)
                logger.error("[BATCHER] Failed to send %d events: %s", len(events), e)
            else:
                with self._stats_lock:
                    self._stats.events_sent += len(events)
                    self._stats.last_event_sent = self._clock()
        else:
            logger.debug("[BATCHER] No events to send")

        if measurements:
            try:
                self._sink.send_measurements(measurements)
            except Exception as e:
                failures.append(f"metrics: {e}")
                with self._stats_lock:
                    self._stats.metrics_error_count += 1
                    self._stats.metrics_dropped += len(measurements)
                logger.error(
                    "[BATCHER] Failed to send %d measurements: %s", len(measurements), e
                )
            else:
                with self._stats_lock:
                    self._stats.metrics_sent += len(measurements)
                    self._stats.last_metric_sent = self._clock()
        else:
            logger.debug("[BATCHER] No measurements to send")

        if failures:
            raise SubmissionError(failures)

    def discard(self) -> tuple[int, int]:
        """Drop everything pending without submitting; returns the dropped counts."""
        with self._lock:
            events, self._events = self._events, []
            measurements, self._measurements = self._measurements, []
        with self._stats_lock:
            self._stats.events_dropped += len(events)
            self._stats.metrics_dropped += len(measurements)
        return len(events), len(measurements)

    def pending_counts(self) -> tuple[int, int]:
        """(pending events, pending measurements)."""
        with self._lock:
            return len(self._events), len(self._measurements)

    def get_stats(self) -> dict:
        events_pending, metrics_pending = self.pending_counts()
        with self._stats_lock:
            s = self._stats
            return {
                "events_added": s.events_added,
                "metrics_added": s.metrics_added,
                "events_sent": s.events_sent,
                "metrics_sent": s.metrics_sent,
                "events_dropped": s.events_dropped,
                "metrics_dropped": s.metrics_dropped,
                "events_error_count": s.events_error_count,
                "metrics_error_count": s.metrics_error_count,
                "last_event_sent": s.last_event_sent,
                "last_metric_sent": s.last_metric_sent,
                "events_pending": events_pending,
                "metrics_pending": metrics_pending,
                "uptime_seconds": round(time.time() - s.start_time, 2),
            }
