"""CycleScheduler - runs a MonitorCycle now and then once per interval.

A tick that arrives while the previous cycle is still running is skipped.
On shutdown the in-flight cycle gets a bounded grace period, then a final
flush is attempted.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import timedelta
from typing import Optional, Sequence

from common.durations import format_duration
from flex_monitor import __version__
from flex_monitor.alerts import AlertDispatcher
from flex_monitor.core.domain import SourceSpec
from flex_monitor.core.errors import AlertDeliveryError, SubmissionError
from flex_monitor.telemetry import TelemetryBatcher

from .cycle import MonitorCycle

logger = logging.getLogger(__name__)

COMPONENT = "enhanced-flex-monitor"


class CycleScheduler:
    def __init__(
        self,
        cycle: MonitorCycle,
        sources: Sequence[SourceSpec],
        interval: timedelta,
        batcher: TelemetryBatcher,
        dispatcher: AlertDispatcher,
        enable_alerts: bool = False,
        enable_metrics: bool = True,
        grace: timedelta = timedelta(seconds=10),
    ):
        self._cycle = cycle
        self._sources = list(sources)
        self._interval = interval
        self._batcher = batcher
        self._dispatcher = dispatcher
        self._enable_alerts = enable_alerts
        self._enable_metrics = enable_metrics
        self._grace = grace

        self._running = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._started_at = time.monotonic()
        self.skipped_ticks = 0

    def tick(self) -> bool:
        """Start a cycle in the background unless one is in flight."""
        if not self._running.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("[SCHEDULER] Previous cycle still running, skipping tick")
            return False

        self._thread = threading.Thread(target=self._run_cycle, daemon=True, name="monitor-cycle")
        self._thread.start()
        return True

    def _run_cycle(self) -> None:
        try:
            self._cycle.run(self._sources)
        except Exception:
            logger.exception("[SCHEDULER] Cycle failed")
        finally:
            self._running.release()

    def run(self, stop_event: threading.Event) -> None:
        """Block until ``stop_event`` is set."""
        logger.info(
            "[SCHEDULER] Started interval=%s sources=%d",
            format_duration(self._interval), len(self._sources),
        )
        self._health("started", {
            "version": __version__,
            "apis": len(self._sources),
            "interval": format_duration(self._interval),
        })

        self.tick()
        while not stop_event.wait(self._interval.total_seconds()):
            self.tick()

        logger.info("[SCHEDULER] Shutdown requested, stopping processing")
        self.shutdown()

    def shutdown(self) -> None:
        thread = self._thread
        if thread is not None and thread.is_alive():
            thread.join(timeout=self._grace.total_seconds())
            if thread.is_alive():
                logger.warning(
                    "[SCHEDULER] Cycle still running after grace period %s",
                    format_duration(self._grace),
                )

        if self._enable_metrics:
            try:
                self._batcher.flush()
            except SubmissionError as e:
                logger.error("[SCHEDULER] Failed to send final telemetry batch: %s", e)

        self._health("stopped", {
            "version": __version__,
            "uptime": format_duration(timedelta(seconds=time.monotonic() - self._started_at)),
        })
        logger.info("[SCHEDULER] Graceful shutdown completed")

    def _health(self, status: str, metadata: dict) -> None:
        if not self._enable_alerts:
            return
        try:
            self._dispatcher.send_health_alert(COMPONENT, status, metadata)
        except AlertDeliveryError as e:
            logger.error("[SCHEDULER] Health alert delivery failed status=%s: %s", status, e)
