"""MonitorCycle - one pass over every configured source.

Runs the worker pool, aggregates the outcomes, raises alerts, records cycle
measurements, flushes telemetry and publishes the summary. Alert and flush
failures are logged; nothing escapes ``run``.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Optional, Sequence

from common.monitor_config import GlobalSettings
from flex_monitor import __version__
from flex_monitor.alerts import AlertDispatcher
from flex_monitor.core.domain import CycleOutcome, CycleSummary, SourceSpec
from flex_monitor.core.errors import AlertDeliveryError, SubmissionError
from flex_monitor.core.monitoring import MonitorState, get_monitor_state
from flex_monitor.pipeline import SourceWorkerPool
from flex_monitor.telemetry import TelemetryBatcher, cycle_measurements

logger = logging.getLogger(__name__)


class MonitorCycle:
    def __init__(
        self,
        pool: SourceWorkerPool,
        batcher: TelemetryBatcher,
        dispatcher: AlertDispatcher,
        settings: GlobalSettings,
        state: Optional[MonitorState] = None,
    ):
        self._pool = pool
        self._batcher = batcher
        self._dispatcher = dispatcher
        self._settings = settings
        self._state = state or get_monitor_state()

    def run(self, sources: Sequence[SourceSpec]) -> CycleSummary:
        start = time.monotonic()
        enabled = sum(1 for s in sources if s.enabled)
        if not enabled:
            logger.warning("[CYCLE] No enabled sources found")
        else:
            logger.info("[CYCLE] Starting processing cycle sources=%d", enabled)

        outcomes = self._pool.run_cycle(sources, self._settings.worker_count)
        by_name = {s.name: s for s in sources}

        summary = CycleSummary.from_outcomes(
            outcomes, timedelta(seconds=time.monotonic() - start)
        )

        if self._settings.enable_alerts:
            for outcome in outcomes:
                self._alert(outcome, by_name.get(outcome.source_name))

        if self._settings.enable_metrics:
            for m in cycle_measurements(summary, self._settings.name, __version__):
                self._batcher.add_measurement(m)
            try:
                self._batcher.flush()
            except SubmissionError as e:
                logger.error("[CYCLE] Failed to send telemetry batch: %s", e)
        else:
            events, measurements = self._batcher.discard()
            logger.debug(
                "[CYCLE] Metrics disabled, discarded events=%d measurements=%d",
                events, measurements,
            )

        self._state.publish(summary)

        logger.info(
            "[CYCLE] Completed duration=%.3fs records=%d errors=%d stale=%d sources=%d",
            summary.duration.total_seconds(), summary.total_records,
            summary.total_errors, summary.total_stale, enabled,
        )
        for outcome in outcomes:
            if outcome.has_error:
                logger.error(
                    "[CYCLE] Processing error source=%s: %s", outcome.source_name, outcome.error
                )
        return summary

    def _alert(self, outcome: CycleOutcome, source: Optional[SourceSpec]) -> None:
        if outcome.has_error:
            try:
                self._dispatcher.send_error_alert(outcome.source_name, "processing", outcome.error)
            except AlertDeliveryError as e:
                logger.error("[CYCLE] Error alert delivery failed source=%s: %s", outcome.source_name, e)

        freshness = outcome.freshness
        if source is None or freshness is None or not freshness.should_alert:
            return
        try:
            self._dispatcher.send_staleness_alert(
                source.name, source.freshness_target, freshness.age, freshness.threshold
            )
        except AlertDeliveryError as e:
            logger.error("[CYCLE] Staleness alert delivery failed source=%s: %s", source.name, e)
