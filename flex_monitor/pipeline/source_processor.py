"""SourceProcessor - the per-source pipeline run inside one worker.

Steps:
1. Staleness check (when the policy is enabled). A probe failure ends the
   source with an error outcome.
2. Skip decision: a stale source with behavior=skip stops here, no fetch.
3. Fetch, transform, hand every record to the batcher, record processing
   measurements.

Errors from steps 1 and 3 are captured in the returned CycleOutcome.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Optional

from ..core.domain import CycleOutcome, FreshnessResult, SourceSpec
from ..core.errors import CollectorError
from ..staleness import StalenessDetector
from ..telemetry import TelemetryBatcher, processing_measurements, staleness_measurements
from ..transform import TransformEngine
from .fetcher import SourceFetcher

logger = logging.getLogger(__name__)


class SourceProcessor:
    def __init__(
        self,
        detector: StalenessDetector,
        fetcher: SourceFetcher,
        engine: TransformEngine,
        batcher: TelemetryBatcher,
    ):
        self._detector = detector
        self._fetcher = fetcher
        self._engine = engine
        self._batcher = batcher

    def process(self, source: SourceSpec) -> CycleOutcome:
        start = time.monotonic()

        def elapsed() -> timedelta:
            return timedelta(seconds=time.monotonic() - start)

        freshness: Optional[FreshnessResult] = None
        if source.staleness.enabled:
            freshness = self._detector.check_source(source)
            if freshness.error is not None:
                return CycleOutcome(
                    source_name=source.name,
                    duration=elapsed(),
                    error=freshness.error,
                    freshness=freshness,
                )

            for m in staleness_measurements(source.name, freshness):
                self._batcher.add_measurement(m)

            if freshness.should_skip:
                logger.info(
                    "[PIPELINE] Skipping stale source=%s age=%s", source.name, freshness.age
                )
                return CycleOutcome(
                    source_name=source.name,
                    duration=elapsed(),
                    is_stale=True,
                    skipped=True,
                    freshness=freshness,
                )

        is_stale = freshness is not None and freshness.is_stale

        try:
            payload = self._fetcher.fetch(source)
            records = self._engine.transform_source(payload, source)
        except CollectorError as e:
            logger.error("[PIPELINE] Source failed source=%s: %s", source.name, e)
            for m in processing_measurements(source.name, elapsed(), 0, success=False):
                self._batcher.add_measurement(m)
            return CycleOutcome(
                source_name=source.name,
                duration=elapsed(),
                is_stale=is_stale,
                error=e,
                freshness=freshness,
            )

        for record in records:
            self._batcher.add_record(source.category, record)

        duration = elapsed()
        for m in processing_measurements(source.name, duration, len(records), success=True):
            self._batcher.add_measurement(m)

        logger.info(
            "[PIPELINE] Processed source=%s records=%d duration=%.3fs stale=%s",
            source.name, len(records), duration.total_seconds(), is_stale,
        )
        return CycleOutcome(
            source_name=source.name,
            record_count=len(records),
            duration=duration,
            is_stale=is_stale,
            freshness=freshness,
        )
