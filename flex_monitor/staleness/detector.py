"""StalenessDetector - probe + evaluate with failures captured in the result."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from ..core.domain import FreshnessResult, SourceSpec, StalenessBehavior
from ..core.errors import ProbeError
from .evaluator import evaluate_freshness
from .probe import FreshnessProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StalenessCheck:
    """One standalone check request for ``check_many``."""
    url: str
    threshold: timedelta
    behavior: StalenessBehavior


class StalenessDetector:
    """Runs freshness checks for sources.

    Probe failures never raise from ``check``; they come back in
    ``FreshnessResult.error`` so the caller can stop that source's pipeline.
    """

    def __init__(
        self,
        probe: Optional[FreshnessProbe] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._probe = probe or FreshnessProbe()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def check(
        self,
        url: str,
        threshold: timedelta,
        behavior: "StalenessBehavior | str",
    ) -> FreshnessResult:
        behavior = StalenessBehavior.parse(behavior)
        try:
            last_modified = self._probe.probe(url)
        except ProbeError as e:
            logger.error("[STALENESS] Failed to check staleness url=%s: %s", url, e)
            return FreshnessResult.failed(threshold, behavior, e)

        result = evaluate_freshness(last_modified, threshold, behavior, now=self._clock())

        if result.is_stale:
            logger.warning(
                "[STALENESS] Stale url=%s age=%s threshold=%s last_modified=%s behavior=%s",
                url, result.age, threshold, last_modified.isoformat(), behavior.value,
            )
        else:
            logger.debug(
                "[STALENESS] Fresh url=%s age=%s threshold=%s",
                url, result.age, threshold,
            )
        return result

    def check_source(self, source: SourceSpec) -> FreshnessResult:
        policy = source.staleness
        return self.check(source.freshness_target, policy.threshold, policy.behavior)

    def check_many(
        self,
        checks: Sequence[StalenessCheck],
        max_workers: Optional[int] = None,
    ) -> List[FreshnessResult]:
        """Run several checks concurrently; results keep input order."""
        if not checks:
            return []
        workers = max(1, min(max_workers or len(checks), len(checks)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="staleness") as pool:
            return list(
                pool.map(lambda c: self.check(c.url, c.threshold, c.behavior), checks)
            )
