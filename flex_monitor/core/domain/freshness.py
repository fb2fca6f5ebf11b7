"""FreshnessResult - outcome of one staleness check."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .source_spec import StalenessBehavior


@dataclass(frozen=True)
class FreshnessResult:
    """Staleness decision for one source.

    Created fresh per check and never mutated. When ``error`` is set the
    flags are all False and ``last_modified`` is None.
    """
    age: timedelta
    last_modified: Optional[datetime]
    threshold: timedelta
    behavior: StalenessBehavior
    is_stale: bool = False
    should_skip: bool = False
    should_alert: bool = False
    error: Optional[Exception] = None

    @classmethod
    def failed(
        cls,
        threshold: timedelta,
        behavior: StalenessBehavior,
        error: Exception,
    ) -> "FreshnessResult":
        return cls(
            age=timedelta(0),
            last_modified=None,
            threshold=threshold,
            behavior=behavior,
            error=error,
        )

    @property
    def ratio(self) -> float:
        """age / threshold; 0.0 when the threshold is not positive."""
        threshold_s = self.threshold.total_seconds()
        if threshold_s <= 0:
            return 0.0
        return self.age.total_seconds() / threshold_s
