"""Staleness evaluation: threshold + behavior policy over a modification time.

Pure and side-effect free; safe to call from any worker.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..core.domain import FreshnessResult, StalenessBehavior


def evaluate_freshness(
    last_modified: datetime,
    threshold: timedelta,
    behavior: "StalenessBehavior | str",
    now: Optional[datetime] = None,
) -> FreshnessResult:
    """Build the staleness decision for one probed source.

    ``is_stale`` is ``age > threshold``; an age equal to the threshold is
    fresh. Skip/alert flags are only raised for stale data:

        skip     → should_skip
        alert    → should_alert
        continue → neither
    """
    behavior = StalenessBehavior.parse(behavior)
    if now is None:
        now = datetime.now(timezone.utc)

    age = now - last_modified
    is_stale = age > threshold

    return FreshnessResult(
        age=age,
        last_modified=last_modified,
        threshold=threshold,
        behavior=behavior,
        is_stale=is_stale,
        should_skip=is_stale and behavior is StalenessBehavior.SKIP,
        should_alert=is_stale and behavior is StalenessBehavior.ALERT,
    )
