"""Records, measurements and per-cycle outcomes."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .freshness import FreshnessResult

Scalar = Union[str, int, float, bool]
Record = Dict[str, Scalar]


class MeasurementKind(str, Enum):
    """Dimensional metric types accepted by the Metrics API."""
    COUNTER = "count"
    GAUGE = "gauge"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Measurement:
    """One named, typed, timestamped numeric value."""
    name: str
    kind: MeasurementKind
    value: float
    attributes: Dict[str, Scalar] = field(default_factory=dict)
    timestamp_ms: int = field(default_factory=_now_ms)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind.value,
            "value": float(self.value),
            "timestamp": self.timestamp_ms,
            "attributes": dict(self.attributes),
        }


@dataclass
class CycleOutcome:
    """Result of running the pipeline for one source in one cycle."""
    source_name: str
    record_count: int = 0
    duration: timedelta = timedelta(0)
    is_stale: bool = False
    skipped: bool = False
    error: Optional[Exception] = None
    freshness: Optional[FreshnessResult] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        return {
            "source": self.source_name,
            "record_count": self.record_count,
            "duration_seconds": round(self.duration.total_seconds(), 4),
            "is_stale": self.is_stale,
            "skipped": self.skipped,
            "error": str(self.error) if self.error is not None else None,
            "file_age_seconds": (
                round(self.freshness.age.total_seconds(), 2)
                if self.freshness is not None and self.freshness.error is None
                else None
            ),
        }


@dataclass
class CycleSummary:
    """Aggregate of one cycle; built, consumed and discarded."""
    total_records: int
    total_errors: int
    total_stale: int
    duration: timedelta
    outcomes: List[CycleOutcome]

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Sequence[CycleOutcome],
        duration: timedelta,
    ) -> "CycleSummary":
        return cls(
            total_records=sum(o.record_count for o in outcomes),
            total_errors=sum(1 for o in outcomes if o.has_error),
            total_stale=sum(1 for o in outcomes if o.is_stale),
            duration=duration,
            outcomes=list(outcomes),
        )

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "total_errors": self.total_errors,
            "total_stale": self.total_stale,
            "duration_seconds": round(self.duration.total_seconds(), 4),
            "source_count": len(self.outcomes),
        }
