"""Domain types for the collection pipeline."""

from .source_spec import (
    DEFAULT_CATEGORY,
    PayloadFormat,
    SourceSpec,
    StalenessBehavior,
    StalenessPolicy,
)
from .freshness import FreshnessResult
from .records import (
    CycleOutcome,
    CycleSummary,
    Measurement,
    MeasurementKind,
    Record,
    Scalar,
)
from .alert_event import AlertEvent, AlertSeverity

__all__ = [
    "DEFAULT_CATEGORY",
    "PayloadFormat",
    "SourceSpec",
    "StalenessBehavior",
    "StalenessPolicy",
    "FreshnessResult",
    "CycleOutcome",
    "CycleSummary",
    "Measurement",
    "MeasurementKind",
    "Record",
    "Scalar",
    "AlertEvent",
    "AlertSeverity",
]
