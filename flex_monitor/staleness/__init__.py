"""Staleness detection: freshness probe, evaluator and detector."""

from .probe import FreshnessProbe, parse_http_date
from .evaluator import evaluate_freshness
from .detector import StalenessCheck, StalenessDetector

__all__ = [
    "FreshnessProbe",
    "parse_http_date",
    "evaluate_freshness",
    "StalenessCheck",
    "StalenessDetector",
]
