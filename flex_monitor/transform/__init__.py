"""Transform stage: structured/tabular parsing and record enrichment."""

from .coercion import coerce_cell, to_scalar
from .engine import PROCESSOR_VERSION, TransformEngine
from .structured import apply_filter, parse_structured_records, to_records
from .tabular import parse_tabular

__all__ = [
    "coerce_cell",
    "to_scalar",
    "PROCESSOR_VERSION",
    "TransformEngine",
    "apply_filter",
    "parse_structured_records",
    "to_records",
    "parse_tabular",
]
