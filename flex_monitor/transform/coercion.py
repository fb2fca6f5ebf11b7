"""Scalar coercion for tabular cells and structured values."""

from __future__ import annotations

import json
import math
from typing import Any, Optional

from ..core.domain import Scalar

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_float(text: str) -> Optional[float]:
    try:
        value = float(text)
    except ValueError:
        return None
    # "nan"/"inf" stay text; they are not valid JSON numbers for the backend
    if not math.isfinite(value):
        return None
    return value


def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _parse_bool(text: str) -> Optional[bool]:
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def coerce_cell(text: str) -> Scalar:
    """Coerce a CSV cell: float, then int, then bool, else the text itself.

    Integers that overflow a finite float (e.g. very long digit strings)
    fall through to the int branch.
    """
    as_float = _parse_float(text)
    if as_float is not None:
        return as_float

    as_int = _parse_int(text)
    if as_int is not None:
        return as_int

    as_bool = _parse_bool(text)
    if as_bool is not None:
        return as_bool

    return text


def to_scalar(value: Any) -> Optional[Scalar]:
    """Normalize a decoded JSON value into the closed scalar set.

    None → dropped (returns None); nested containers → compact JSON text;
    non-finite floats → text.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
