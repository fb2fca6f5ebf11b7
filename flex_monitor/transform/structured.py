"""Structured (JSON) payload parsing with an optional jq filter.

Only the first value produced by the filter is kept. A filter that
produces nothing yields zero records.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, List, Optional, Union

import jq

from ..core.domain import Record
from ..core.errors import FormatError, TransformError
from .coercion import to_scalar
from .tabular import decode_payload

logger = logging.getLogger(__name__)

_NO_VALUE = object()


@lru_cache(maxsize=128)
def _compile(expression: str):
    return jq.compile(expression)


def parse_structured(payload: Union[bytes, str]) -> Any:
    try:
        return json.loads(decode_payload(payload))
    except json.JSONDecodeError as e:
        raise FormatError(f"failed to parse JSON: {e}") from e


def apply_filter(data: Any, expression: str) -> Any:
    """Run ``expression`` over ``data`` and return its first output.

    Returns ``_NO_VALUE`` when the expression produces no output.
    """
    try:
        program = _compile(expression)
    except ValueError as e:
        raise TransformError(expression, f"failed to compile: {e}") from e

    try:
        return next(iter(program.input_value(data)), _NO_VALUE)
    except ValueError as e:
        raise TransformError(expression, f"execution error: {e}") from e


def _flatten_mapping(item: dict) -> Record:
    record: Record = {}
    for key, value in item.items():
        scalar = to_scalar(value)
        if scalar is not None:
            record[str(key)] = scalar
    return record


def to_records(value: Any) -> List[Record]:
    """Normalize a mapping or a sequence of mappings into records.

    Non-mapping elements of a sequence are dropped.
    """
    if isinstance(value, dict):
        return [_flatten_mapping(value)]
    if isinstance(value, list):
        records = [_flatten_mapping(item) for item in value if isinstance(item, dict)]
        dropped = len(value) - len(records)
        if dropped:
            logger.debug("[STRUCTURED] Dropped %d non-mapping elements", dropped)
        return records
    raise FormatError(
        f"unsupported data type for conversion: {type(value).__name__}"
    )


def parse_structured_records(
    payload: Union[bytes, str],
    filter_expr: Optional[str] = None,
) -> List[Record]:
    data = parse_structured(payload)
    if filter_expr:
        data = apply_filter(data, filter_expr)
        if data is _NO_VALUE:
            logger.debug("[STRUCTURED] Filter produced no value: %s", filter_expr)
            return []
    return to_records(data)
