"""Duration strings in the ``1h30m`` / ``90s`` / ``250ms`` form."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Union

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """Parse a duration.

    Strings use unit suffixes (``ns us ms s m h``) and may chain several
    parts (``1h30m``). Bare numbers are seconds. ``"0"`` is zero.

    Raises:
        ValueError: malformed duration string
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = str(value).strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return timedelta(0)

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=sign * total)


def format_duration(value: timedelta) -> str:
    """Compact inverse of ``parse_duration`` for whole seconds (``1h30m0s``)."""
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"
