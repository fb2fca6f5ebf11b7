"""Shared fixtures for the flex monitor tests."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest

from flex_monitor.core.domain import SourceSpec, StalenessPolicy
from flex_monitor.core.monitoring import get_monitor_state

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_response(
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    content: bytes = b"",
) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.content = content
    return response


def make_source(
    name: str = "inventory",
    url: str = "https://data.example.com/inventory.json",
    staleness: Optional[StalenessPolicy] = None,
    **kwargs,
) -> SourceSpec:
    return SourceSpec(
        name=name,
        url=url,
        staleness=staleness or StalenessPolicy(),
        **kwargs,
    )


def stale_policy(behavior: str, threshold: timedelta = timedelta(minutes=5)) -> StalenessPolicy:
    return StalenessPolicy(enabled=True, threshold=threshold, behavior=behavior)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def session() -> MagicMock:
    """requests.Session stand-in."""
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_monitor_state():
    get_monitor_state().reset()
    yield
    get_monitor_state().reset()
