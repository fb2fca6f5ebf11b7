"""Live monitor state shared between the cycle runner and the status API."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from ..domain import CycleSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MonitorInfo:
    """Static facts about the running monitor."""
    name: str = "enhanced-flex-monitor"
    version: str = "1.0.0"
    interval_seconds: float = 30.0
    source_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)


class MonitorState:
    """Thread-safe holder of the last published cycle.

    The cycle runner calls ``publish`` once per cycle; the status endpoints
    read snapshots. Nothing here is fabricated: before the first cycle the
    summary is None and the monitor reports not ready.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._info = MonitorInfo()
        self._cycle_count = 0
        self._last_summary: Optional[CycleSummary] = None
        self._last_cycle_at: Optional[datetime] = None
        self._sources: Dict[str, Dict[str, Any]] = {}
        self._stats_provider: Optional[Callable[[], dict]] = None

    def configure(self, info: MonitorInfo, stats_provider: Optional[Callable[[], dict]] = None) -> None:
        with self._lock:
            self._info = info
            self._stats_provider = stats_provider

    def publish(self, summary: CycleSummary) -> None:
        now = _utcnow()
        with self._lock:
            self._cycle_count += 1
            self._last_summary = summary
            self._last_cycle_at = now
            for outcome in summary.outcomes:
                entry = outcome.to_dict()
                entry["updated_at"] = now.isoformat()
                self._sources[outcome.source_name] = entry

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._last_summary is not None

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            info = self._info
            summary = self._last_summary.to_dict() if self._last_summary else None
            return {
                "name": info.name,
                "version": info.version,
                "started_at": info.started_at.isoformat(),
                "uptime_seconds": round((_utcnow() - info.started_at).total_seconds(), 2),
                "interval_seconds": info.interval_seconds,
                "source_count": info.source_count,
                "cycle_count": self._cycle_count,
                "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
                "last_cycle": summary,
            }

    def sources(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name: dict(entry) for name, entry in self._sources.items()}

    def telemetry_stats(self) -> Optional[dict]:
        with self._lock:
            provider = self._stats_provider
        return provider() if provider else None

    def reset(self) -> None:
        with self._lock:
            self._info = MonitorInfo()
            self._cycle_count = 0
            self._last_summary = None
            self._last_cycle_at = None
            self._sources = {}
            self._stats_provider = None


_state: Optional[MonitorState] = None
_state_lock = threading.Lock()


def get_monitor_state() -> MonitorState:
    """Process-wide singleton."""
    global _state
    if _state is None:
        with _state_lock:
            if _state is None:
                _state = MonitorState()
    return _state
