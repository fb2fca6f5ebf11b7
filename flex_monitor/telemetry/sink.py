from __future__ import annotations

import threading
from typing import Any, Dict, List, Protocol, Sequence

from ..core.domain import Measurement


class TelemetrySink(Protocol):
    """Destination for flushed telemetry batches.

    The batcher depends on this interface only; the HTTP backend and the
    in-memory sink are interchangeable.
    """

    def send_events(self, events: Sequence[Dict[str, Any]]) -> None:
        """Submit one batch of flat event maps.

        Raise on failure; the batcher collects and reports the error.
        """

        ...

    def send_measurements(self, measurements: Sequence[Measurement]) -> None:
        """Submit one batch of dimensional measurements."""

        ...


class InMemoryTelemetrySink(TelemetrySink):
    """Keeps every submitted batch in memory.

    Used for dry runs (no backend credentials) and tests.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.event_batches: List[List[Dict[str, Any]]] = []
        self.measurement_batches: List[List[Measurement]] = []

    def send_events(self, events: Sequence[Dict[str, Any]]) -> None:  # type: ignore[override]
        with self._lock:
            self.event_batches.append(list(events))

    def send_measurements(self, measurements: Sequence[Measurement]) -> None:  # type: ignore[override]
        with self._lock:
            self.measurement_batches.append(list(measurements))

    @property
    def events(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for batch in self.event_batches for e in batch]

    @property
    def measurements(self) -> List[Measurement]:
        with self._lock:
            return [m for batch in self.measurement_batches for m in batch]
