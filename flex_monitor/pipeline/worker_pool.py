"""SourceWorkerPool - bounded fan-out of source pipelines for one cycle.

Enabled sources go onto a bounded queue drained by a fixed set of worker
threads. Each worker writes into its own slot of a pre-sized result list, so
outcomes come back in input order without sharing a mutable collection.
"""

from __future__ import annotations

import logging
import queue
import threading
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

from ..core.domain import CycleOutcome, SourceSpec

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

_SENTINEL = None


class SourceWorkerPool:
    """Runs ``processor.process(source)`` for every source of a cycle.

    ``processor`` is anything with ``process(SourceSpec) -> CycleOutcome``.
    """

    def __init__(self, processor, concurrency: int = DEFAULT_CONCURRENCY):
        self._processor = processor
        self._concurrency = concurrency if concurrency > 0 else DEFAULT_CONCURRENCY

    def run_cycle(
        self,
        sources: Sequence[SourceSpec],
        concurrency: Optional[int] = None,
    ) -> List[CycleOutcome]:
        results: List[Optional[CycleOutcome]] = [None] * len(sources)

        pending: List[Tuple[int, SourceSpec]] = []
        for i, source in enumerate(sources):
            if source.enabled:
                pending.append((i, source))
            else:
                logger.debug("[POOL] Source disabled source=%s", source.name)
                results[i] = CycleOutcome(source_name=source.name, duration=timedelta(0))

        if not pending:
            return [r for r in results if r is not None]

        limit = concurrency if concurrency is not None and concurrency > 0 else self._concurrency
        num_workers = min(limit, len(pending))

        work: queue.Queue = queue.Queue(maxsize=num_workers)
        workers: List[threading.Thread] = []
        for w in range(num_workers):
            t = threading.Thread(
                target=self._worker_loop,
                args=(w, work, results),
                daemon=True,
                name=f"source-worker-{w}",
            )
            t.start()
            workers.append(t)

        logger.info("[POOL] Cycle started sources=%d workers=%d", len(pending), num_workers)

        for item in pending:
            work.put(item)
        for _ in workers:
            work.put(_SENTINEL)
        for t in workers:
            t.join()

        return [r for r in results if r is not None]

    def _worker_loop(
        self,
        worker_id: int,
        work: queue.Queue,
        results: List[Optional[CycleOutcome]],
    ) -> None:
        while True:
            item = work.get()
            if item is _SENTINEL:
                return

            index, source = item
            try:
                results[index] = self._processor.process(source)
            except Exception as e:
                logger.exception(
                    "[POOL] Worker %d unexpected error source=%s", worker_id, source.name
                )
                results[index] = CycleOutcome(source_name=source.name, error=e)
