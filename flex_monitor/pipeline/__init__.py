"""Per-source pipeline: fetch, staleness gate, transform, batch."""

from .fetcher import SourceFetcher
from .source_processor import SourceProcessor
from .worker_pool import DEFAULT_CONCURRENCY, SourceWorkerPool

__all__ = [
    "SourceFetcher",
    "SourceProcessor",
    "DEFAULT_CONCURRENCY",
    "SourceWorkerPool",
]
