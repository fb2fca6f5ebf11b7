"""Monitor runner package.

Modules:
- config: RunnerConfig dataclass
- cycle: MonitorCycle (one pass over all sources)
- scheduler: CycleScheduler (interval loop, tick guard, graceful shutdown)
- cli: CLI entry point (main)
"""

from .config import RunnerConfig
from .cycle import MonitorCycle
from .scheduler import CycleScheduler
from .cli import main

__all__ = ["RunnerConfig", "MonitorCycle", "CycleScheduler", "main"]
