"""Monitor runner configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_GRACE_SECONDS = 10.0


@dataclass(frozen=True)
class RunnerConfig:
    """Process-level options resolved from CLI flags and environment."""
    config_path: str
    log_level: Optional[str] = None
    once: bool = False
    dry_run: bool = False
    status_host: str = "0.0.0.0"
    status_port: Optional[int] = None
    grace_seconds: float = DEFAULT_GRACE_SECONDS
