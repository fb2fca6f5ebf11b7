from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = "config.yml"


def _default_env_file() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


@dataclass(frozen=True)
class Settings:
    """Process-level settings; the monitor itself is configured by YAML."""
    config_path: str
    log_level: Optional[str]
    status_port: Optional[int]


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("FLEX_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    status_port = os.getenv("STATUS_PORT", "").strip()

    return Settings(
        config_path=os.getenv("FLEX_CONFIG_PATH", DEFAULT_CONFIG_PATH),
        log_level=os.getenv("LOG_LEVEL") or None,
        status_port=int(status_port) if status_port else None,
    )
