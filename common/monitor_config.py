"""YAML monitor configuration: load, expand env, default, validate.

Example::

    global:
      name: enhanced-flex-monitor
      interval: 30s
      worker_count: 4
      enable_metrics: true
      enable_alerts: true
    newrelic:
      api_key: ${NEW_RELIC_API_KEY}
      account_id: ${NEW_RELIC_ACCOUNT_ID}
    alerts:
      channels:
        - {name: ops-log, type: log, settings: {level: warn}}
    apis:
      - name: inventory
        url: https://example.com/inventory.json
        jq: .items
        staleness: {enabled: true, threshold: 15m, behavior: alert}

The pydantic models only validate; ``load_monitor_config`` returns the
domain objects the pipeline consumes.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from flex_monitor.alerts import ChannelConfig, ChannelType
from flex_monitor.core.domain import (
    DEFAULT_CATEGORY,
    PayloadFormat,
    SourceSpec,
    StalenessBehavior,
    StalenessPolicy,
)
from flex_monitor.telemetry import NewRelicSettings, default_endpoints

from .durations import parse_duration

logger = logging.getLogger(__name__)

DEFAULT_NAME = "enhanced-flex-monitor"
DEFAULT_INTERVAL = timedelta(seconds=30)
DEFAULT_WORKER_COUNT = 4
DEFAULT_THRESHOLD = timedelta(minutes=5)
VALID_LOG_LEVELS = ("trace", "debug", "info", "warn", "warning", "error", "fatal", "panic")

_ENV_REF = re.compile(r"\$\{(\w+)\}|\$(\w+)")


class ConfigError(Exception):
    """Configuration file could not be read, parsed or validated."""


def expand_env(text: str) -> str:
    """Replace ``${VAR}`` and ``$VAR`` with the environment value ("" if unset)."""
    return _ENV_REF.sub(lambda m: os.environ.get(m.group(1) or m.group(2), ""), text)


def _none_to_dict(v: Any) -> Any:
    return {} if v is None else v


def _stringify_map(v: Any) -> Any:
    if isinstance(v, dict):
        return {str(k): "" if val is None else str(val) for k, val in v.items()}
    return v


# =============================================================================
# Validation models
# =============================================================================


class _Model(BaseModel):
    model_config = {"extra": "ignore", "validate_default": True}


class GlobalModel(_Model):
    name: str = DEFAULT_NAME
    interval: timedelta = DEFAULT_INTERVAL
    log_level: str = "info"
    enable_metrics: bool = True
    enable_alerts: bool = False
    worker_count: int = DEFAULT_WORKER_COUNT

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v: Any) -> Any:
        return v or DEFAULT_NAME

    @field_validator("interval", mode="before")
    @classmethod
    def parse_interval(cls, v: Any) -> timedelta:
        if v is None or v == "":
            return DEFAULT_INTERVAL
        interval = parse_duration(v)
        if interval <= timedelta(0):
            raise ValueError("interval must be positive")
        return interval

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        level = str(v or "info").lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"invalid log_level: {v}, must be one of {list(VALID_LOG_LEVELS)}")
        return level

    @field_validator("worker_count", mode="before")
    @classmethod
    def default_worker_count(cls, v: Any) -> Any:
        return DEFAULT_WORKER_COUNT if v in (None, 0) else v

    @field_validator("worker_count")
    @classmethod
    def validate_worker_count(cls, v: int) -> int:
        if v < 1 or v > 100:
            raise ValueError(f"worker_count must be between 1 and 100, got {v}")
        return v


class NewRelicModel(_Model):
    api_key: str = ""
    account_id: str = ""
    region: str = "US"
    events_url: str = ""
    metrics_url: str = ""

    @field_validator("api_key", "account_id", "events_url", "metrics_url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("region", mode="before")
    @classmethod
    def normalize_region(cls, v: Any) -> str:
        return str(v or "US").upper()

    @field_validator("api_key")
    @classmethod
    def require_api_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("newrelic.api_key is required")
        return v

    @field_validator("account_id")
    @classmethod
    def require_account_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("newrelic.account_id is required")
        return v


class ChannelModel(_Model):
    name: str = ""
    type: str = ""
    enabled: bool = True
    settings: Dict[str, str] = {}

    @field_validator("settings", mode="before")
    @classmethod
    def normalize_settings(cls, v: Any) -> Any:
        return _stringify_map(_none_to_dict(v))

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("channel name is required")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v: Any) -> str:
        kind = str(v or "").lower()
        valid = [t.value for t in ChannelType]
        if kind not in valid:
            raise ValueError(f"channel type must be one of {valid}, got {v}")
        return kind


class AlertsModel(_Model):
    channels: List[ChannelModel] = []

    @field_validator("channels", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class StalenessModel(_Model):
    enabled: bool = False
    threshold: Optional[timedelta] = None
    behavior: str = StalenessBehavior.CONTINUE.value
    check_url: str = ""

    @field_validator("threshold", mode="before")
    @classmethod
    def parse_threshold(cls, v: Any) -> Optional[timedelta]:
        if v is None or v == "":
            return None
        return parse_duration(v)

    @field_validator("behavior", mode="before")
    @classmethod
    def validate_behavior(cls, v: Any) -> str:
        if v is None or v == "":
            return StalenessBehavior.CONTINUE.value
        return StalenessBehavior.parse(v).value

    @field_validator("check_url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def check_threshold(self) -> "StalenessModel":
        if self.enabled and self.threshold is not None and self.threshold <= timedelta(0):
            raise ValueError("staleness.threshold must be positive")
        return self


class ApiModel(_Model):
    name: str = ""
    url: str = ""
    fallback_url: str = ""
    check_url: str = ""
    format: str = PayloadFormat.STRUCTURED.value
    jq: str = ""
    attributes: Dict[str, str] = {}
    event_type: str = DEFAULT_CATEGORY
    staleness: StalenessModel = StalenessModel()
    enabled: bool = True

    @field_validator("fallback_url", "check_url", "jq", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("attributes", mode="before")
    @classmethod
    def normalize_attributes(cls, v: Any) -> Any:
        return _stringify_map(_none_to_dict(v))

    @field_validator("staleness", mode="before")
    @classmethod
    def none_to_default(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("format", mode="before")
    @classmethod
    def validate_format(cls, v: Any) -> str:
        if v is None or v == "":
            return PayloadFormat.STRUCTURED.value
        return PayloadFormat.parse(v).value

    @field_validator("event_type", mode="before")
    @classmethod
    def default_event_type(cls, v: Any) -> Any:
        return v or DEFAULT_CATEGORY

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name is required")
        return v

    @field_validator("url")
    @classmethod
    def require_url(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("url is required")
        return v


class MonitorConfigModel(_Model):
    global_: GlobalModel = GlobalModel()
    newrelic: NewRelicModel
    alerts: AlertsModel = AlertsModel()
    apis: List[ApiModel]

    model_config = {"extra": "ignore", "validate_default": True}

    @model_validator(mode="before")
    @classmethod
    def rename_global(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["global_"] = data.pop("global", None) or {}
            data["newrelic"] = data.get("newrelic") or {}
            data["alerts"] = data.get("alerts") or {}
            data["apis"] = data.get("apis") or []
        return data

    @field_validator("apis")
    @classmethod
    def require_apis(cls, v: List[ApiModel]) -> List[ApiModel]:
        if not v:
            raise ValueError("at least one API configuration is required")
        return v


# =============================================================================
# Domain configuration
# =============================================================================


@dataclass(frozen=True)
class GlobalSettings:
    name: str = DEFAULT_NAME
    interval: timedelta = DEFAULT_INTERVAL
    log_level: str = "info"
    enable_metrics: bool = True
    enable_alerts: bool = False
    worker_count: int = DEFAULT_WORKER_COUNT


@dataclass
class MonitorConfig:
    global_settings: GlobalSettings
    newrelic: NewRelicSettings
    channels: List[ChannelConfig] = field(default_factory=list)
    sources: List[SourceSpec] = field(default_factory=list)

    def enabled_channels(self) -> List[ChannelConfig]:
        return [c for c in self.channels if c.enabled]


def _to_source(api: ApiModel) -> SourceSpec:
    st = api.staleness
    policy = StalenessPolicy(
        enabled=st.enabled,
        threshold=st.threshold if st.threshold is not None else DEFAULT_THRESHOLD,
        behavior=StalenessBehavior.parse(st.behavior),
        check_url=st.check_url or None,
    )
    return SourceSpec(
        name=api.name,
        url=api.url,
        format=PayloadFormat.parse(api.format),
        filter_expr=api.jq or None,
        attributes=dict(api.attributes),
        category=api.event_type,
        enabled=api.enabled,
        staleness=policy,
        check_url=api.check_url or None,
        fallback_url=api.fallback_url or None,
    )


def build_monitor_config(raw: Dict[str, Any]) -> MonitorConfig:
    """Validate a parsed mapping and convert it to domain objects.

    Raises:
        ConfigError: validation failed
    """
    if not isinstance(raw, dict):
        raise ConfigError("config validation failed: top level must be a mapping")
    try:
        model = MonitorConfigModel.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {_describe(e)}") from e

    g = model.global_
    nr = model.newrelic
    events_default, metrics_default = default_endpoints(nr.region)

    return MonitorConfig(
        global_settings=GlobalSettings(
            name=g.name,
            interval=g.interval,
            log_level=g.log_level,
            enable_metrics=g.enable_metrics,
            enable_alerts=g.enable_alerts,
            worker_count=g.worker_count,
        ),
        newrelic=NewRelicSettings(
            api_key=nr.api_key,
            account_id=nr.account_id,
            region=nr.region,
            events_url=nr.events_url or events_default,
            metrics_url=nr.metrics_url or metrics_default,
        ),
        channels=[
            ChannelConfig(
                name=c.name,
                type=ChannelType(c.type),
                enabled=c.enabled,
                settings=dict(c.settings),
            )
            for c in model.alerts.channels
        ],
        sources=[_to_source(api) for api in model.apis],
    )


def load_monitor_config(path: Union[str, Path]) -> MonitorConfig:
    """Read, env-expand, parse and validate the YAML config at ``path``.

    Raises:
        ConfigError: file unreadable, YAML invalid or validation failed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read config file: {e}") from e

    try:
        raw = yaml.safe_load(expand_env(text)) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    config = build_monitor_config(raw)
    logger.info(
        "[CONFIG] Loaded path=%s sources=%d channels=%d",
        path, len(config.sources), len(config.channels),
    )
    return config


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join("global" if p == "global_" else str(p) for p in err.get("loc", ()))
        parts.append(f"{loc or 'config'}: {err.get('msg')}")
    return "; ".join(parts)
