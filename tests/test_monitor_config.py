"""Tests de configuración YAML y duraciones."""

from datetime import timedelta
from textwrap import dedent

import pytest

from common.durations import format_duration, parse_duration
from common.monitor_config import (
    ConfigError,
    build_monitor_config,
    expand_env,
    load_monitor_config,
)
from flex_monitor.alerts import ChannelType
from flex_monitor.core.domain import PayloadFormat, StalenessBehavior


def minimal(**overrides) -> dict:
    raw = {
        "newrelic": {"api_key": "key", "account_id": "42"},
        "apis": [{"name": "inventory", "url": "https://data.example.com/inventory.json"}],
    }
    raw.update(overrides)
    return raw


# =============================================================================
# DURATIONS
# =============================================================================

class TestDurations:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("90s", timedelta(seconds=90)),
            ("5m", timedelta(minutes=5)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("250ms", timedelta(milliseconds=250)),
            ("1.5h", timedelta(minutes=90)),
            ("0", timedelta(0)),
            ("-2m", timedelta(minutes=-2)),
            (45, timedelta(seconds=45)),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "5", "m", "5 minutes", "1h-3m", True])
    def test_rejects(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)

    def test_format(self):
        assert format_duration(timedelta(hours=1, minutes=30)) == "1h30m0s"
        assert format_duration(timedelta(seconds=30)) == "30s"


# =============================================================================
# DEFAULTS
# =============================================================================

class TestDefaults:

    def test_minimal_config_defaults(self):
        config = build_monitor_config(minimal())
        g = config.global_settings

        assert g.name == "enhanced-flex-monitor"
        assert g.interval == timedelta(seconds=30)
        assert g.log_level == "info"
        assert g.worker_count == 4
        assert config.newrelic.region == "US"
        assert config.newrelic.events_endpoint == (
            "https://insights-collector.newrelic.com/v1/accounts/42/events"
        )
        assert config.newrelic.metrics_endpoint == "https://metric-api.newrelic.com/metric/v1"

        (source,) = config.sources
        assert source.format is PayloadFormat.STRUCTURED
        assert source.category == "FlexSample"
        assert source.enabled is True
        assert source.filter_expr is None
        assert source.staleness.enabled is False

    def test_eu_region_urls(self):
        config = build_monitor_config(
            minimal(newrelic={"api_key": "k", "account_id": "7", "region": "EU"})
        )
        assert "eu01.nr-data.net" in config.newrelic.events_endpoint
        assert config.newrelic.metrics_endpoint == "https://metric-api.eu.newrelic.com/metric/v1"

    def test_staleness_defaults(self):
        raw = minimal(apis=[{
            "name": "inventory",
            "url": "https://data.example.com/inventory.json",
            "staleness": {"enabled": True},
        }])

        (source,) = build_monitor_config(raw).sources

        assert source.staleness.threshold == timedelta(minutes=5)
        assert source.staleness.behavior is StalenessBehavior.CONTINUE
        assert source.staleness.check_url is None
        assert source.freshness_target == "https://data.example.com/inventory.json"

    def test_source_check_url_is_freshness_target(self):
        raw = minimal(apis=[{
            "name": "a",
            "url": "https://data.example.com/a.json",
            "check_url": "https://data.example.com/a.meta",
            "staleness": {"enabled": True},
        }])

        (source,) = build_monitor_config(raw).sources

        assert source.staleness.check_url is None
        assert source.freshness_target == "https://data.example.com/a.meta"

    def test_full_source(self):
        raw = minimal(apis=[{
            "name": "hosts",
            "url": "https://data.example.com/hosts.csv",
            "fallback_url": "https://mirror.example.com/hosts.csv",
            "format": "CSV",
            "event_type": "HostSample",
            "attributes": {"env": "prod", "tier": 2},
            "enabled": False,
            "staleness": {
                "enabled": True,
                "threshold": "15m",
                "behavior": "alert",
                "check_url": "https://data.example.com/hosts.meta",
            },
        }])

        (source,) = build_monitor_config(raw).sources

        assert source.format is PayloadFormat.TABULAR
        assert source.category == "HostSample"
        assert source.attributes == {"env": "prod", "tier": "2"}
        assert source.enabled is False
        assert source.fallback_url == "https://mirror.example.com/hosts.csv"
        assert source.staleness.threshold == timedelta(minutes=15)
        assert source.staleness.behavior is StalenessBehavior.ALERT
        assert source.freshness_target == "https://data.example.com/hosts.meta"

    def test_channels(self):
        raw = minimal(alerts={"channels": [
            {"name": "ops", "type": "Slack", "settings": {"webhook_url": "https://hooks.slack.com/x"}},
            {"name": "log", "type": "log", "enabled": False},
        ]})

        config = build_monitor_config(raw)

        assert [c.type for c in config.channels] == [ChannelType.SLACK, ChannelType.LOG]
        assert [c.name for c in config.enabled_channels()] == ["ops"]


# =============================================================================
# VALIDATION
# =============================================================================

class TestValidation:

    @pytest.mark.parametrize(
        "raw, message",
        [
            (minimal(newrelic={"account_id": "42"}), "api_key is required"),
            (minimal(newrelic={"api_key": "k"}), "account_id is required"),
            (minimal(apis=[]), "at least one API"),
            (minimal(apis=[{"url": "https://x.example.com"}]), "name is required"),
            (minimal(apis=[{"name": "x"}]), "url is required"),
            (minimal(apis=[{"name": "x", "url": "https://x.example.com", "format": "xml"}]), "unsupported format"),
            (minimal(**{"global": {"worker_count": 101}}), "between 1 and 100"),
            (minimal(**{"global": {"log_level": "loud"}}), "invalid log_level"),
            (minimal(alerts={"channels": [{"type": "log"}]}), "channel name is required"),
            (minimal(alerts={"channels": [{"name": "x", "type": "pager"}]}), "channel type must be one of"),
        ],
    )
    def test_rejected(self, raw, message):
        with pytest.raises(ConfigError, match=message):
            build_monitor_config(raw)

    def test_non_positive_threshold(self):
        raw = minimal(apis=[{
            "name": "x",
            "url": "https://x.example.com",
            "staleness": {"enabled": True, "threshold": "-1m"},
        }])
        with pytest.raises(ConfigError, match="threshold must be positive"):
            build_monitor_config(raw)

    def test_unknown_behavior(self):
        raw = minimal(apis=[{
            "name": "x",
            "url": "https://x.example.com",
            "staleness": {"enabled": True, "behavior": "panic"},
        }])
        with pytest.raises(ConfigError, match="behavior"):
            build_monitor_config(raw)

    def test_error_location_uses_yaml_key(self):
        with pytest.raises(ConfigError, match=r"global\.worker_count"):
            build_monitor_config(minimal(**{"global": {"worker_count": 0.5}}))


# =============================================================================
# LOADING
# =============================================================================

class TestLoad:

    def test_load_with_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NR_KEY", "from-env")
        monkeypatch.delenv("NR_MISSING", raising=False)
        path = tmp_path / "config.yml"
        path.write_text(dedent("""
            global:
              interval: 1m
              worker_count: 8
            newrelic:
              api_key: ${NR_KEY}
              account_id: "123$NR_MISSING"
            apis:
              - name: inventory
                url: https://data.example.com/inventory.json
                jq: .items
        """))

        config = load_monitor_config(path)

        assert config.newrelic.api_key == "from-env"
        assert config.newrelic.account_id == "123"
        assert config.global_settings.interval == timedelta(minutes=1)
        assert config.global_settings.worker_count == 8
        assert config.sources[0].filter_expr == ".items"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="failed to read"):
            load_monitor_config(tmp_path / "absent.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("apis: [unclosed\n")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_monitor_config(path)

    def test_expand_env_unknown_is_empty(self, monkeypatch):
        monkeypatch.delenv("FLEX_UNSET_VAR", raising=False)
        assert expand_env("a-${FLEX_UNSET_VAR}-b") == "a--b"
