"""Tests del entry point CLI."""

import logging
from textwrap import dedent
from unittest.mock import patch

import pytest

from jobs.monitor import cli

CONFIG = dedent("""
    global:
      interval: 45s
      enable_metrics: true
    newrelic:
      api_key: key
      account_id: "42"
    apis:
      - name: inventory
        url: https://data.example.com/inventory.json
        staleness: {enabled: true, threshold: 10m, behavior: skip}
""")


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(CONFIG)
    return str(path)


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert "1.0.0" in capsys.readouterr().out


def test_validate_prints_summary(config_path, capsys):
    assert cli.main(["--config", config_path, "--validate"]) == 0

    out = capsys.readouterr().out
    assert "Configuration is valid" in out
    assert "interval=45s" in out
    assert "staleness=10m0s/skip" in out


def test_validate_counts_enabled_channels(tmp_path, capsys):
    path = tmp_path / "alerts.yml"
    path.write_text(CONFIG + dedent("""
        alerts:
          channels:
            - {name: ops, type: log}
            - {name: hook, type: webhook, enabled: false, settings: {url: "https://h.example.com"}}
    """))

    assert cli.main(["--config", str(path), "--validate"]) == 0
    assert "channels=2 enabled_channels=1" in capsys.readouterr().out


def test_invalid_config_exits_non_zero(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("apis: []\n")
    assert cli.main(["--config", str(path), "--validate"]) == 1


def test_once_dry_run_runs_single_cycle(config_path):
    with patch.object(cli.MonitorCycle, "run") as run:
        run.return_value.total_errors = 0
        assert cli.main(["--config", config_path, "--once", "--dry-run"]) == 0
    run.assert_called_once()


@pytest.mark.parametrize(
    "name, level",
    [("trace", logging.DEBUG), ("warn", logging.WARNING), ("panic", logging.CRITICAL), (None, logging.INFO)],
)
def test_to_logging_level(name, level):
    assert cli.to_logging_level(name) == level
