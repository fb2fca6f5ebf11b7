"""CLI entry point for the flex monitor."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from datetime import timedelta
from typing import List, Optional

import requests
import uvicorn

from common.config import get_settings
from common.durations import format_duration
from common.monitor_config import ConfigError, MonitorConfig, load_monitor_config
from flex_monitor import __version__
from flex_monitor.alerts import AlertDispatcher
from flex_monitor.core.errors import AlertDeliveryError, SubmissionError
from flex_monitor.core.monitoring import MonitorInfo, get_monitor_state
from flex_monitor.pipeline import SourceFetcher, SourceProcessor, SourceWorkerPool
from flex_monitor.staleness import FreshnessProbe, StalenessDetector
from flex_monitor.telemetry import InMemoryTelemetrySink, NewRelicTelemetrySink, TelemetryBatcher
from flex_monitor.transform import TransformEngine

from .config import RunnerConfig
from .cycle import MonitorCycle
from .scheduler import CycleScheduler

logger = logging.getLogger(__name__)

_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


def to_logging_level(name: Optional[str]) -> int:
    return _LEVELS.get((name or "info").lower(), logging.INFO)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Enhanced flex monitor (staleness-aware data collector)")
    p.add_argument("--config", default=None, help="path to the YAML config (default: FLEX_CONFIG_PATH or config.yml)")
    p.add_argument("--log-level", default=None, help="override the configured log level")
    p.add_argument("--once", action="store_true", help="run a single cycle and exit")
    p.add_argument("--dry-run", action="store_true", help="keep telemetry in memory instead of submitting it")
    p.add_argument("--validate", action="store_true", help="validate the config and exit")
    p.add_argument("--test-alerts", action="store_true", help="send a test alert to every channel and exit")
    p.add_argument("--health", action="store_true", help="submit a telemetry health check and exit")
    p.add_argument("--version", action="store_true", help="print the version and exit")
    p.add_argument("--status-host", default="0.0.0.0")
    p.add_argument("--status-port", type=int, default=None, help="serve the status API on this port")
    p.add_argument("--grace-seconds", type=float, default=10.0)
    return p.parse_args(argv)


def _print_summary(config: MonitorConfig) -> None:
    g = config.global_settings
    print(f"Configuration is valid: {g.name}")
    print(f"  interval={format_duration(g.interval)} workers={g.worker_count} "
          f"metrics={g.enable_metrics} alerts={g.enable_alerts}")
    print(f"  region={config.newrelic.region} channels={len(config.channels)} "
          f"enabled_channels={len(config.enabled_channels())}")
    for source in config.sources:
        staleness = (
            f"staleness={format_duration(source.staleness.threshold)}/{source.staleness.behavior.value}"
            if source.staleness.enabled else "staleness=off"
        )
        print(f"  - {source.name} [{source.format.value}] enabled={source.enabled} {staleness}")


def _start_status_server(host: str, port: int) -> uvicorn.Server:
    from flex_monitor.main import app

    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, daemon=True, name="status-api")
    thread.start()
    logger.info("[CLI] Status API listening on %s:%d", host, port)
    return server


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.version:
        print(f"enhanced-flex-monitor {__version__}")
        return 0

    settings = get_settings()
    cfg = RunnerConfig(
        config_path=args.config or settings.config_path,
        log_level=args.log_level or settings.log_level,
        once=bool(args.once),
        dry_run=bool(args.dry_run),
        status_host=args.status_host,
        status_port=args.status_port if args.status_port is not None else settings.status_port,
        grace_seconds=args.grace_seconds,
    )

    logging.basicConfig(
        level=to_logging_level(cfg.log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    try:
        config = load_monitor_config(cfg.config_path)
    except ConfigError as e:
        logger.error("[CLI] %s", e)
        return 1

    if not cfg.log_level:
        logging.getLogger().setLevel(to_logging_level(config.global_settings.log_level))

    if args.validate:
        _print_summary(config)
        return 0

    g = config.global_settings
    session = requests.Session()
    dispatcher = AlertDispatcher.from_configs(config.channels, session=session)

    if args.test_alerts:
        try:
            dispatcher.test_channels()
        except AlertDeliveryError as e:
            logger.error("[CLI] Alert channel test failed: %s", e)
            return 1
        logger.info("[CLI] Alert channel test completed")
        return 0

    newrelic_sink = NewRelicTelemetrySink(
        config.newrelic,
        session=session,
        interval_ms=int(g.interval.total_seconds() * 1000),
        service_name=g.name,
    )

    if args.health:
        try:
            newrelic_sink.health_check()
        except SubmissionError as e:
            logger.error("[CLI] Telemetry health check failed: %s", e)
            return 1
        return 0

    sink = InMemoryTelemetrySink() if cfg.dry_run else newrelic_sink
    batcher = TelemetryBatcher(sink)
    processor = SourceProcessor(
        detector=StalenessDetector(FreshnessProbe(session=session)),
        fetcher=SourceFetcher(session=session),
        engine=TransformEngine(),
        batcher=batcher,
    )
    pool = SourceWorkerPool(processor, concurrency=g.worker_count)

    state = get_monitor_state()
    state.configure(
        MonitorInfo(
            name=g.name,
            version=__version__,
            interval_seconds=g.interval.total_seconds(),
            source_count=len(config.sources),
        ),
        stats_provider=batcher.get_stats,
    )
    cycle = MonitorCycle(pool, batcher, dispatcher, g, state=state)

    logger.info(
        "[CLI] Flex monitor started name=%s version=%s sources=%d interval=%s dry_run=%s",
        g.name, __version__, len(config.sources), format_duration(g.interval), cfg.dry_run,
    )

    if cfg.once:
        summary = cycle.run(config.sources)
        return 1 if summary.total_errors else 0

    server = None
    if cfg.status_port:
        server = _start_status_server(cfg.status_host, cfg.status_port)

    stop_event = threading.Event()

    def _request_stop(signum, _frame):
        logger.info("[CLI] Received signal %d, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    scheduler = CycleScheduler(
        cycle,
        config.sources,
        interval=g.interval,
        batcher=batcher,
        dispatcher=dispatcher,
        enable_alerts=g.enable_alerts,
        enable_metrics=g.enable_metrics,
        grace=timedelta(seconds=cfg.grace_seconds),
    )
    scheduler.run(stop_event)

    if server is not None:
        server.should_exit = True
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
