"""Telemetry buffering and submission."""

from .sink import InMemoryTelemetrySink, TelemetrySink
from .newrelic import NewRelicSettings, NewRelicTelemetrySink, default_endpoints
from .batcher import COLLECTOR_VERSION, BatcherStats, TelemetryBatcher
from .measurements import cycle_measurements, processing_measurements, staleness_measurements

__all__ = [
    "InMemoryTelemetrySink",
    "TelemetrySink",
    "NewRelicSettings",
    "NewRelicTelemetrySink",
    "default_endpoints",
    "COLLECTOR_VERSION",
    "BatcherStats",
    "TelemetryBatcher",
    "cycle_measurements",
    "processing_measurements",
    "staleness_measurements",
]
