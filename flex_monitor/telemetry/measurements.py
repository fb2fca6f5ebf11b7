"""Builders for the operational measurements the pipeline emits."""

from __future__ import annotations

from datetime import timedelta
from typing import List

from ..core.domain import CycleSummary, FreshnessResult, Measurement, MeasurementKind


def _gauge(name: str, value: float, **attributes) -> Measurement:
    return Measurement(name=name, kind=MeasurementKind.GAUGE, value=float(value), attributes=attributes)


def _count(name: str, value: float, **attributes) -> Measurement:
    return Measurement(name=name, kind=MeasurementKind.COUNTER, value=float(value), attributes=attributes)


def processing_measurements(
    source_name: str,
    duration: timedelta,
    record_count: int,
    success: bool,
) -> List[Measurement]:
    """Duration gauge, record count and status gauge (1 ok / 0 failed)."""
    attrs = {"source.name": source_name}
    return [
        _gauge("flex.processing.duration", duration.total_seconds(), **attrs),
        _count("flex.processing.records", record_count, **attrs),
        _gauge("flex.processing.status", 1.0 if success else 0.0, **attrs),
    ]


def staleness_measurements(source_name: str, result: FreshnessResult) -> List[Measurement]:
    attrs = {
        "source.name": source_name,
        "staleness.behavior": result.behavior.value,
        "staleness.is_stale": result.is_stale,
    }
    return [
        _gauge("flex.staleness.file_age", result.age.total_seconds(), **attrs),
        _gauge("flex.staleness.threshold", result.threshold.total_seconds(), **attrs),
        _gauge("flex.staleness.ratio", result.ratio, **attrs),
    ]


def cycle_measurements(summary: CycleSummary, service_name: str, version: str) -> List[Measurement]:
    attrs = {"service.name": service_name, "version": version}
    return [
        _gauge("flex.cycle.duration", summary.duration.total_seconds(), **attrs),
        _count("flex.cycle.records", summary.total_records, **attrs),
        _count("flex.cycle.errors", summary.total_errors, **attrs),
        _count("flex.cycle.stale_files", summary.total_stale, **attrs),
    ]
