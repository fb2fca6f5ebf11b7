"""Read-only status of the collection pipeline.

Everything returned here comes from the last published cycle.
"""

from fastapi import APIRouter, HTTPException

from ..core.monitoring import get_monitor_state

router = APIRouter(tags=["status"])


@router.get("/status")
def status():
    return get_monitor_state().snapshot()


@router.get("/status/sources")
def sources():
    """Last outcome per source, sorted by name."""
    entries = get_monitor_state().sources()
    return {"sources": [entries[name] for name in sorted(entries)]}


@router.get("/status/sources/{name}")
def source(name: str):
    entry = get_monitor_state().sources().get(name)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"unknown source '{name}'")
    return entry


@router.get("/metrics")
def metrics():
    """Telemetry batcher counters plus the last cycle aggregates."""
    state = get_monitor_state()
    snap = state.snapshot()
    return {
        "cycle_count": snap["cycle_count"],
        "last_cycle": snap["last_cycle"],
        "telemetry": state.telemetry_stats(),
    }
