"""Monitoring layer - live state for the status API."""

from .state import MonitorInfo, MonitorState, get_monitor_state

__all__ = ["MonitorInfo", "MonitorState", "get_monitor_state"]
