"""AlertDispatcher - fans one alert out to every enabled channel.

Every enabled channel is attempted even when an earlier one fails; the
failures are raised together as AlertDeliveryError afterwards.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..core.domain import AlertEvent, AlertSeverity
from ..core.errors import AlertDeliveryError, ChannelError
from .channels import AlertChannel, ChannelConfig, build_channel

logger = logging.getLogger(__name__)

SERVICE_SOURCE = "enhanced-flex-monitor"


class AlertDispatcher:
    def __init__(self, channels: Sequence[AlertChannel]):
        self._channels: List[AlertChannel] = list(channels)

    @classmethod
    def from_configs(
        cls,
        configs: Sequence[ChannelConfig],
        session: Optional[requests.Session] = None,
    ) -> "AlertDispatcher":
        session = session or requests.Session()
        return cls([build_channel(c, session=session) for c in configs])

    @property
    def channels(self) -> List[AlertChannel]:
        return list(self._channels)

    def send(self, alert: AlertEvent) -> None:
        """Deliver ``alert`` to each enabled channel.

        Zero enabled channels is a warning, not an error.

        Raises:
            AlertDeliveryError: one or more channels failed
        """
        enabled = [c for c in self._channels if c.enabled]
        if not enabled:
            logger.warning("[ALERTS] No alert channels enabled, skipping alert type=%s", alert.category)
            return

        errors: List[ChannelError] = []
        for channel in enabled:
            try:
                channel.deliver(alert)
            except ChannelError as e:
                errors.append(e)
                logger.error("[ALERTS] Failed to send alert channel=%s: %s", channel.name, e.reason)
            except Exception as e:
                errors.append(ChannelError(channel.name, str(e)))
                logger.error("[ALERTS] Failed to send alert channel=%s: %s", channel.name, e)
            else:
                logger.info(
                    "[ALERTS] Alert sent channel=%s type=%s", channel.name, alert.category
                )

        if errors:
            raise AlertDeliveryError(errors)

    # =========================================================================
    # Builders
    # =========================================================================

    def send_staleness_alert(
        self,
        source_name: str,
        url: str,
        age: timedelta,
        threshold: timedelta,
    ) -> None:
        self.send(
            AlertEvent(
                category="file_staleness",
                severity=AlertSeverity.WARNING,
                title=f"File Staleness Detected: {source_name}",
                message=f"File at {url} is stale. Age: {age}, Threshold: {threshold}",
                source=source_name,
                metadata={
                    "url": url,
                    "file_age": age.total_seconds(),
                    "threshold": threshold.total_seconds(),
                    "api_name": source_name,
                },
                tags=["staleness", "file_monitor", source_name],
            )
        )

    def send_error_alert(self, source_name: str, operation: str, error: Exception) -> None:
        self.send(
            AlertEvent(
                category="error",
                severity=AlertSeverity.ERROR,
                title=f"Error in {source_name}: {operation}",
                message=f"Operation '{operation}' failed for API '{source_name}': {error}",
                source=source_name,
                metadata={
                    "api_name": source_name,
                    "operation": operation,
                    "error": str(error),
                },
                tags=["error", "file_monitor", source_name],
            )
        )

    def send_health_alert(
        self,
        component: str,
        status: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        severity = AlertSeverity.INFO if status == "healthy" else AlertSeverity.WARNING
        self.send(
            AlertEvent(
                category="health_check",
                severity=severity,
                title=f"Health Check: {component} is {status}",
                message=f"Component {component} reported status: {status}",
                source=component,
                metadata=dict(metadata or {}),
                tags=["health_check", component],
            )
        )

    def test_channels(self) -> None:
        """Send a test alert through every enabled channel."""
        self.send(
            AlertEvent(
                category="test",
                severity=AlertSeverity.INFO,
                title="Test Alert",
                message="This is a test alert to verify channel configuration",
                source=SERVICE_SOURCE,
                metadata={"test": True},
                tags=["test"],
            )
        )
