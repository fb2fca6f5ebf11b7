"""Alert delivery channels: webhook, Slack and log.

Each channel raises ChannelError on failure; the dispatcher collects them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import requests

from ..core.domain import AlertEvent, AlertSeverity
from ..core.errors import ChannelError
from ..core.urls import validate_http_url

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_TIMEOUT = 30.0
USER_AGENT = "Enhanced-Flex-Monitor/1.0"
BOT_NAME = "Enhanced Flex Monitor"

SLACK_COLORS = {
    AlertSeverity.CRITICAL: "danger",
    AlertSeverity.WARNING: "warning",
    AlertSeverity.INFO: "good",
}

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


class ChannelType(str, Enum):
    WEBHOOK = "webhook"
    SLACK = "slack"
    LOG = "log"


@dataclass
class ChannelConfig:
    """One configured alert destination."""
    name: str
    type: ChannelType
    enabled: bool = True
    settings: Dict[str, str] = field(default_factory=dict)


class AlertChannel:
    """Base channel; subclasses implement ``deliver``."""

    def __init__(self, config: ChannelConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def deliver(self, alert: AlertEvent) -> None:
        raise NotImplementedError


class WebhookChannel(AlertChannel):
    def __init__(
        self,
        config: ChannelConfig,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_CHANNEL_TIMEOUT,
    ):
        super().__init__(config)
        self._session = session or requests.Session()
        self._timeout = timeout

    def deliver(self, alert: AlertEvent) -> None:
        url = self.config.settings.get("url")
        if not url:
            raise ChannelError(self.name, "webhook URL not configured")
        try:
            validate_http_url(url)
        except ValueError as e:
            raise ChannelError(self.name, f"invalid webhook URL: {e}") from e

        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        api_key = self.config.settings.get("api_key")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        token = self.config.settings.get("token")
        if token:
            headers["X-Auth-Token"] = token

        body = {"alert": alert.to_dict(), "channel": self.name}
        try:
            response = self._session.post(url, json=body, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            raise ChannelError(self.name, f"failed to send webhook: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ChannelError(self.name, f"webhook returned status {response.status_code}")


class SlackChannel(AlertChannel):
    def __init__(
        self,
        config: ChannelConfig,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_CHANNEL_TIMEOUT,
    ):
        super().__init__(config)
        self._session = session or requests.Session()
        self._timeout = timeout

    @staticmethod
    def build_message(alert: AlertEvent) -> dict:
        color = SLACK_COLORS.get(alert.severity, "warning")
        return {
            "username": BOT_NAME,
            "icon_emoji": ":warning:",
            "attachments": [
                {
                    "color": color,
                    "title": alert.title,
                    "text": alert.message,
                    "ts": int(alert.timestamp.timestamp()),
                    "footer": BOT_NAME,
                    "fields": [
                        {"title": "Source", "value": alert.source, "short": True},
                        {"title": "Type", "value": alert.category, "short": True},
                        {"title": "Severity", "value": alert.severity.value, "short": True},
                    ],
                }
            ],
        }

    def deliver(self, alert: AlertEvent) -> None:
        url = self.config.settings.get("webhook_url")
        if not url:
            raise ChannelError(self.name, "Slack webhook URL not configured")

        try:
            response = self._session.post(
                url,
                json=self.build_message(alert),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ChannelError(self.name, f"failed to send Slack message: {e}") from e

        if response.status_code != 200:
            raise ChannelError(self.name, f"Slack webhook returned status {response.status_code}")


class LogChannel(AlertChannel):
    """Writes the alert to this module's logger at the configured level."""

    def deliver(self, alert: AlertEvent) -> None:
        level_name = self.config.settings.get("level", "warn").lower()
        level = LOG_LEVELS.get(level_name, logging.WARNING)
        logger.log(
            level,
            "[ALERT] %s type=%s severity=%s source=%s channel=%s metadata=%s tags=%s",
            alert.message, alert.category, alert.severity.value, alert.source,
            self.name, alert.metadata, alert.tags,
        )


def build_channel(config: ChannelConfig, session: Optional[requests.Session] = None) -> AlertChannel:
    """Factory: ChannelConfig → concrete channel."""
    kind = ChannelType(config.type)
    if kind is ChannelType.WEBHOOK:
        return WebhookChannel(config, session=session)
    if kind is ChannelType.SLACK:
        return SlackChannel(config, session=session)
    return LogChannel(config)
