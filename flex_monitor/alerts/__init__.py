"""Alert channels and dispatcher."""

from .channels import (
    AlertChannel,
    ChannelConfig,
    ChannelType,
    LogChannel,
    SlackChannel,
    WebhookChannel,
    build_channel,
)
from .dispatcher import AlertDispatcher

__all__ = [
    "AlertChannel",
    "ChannelConfig",
    "ChannelType",
    "LogChannel",
    "SlackChannel",
    "WebhookChannel",
    "build_channel",
    "AlertDispatcher",
]
