"""Error taxonomy for the collection pipeline.

Per-source errors (probe, fetch, format, transform) are captured into the
source's CycleOutcome. Submission and channel errors are raised as aggregates
from TelemetryBatcher.flush / AlertDispatcher.send and logged by the cycle.
"""

from __future__ import annotations

from typing import List, Sequence


class CollectorError(Exception):
    """Base class for every error raised by the collector."""


class ProbeError(CollectorError):
    """Freshness check failed (network, status or header parse)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"freshness probe failed for {url}: {reason}")


class InvalidTargetError(ProbeError):
    """Target URL is malformed; raised before any network call."""

    def __init__(self, url: str, reason: str):
        super().__init__(url, f"invalid URL: {reason}")


class FetchError(CollectorError):
    """Payload could not be retrieved."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch {url}: {reason}")


class FormatError(CollectorError):
    """Payload format is unsupported or the payload is malformed."""


class TransformError(CollectorError):
    """Filter/projection expression failed to compile or run."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"filter '{expression}' failed: {reason}")


class SubmissionError(CollectorError):
    """Telemetry backend rejected a submission or was unreachable.

    ``failures`` holds one message per failed submission kind when raised
    from a flush that attempted both events and metrics.
    """

    def __init__(self, failures: Sequence[str]):
        self.failures: List[str] = list(failures)
        super().__init__("telemetry submission failed: " + "; ".join(self.failures))


class ChannelError(CollectorError):
    """A single alert channel failed to deliver."""

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"channel {channel}: {reason}")


class AlertDeliveryError(CollectorError):
    """One or more alert channels failed for the same alert."""

    def __init__(self, errors: Sequence[ChannelError]):
        self.errors: List[ChannelError] = list(errors)
        super().__init__(
            f"failed to send alert to {len(self.errors)} channel(s): "
            + "; ".join(str(e) for e in self.errors)
        )
