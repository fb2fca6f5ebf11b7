"""Flex Monitor - staleness-gated collection of HTTP sources into telemetry."""

__version__ = "1.0.0"
