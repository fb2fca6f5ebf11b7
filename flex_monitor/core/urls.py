"""URL checks shared by the freshness probe and the webhook channels."""

from __future__ import annotations

from urllib.parse import urlparse

ALLOWED_SCHEMES = ("http", "https")


def validate_http_url(url: str) -> None:
    """Raise ValueError unless ``url`` has an http(s) scheme and a host."""
    if url is None or not str(url).strip():
        raise ValueError("URL cannot be empty")

    try:
        parsed = urlparse(str(url).strip())
        host = parsed.hostname
    except ValueError as e:
        raise ValueError(f"invalid URL format: {e}") from e

    if not parsed.scheme:
        raise ValueError("URL must include a scheme (http or https)")
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValueError(
            f"unsupported URL scheme '{parsed.scheme}', only http and https are supported"
        )
    if not host:
        raise ValueError("URL must include a host")
