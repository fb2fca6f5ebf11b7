"""FreshnessProbe - metadata-only check of a source's last modification.

Issues a HEAD request (no payload transfer) and reads ``Last-Modified``.
When the header is missing the probe returns "now": unknown freshness is
treated as fresh. That fallback is logged at WARNING on every occurrence.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Optional

import requests

from ..core.errors import InvalidTargetError, ProbeError
from ..core.urls import validate_http_url

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 30.0
USER_AGENT = "Enhanced-Flex-Monitor/1.0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_http_date(value: str) -> datetime:
    """Parse an HTTP date (RFC 1123, RFC 850 or asctime) into aware UTC."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"unrecognized date '{value}'") from e
    if parsed is None:
        raise ValueError(f"unrecognized date '{value}'")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class FreshnessProbe:
    """HEAD-based modification time lookup.

    Args:
        session: requests.Session used for the call (shared across workers)
        timeout: per-request timeout in seconds
        clock: returns the current aware datetime (fallback value)
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session = session or requests.Session()
        self._timeout = timeout
        self._clock = clock or _utc_now

    def probe(self, check_url: str) -> datetime:
        """Return the target's modification time.

        Raises:
            InvalidTargetError: malformed URL, raised before any request
            ProbeError: transport failure, non-2xx status or bad header
        """
        try:
            validate_http_url(check_url)
        except ValueError as e:
            logger.error("[PROBE] URL validation failed url=%s: %s", check_url, e)
            raise InvalidTargetError(check_url, str(e)) from e

        start = self._clock()
        try:
            response = self._session.head(
                check_url,
                timeout=self._timeout,
                allow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        except requests.RequestException as e:
            raise ProbeError(check_url, f"HEAD request failed: {e}") from e

        logger.debug(
            "[PROBE] HEAD completed url=%s status=%s duration=%.3fs",
            check_url,
            response.status_code,
            (self._clock() - start).total_seconds(),
        )

        if not 200 <= response.status_code < 300:
            raise ProbeError(
                check_url, f"HTTP request failed with status {response.status_code}"
            )

        header = response.headers.get("Last-Modified")
        if not header:
            logger.warning(
                "[PROBE] Last-Modified header not found, using current time url=%s",
                check_url,
            )
            return self._clock()

        try:
            return parse_http_date(header)
        except ValueError as e:
            raise ProbeError(
                check_url, f"failed to parse Last-Modified header '{header}'"
            ) from e
