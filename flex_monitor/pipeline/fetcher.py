"""SourceFetcher - retrieves a source payload over HTTP."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from ..core.domain import SourceSpec
from ..core.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 60.0
USER_AGENT = "Enhanced-Flex-Monitor/1.0"
ACCEPT = "application/json, text/csv, */*"


class SourceFetcher:
    """GET the source URL; the fallback URL is tried once on failure."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self._session = session or requests.Session()
        self._timeout = timeout

    def fetch(self, source: SourceSpec) -> bytes:
        try:
            return self.fetch_url(source.url)
        except FetchError as e:
            if not source.fallback_url:
                raise
            logger.warning(
                "[FETCH] Primary failed source=%s, trying fallback url=%s: %s",
                source.name, source.fallback_url, e,
            )
            return self.fetch_url(source.fallback_url)

    def fetch_url(self, url: str) -> bytes:
        headers = {"User-Agent": USER_AGENT, "Accept": ACCEPT}
        try:
            response = self._session.get(url, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise FetchError(url, f"HTTP {response.status_code}")

        logger.debug("[FETCH] url=%s bytes=%d", url, len(response.content))
        return response.content
