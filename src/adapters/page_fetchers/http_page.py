"""Backend HTTP: httpx + `raise_for_status`.

Los errores de httpx se propagan sin envolver; `classify_failure` ya sabe
leerlos (timeouts, DNS, refused, 5xx).
"""

from __future__ import annotations

import logging

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.interfaces.fetcher import FetchOptions, PageFetcher

logger = logging.getLogger(__name__)


class HttpPageFetcher(PageFetcher):
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    async def fetch(self, url: str, *, options: FetchOptions) -> str:
        async with build_async_client(
            self._settings,
            timeout_seconds=options.timeout_ms / 1000,
            user_agent=options.user_agent,
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            logger.debug("Fetched %s (HTTP %s, %d bytes)", response.url, response.status_code, len(response.content))
            return response.text
