"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y redirects para la página y para Telegram.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    timeout_seconds: float | None = None,
    user_agent: str | None = None,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que página y Telegram se comporten igual.
    - Los reintentos NO viven aquí: los gestiona `ResilientRunner` por encima.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": user_agent or settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds or settings.request_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
