"""Emisor de mensajes: Telegram Bot API (`sendMessage`).

Política de errores:
- 4xx o cuerpo con `ok: false` -> `DeliveryRejectedError` (terminal).
- 5xx -> `httpx.HTTPStatusError` (el runner lo reintenta).
- Errores de transporte de httpx se propagan sin tocar.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import DeliveryRejectedError
from core.interfaces.sender import MessageSender

logger = logging.getLogger(__name__)


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class TelegramSender(MessageSender):
    def __init__(
        self,
        token: str,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._settings = settings or AppSettings()
        self._transport = transport

    @property
    def endpoint(self) -> str:
        base = self._settings.telegram_api_base.rstrip("/")
        return f"{base}/bot{self._token}/sendMessage"

    async def send(self, destination: str, text: str, *, parse_mode: str = "Markdown") -> None:
        payload = {
            "chat_id": destination,
            "text": text,
            "parse_mode": parse_mode,
        }
        async with build_async_client(
            self._settings,
            extra_headers={"Accept": "application/json"},
            transport=self._transport,
        ) as client:
            response = await client.post(self.endpoint, json=payload)

        body = _safe_json(response)
        if response.status_code >= 500:
            response.raise_for_status()

        if response.status_code >= 400 or body.get("ok") is False:
            description = body.get("description") or f"HTTP {response.status_code}"
            raise DeliveryRejectedError(
                f"Telegram rejected the message: {description}",
                status_code=response.status_code,
                error_code=body.get("error_code") if isinstance(body.get("error_code"), int) else None,
            )

        logger.debug("Telegram accepted message for chat %s", destination)
