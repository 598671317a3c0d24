"""Contrato del emisor de mensajes.

Reglas de diseño:
- `send` no devuelve nada: termina bien o lanza.
- Un rechazo explícito del endpoint se lanza como `DeliveryRejectedError`
  (terminal); fallos de transporte se propagan para que el runner los clasifique.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MessageSender(Protocol):
    async def send(self, destination: str, text: str, *, parse_mode: str = "Markdown") -> None:
        ...
