"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el orquestador depende de abstracciones,
  no de httpx, Playwright ni Telegram.
"""

from core.interfaces.fetcher import FetchOptions, PageFetcher
from core.interfaces.locator import ElementLocator
from core.interfaces.sender import MessageSender

__all__ = [
    "ElementLocator",
    "FetchOptions",
    "MessageSender",
    "PageFetcher",
]
