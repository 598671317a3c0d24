"""Backends de descarga de la página (detrás de `core.interfaces.PageFetcher`).

Por qué un paquete:
- Un módulo por backend (cliente HTTP ligero, navegador completo).
- `build_page_fetcher` elige backend según `AppSettings.fetcher_backend`.
"""

from adapters.page_fetchers.factory import build_page_fetcher
from adapters.page_fetchers.http_page import HttpPageFetcher

__all__ = [
    "HttpPageFetcher",
    "build_page_fetcher",
]
