from __future__ import annotations

from core.config import AppSettings
from core.interfaces.fetcher import PageFetcher


def build_page_fetcher(settings: AppSettings, backend: str | None = None) -> PageFetcher:
    """Devuelve el backend configurado (`http` por defecto)."""

    name = (backend or settings.fetcher_backend).strip().lower()
    if name == "http":
        from adapters.page_fetchers.http_page import HttpPageFetcher

        return HttpPageFetcher(settings)
    if name == "browser":
        from adapters.page_fetchers.browser_page import BrowserPageFetcher

        return BrowserPageFetcher()
    raise ValueError(f"Unknown fetcher backend: {name!r} (expected 'http' or 'browser')")
