"""Backend de navegador: Playwright (Chromium headless).

Para páginas que pintan el jackpot con JavaScript. Playwright es un extra
opcional (`pip install toto-jackpot[browser]`), por eso se importa al usar el
backend y no al importar el paquete.

Los errores de Playwright se traducen a `TransportError` con su
`FailureClass`, que el runner de reintentos entiende sin conocer Playwright.
"""

from __future__ import annotations

import logging
import time

from core.domain.errors import FailureClass, TransportError
from core.interfaces.fetcher import FetchOptions, PageFetcher

logger = logging.getLogger(__name__)

# Tope de la espera del selector; comparte el timeout de la operación con `goto`.
SELECTOR_WAIT_MS = 15_000

_CHROMIUM_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

_NET_ERROR_CLASSES: tuple[tuple[str, FailureClass], ...] = (
    ("err_name_not_resolved", FailureClass.NAME_RESOLUTION),
    ("err_connection_refused", FailureClass.CONNECTION_REFUSED),
    ("err_connection_aborted", FailureClass.CONNECTION_ABORTED),
    ("err_connection_reset", FailureClass.CONNECTION_ABORTED),
    ("err_connection_closed", FailureClass.CONNECTION_ABORTED),
    ("err_timed_out", FailureClass.CONNECTION_TIMEOUT),
    ("err_connection_timed_out", FailureClass.CONNECTION_TIMEOUT),
    ("navigating", FailureClass.CONNECTION_ABORTED),
)


def selector_wait_ms(timeout_ms: int, elapsed_ms: float) -> int:
    """Lo que queda del timeout de la operación, acotado por `SELECTOR_WAIT_MS`."""

    remaining = int(timeout_ms - elapsed_ms)
    return max(0, min(SELECTOR_WAIT_MS, remaining))


def classify_browser_message(message: str) -> FailureClass | None:
    text = message.lower()
    for part, failure in _NET_ERROR_CLASSES:
        if part in text:
            return failure
    return None


class BrowserPageFetcher(PageFetcher):
    def __init__(self, *, headless: bool = True) -> None:
        self._headless = headless

    async def fetch(self, url: str, *, options: FetchOptions) -> str:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError
        from playwright.async_api import async_playwright

        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(headless=self._headless, args=_CHROMIUM_ARGS)
                try:
                    context = await browser.new_context(user_agent=options.user_agent)
                    page = await context.new_page()

                    logger.info("Navigating to %s", url)
                    started = time.monotonic()
                    response = await page.goto(url, wait_until="networkidle", timeout=options.timeout_ms)
                    if response is not None and response.status >= 400:
                        raise TransportError(
                            f"HTTP {response.status} for {url}",
                            failure=FailureClass.UPSTREAM_5XX if response.status >= 500 else None,
                            status_code=response.status,
                        )

                    wait_ms = selector_wait_ms(options.timeout_ms, (time.monotonic() - started) * 1000)
                    if options.wait_selector and wait_ms > 0:
                        try:
                            await page.wait_for_selector(
                                options.wait_selector,
                                state="attached",
                                timeout=wait_ms,
                            )
                        except PlaywrightTimeoutError:
                            # Un elemento ausente no es transitorio: lo decide el localizador.
                            logger.warning("Selector %r did not appear on %s", options.wait_selector, url)

                    return await page.content()
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as exc:
            raise TransportError(str(exc), failure=FailureClass.CONNECTION_TIMEOUT) from exc
        except PlaywrightError as exc:
            raise TransportError(str(exc), failure=classify_browser_message(str(exc))) from exc
