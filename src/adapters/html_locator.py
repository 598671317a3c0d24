"""Localizador de elementos sobre HTML (BeautifulSoup).

Se usa igual con ambos backends de descarga: el navegador también entrega
HTML serializado (`page.content()`), así que la búsqueda del elemento es
una sola implementación.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

from core.interfaces.locator import ElementLocator


class SoupElementLocator(ElementLocator):
    """Devuelve el texto del primer elemento que casa con un selector CSS."""

    def __init__(self, parser: str = "html.parser") -> None:
        self._parser = parser

    def find_first(self, html: str, selector: str) -> str | None:
        if not html:
            return None

        soup = BeautifulSoup(html, self._parser)
        node = soup.select_one(selector)
        if node is None:
            return None
        # Sin strip: la normalización decide qué hacer con los espacios.
        return node.get_text()
