"""Contrato del localizador de elementos."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ElementLocator(Protocol):
    def find_first(self, html: str, selector: str) -> str | None:
        """Texto crudo del primer elemento que casa con `selector`, o None."""

        ...
