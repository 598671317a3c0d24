"""Contrato de descarga de páginas.

Por qué Protocol:
- El cliente HTTP ligero y el navegador completo son dos variantes de la misma
  capacidad: "dada una URL y un timeout, devolver el HTML con el elemento".
- El orquestador no sabe (ni debe saber) qué backend está activo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class FetchOptions:
    """Opciones por petición que el backend debe respetar."""

    timeout_ms: int
    user_agent: str
    wait_selector: str | None = None


@runtime_checkable
class PageFetcher(Protocol):
    """Contrato mínimo para un backend de descarga.

    Reglas de diseño:
    - `fetch` es asíncrono porque hace I/O.
    - El timeout lo impone el backend; un timeout se propaga como error
      (el runner de reintentos decide si se reintenta).
    """

    async def fetch(self, url: str, *, options: FetchOptions) -> str:
        """Descarga `url` y devuelve el contenido HTML."""

        ...
