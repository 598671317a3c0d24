"""Errores del dominio.

Por qué una jerarquía propia:
- Cada fallo de una ejecución se reduce a un `ErrorKind` estable que la CLI
  puede reportar (y un scheduler externo registrar) sin conocer httpx ni
  Playwright.
- Los adaptadores pueden adjuntar una clasificación de red (`failure`) que el
  runner de reintentos entiende sin importar el backend concreto.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of failure a pipeline run can end with."""

    EMPTY_INPUT = "empty-input"
    NO_DIGITS = "no-digits"
    ELEMENT_NOT_FOUND = "element-not-found"
    TRANSIENT_NETWORK = "transient-network"
    TERMINAL_NETWORK = "terminal-network"
    DELIVERY_REJECTED = "delivery-rejected"
    CONFIGURATION_MISSING = "configuration-missing"


class FailureClass(str, Enum):
    """Clasificación de un fallo de red; solo estas clases se reintentan."""

    CONNECTION_TIMEOUT = "connection-timeout"
    CONNECTION_ABORTED = "connection-aborted"
    NAME_RESOLUTION = "name-resolution-failure"
    CONNECTION_REFUSED = "connection-refused"
    UPSTREAM_5XX = "upstream-5xx"


class JackpotError(Exception):
    """Base exception for every toto-jackpot failure."""

    kind: ErrorKind = ErrorKind.TERMINAL_NETWORK

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NormalizationError(JackpotError):
    """El texto extraído no se puede convertir en un valor canónico."""

    def __init__(self, kind: ErrorKind, message: str, raw: str | None = None) -> None:
        super().__init__(message, {"raw": raw} if raw is not None else None)
        self.kind = kind
        self.raw = raw


class ElementNotFoundError(JackpotError):
    kind = ErrorKind.ELEMENT_NOT_FOUND

    def __init__(self, selector: str) -> None:
        super().__init__(
            f"Jackpot element '{selector}' not found. The website structure might have changed.",
            {"selector": selector},
        )
        self.selector = selector


class TransportError(JackpotError):
    """Fallo de transporte ya clasificado por un adaptador.

    `failure` es `None` cuando el adaptador no pudo clasificarlo (terminal).
    """

    def __init__(
        self,
        message: str,
        *,
        failure: FailureClass | None = None,
        status_code: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if failure is not None:
            details["failure"] = failure.value
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.failure = failure
        self.status_code = status_code
        self.kind = ErrorKind.TRANSIENT_NETWORK if failure is not None else ErrorKind.TERMINAL_NETWORK


class DeliveryRejectedError(JackpotError):
    """El endpoint de mensajería rechazó el mensaje (nunca se reintenta)."""

    kind = ErrorKind.DELIVERY_REJECTED

    def __init__(self, message: str, *, status_code: int | None = None, error_code: int | None = None) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if error_code is not None:
            details["error_code"] = error_code
        super().__init__(message, details)
        self.status_code = status_code
        self.error_code = error_code


class ConfigurationMissingError(JackpotError):
    kind = ErrorKind.CONFIGURATION_MISSING

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Missing Telegram credentials: " + ", ".join(missing),
            {"missing": list(missing)},
        )
        self.missing = list(missing)
