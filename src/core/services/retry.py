"""Resilient operation runner: bounded retries with exponential backoff.

The runner wraps any idempotent, no-argument coroutine factory. Attempts are
numbered ``0..R``; after every failed attempt that is not the last one it
sleeps ``D * 2**attempt`` milliseconds. Only failures that classify as a
`FailureClass` are retried; anything else propagates on first occurrence.
The last error always propagates unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

import httpx

from core.config import AppSettings
from core.domain.errors import FailureClass

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[Any]]

_DNS_MESSAGE_PARTS: tuple[str, ...] = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "err_name_not_resolved",
)
_REFUSED_MESSAGE_PARTS: tuple[str, ...] = (
    "connection refused",
    "econnrefused",
    "err_connection_refused",
)


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_ms: int = 2000

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "RetryPolicy":
        return cls(max_retries=settings.max_retries, base_delay_ms=settings.retry_base_delay_ms)

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def delay_ms(self, attempt: int) -> int:
        return self.base_delay_ms * (2**attempt)


@dataclass
class OperationOutcome(Generic[T]):
    """Success value, or the last error plus the attempts spent."""

    attempts: int
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _iter_causes(exc: BaseException):
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _classify_connect_error(exc: BaseException) -> FailureClass | None:
    for cause in _iter_causes(exc):
        if isinstance(cause, socket.gaierror):
            return FailureClass.NAME_RESOLUTION
        if isinstance(cause, ConnectionRefusedError):
            return FailureClass.CONNECTION_REFUSED

    text = " ".join(str(cause) for cause in _iter_causes(exc)).lower()
    if any(part in text for part in _DNS_MESSAGE_PARTS):
        return FailureClass.NAME_RESOLUTION
    if any(part in text for part in _REFUSED_MESSAGE_PARTS):
        return FailureClass.CONNECTION_REFUSED
    return None


def classify_failure(exc: BaseException) -> FailureClass | None:
    """Map an exception to a retriable `FailureClass`, or None if terminal."""

    # Adaptadores que ya clasificaron el error (p.ej. el backend de navegador).
    explicit = getattr(exc, "failure", None)
    if isinstance(explicit, FailureClass):
        return explicit

    if isinstance(exc, httpx.HTTPStatusError):
        return FailureClass.UPSTREAM_5XX if exc.response.status_code >= 500 else None
    if isinstance(exc, httpx.TimeoutException):
        return FailureClass.CONNECTION_TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        return _classify_connect_error(exc)
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError)):
        return FailureClass.CONNECTION_ABORTED

    if isinstance(exc, socket.gaierror):
        return FailureClass.NAME_RESOLUTION
    if isinstance(exc, ConnectionRefusedError):
        return FailureClass.CONNECTION_REFUSED
    if isinstance(exc, (ConnectionAbortedError, ConnectionResetError)):
        return FailureClass.CONNECTION_ABORTED
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return FailureClass.CONNECTION_TIMEOUT
    return None


def is_retriable(exc: BaseException) -> bool:
    return classify_failure(exc) is not None


class ResilientRunner:
    """Runs idempotent async operations under a `RetryPolicy`."""

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleeper | None = None,
        classifier: Callable[[BaseException], FailureClass | None] = classify_failure,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._classify = classifier

    async def execute(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> OperationOutcome[T]:
        total = self.policy.total_attempts
        outcome: OperationOutcome[T] = OperationOutcome(attempts=0)

        for attempt in range(total):
            attempts = attempt + 1
            try:
                value = await operation()
            except Exception as exc:
                outcome = OperationOutcome(attempts=attempts, error=exc)
                is_last = attempt == self.policy.max_retries
                if is_last or self._classify(exc) is None:
                    return outcome

                delay_ms = self.policy.delay_ms(attempt)
                logger.warning(
                    "%s attempt %d/%d failed: %s. Retrying in %.1fs...",
                    label,
                    attempt + 1,
                    total,
                    exc,
                    delay_ms / 1000,
                )
                await self._sleep(delay_ms / 1000)
                continue
            return OperationOutcome(attempts=attempts, value=value)

        return outcome

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str = "operation") -> T:
        """Return the operation's result or re-raise its last error untouched."""

        outcome = await self.execute(operation, label=label)
        if outcome.error is not None:
            raise outcome.error
        return outcome.value  # type: ignore[return-value]
