"""Shared fixtures: explicit settings and in-memory collaborators."""

from __future__ import annotations

import logging

import pytest

from core.config import AppSettings
from core.interfaces import FetchOptions


class FakeFetcher:
    """Page fetcher returning queued results (exceptions are raised)."""

    def __init__(self, *results: object) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, FetchOptions]] = []

    async def fetch(self, url: str, *, options: FetchOptions) -> str:
        self.calls.append((url, options))
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return str(result)


class FakeLocator:
    def __init__(self, value: str | None) -> None:
        self.value = value
        self.calls: list[tuple[str, str]] = []

    def find_first(self, html: str, selector: str) -> str | None:
        self.calls.append((html, selector))
        return self.value


class FakeSender:
    def __init__(self, *errors: BaseException | None) -> None:
        self.errors = list(errors)
        self.sent: list[tuple[str, str, str]] = []
        self.calls = 0

    async def send(self, destination: str, text: str, *, parse_mode: str = "Markdown") -> None:
        self.calls += 1
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        self.sent.append((destination, text, parse_mode))


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def settings(monkeypatch) -> AppSettings:
    for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID"):
        monkeypatch.delenv(name, raising=False)
    return AppSettings(
        _env_file=None,
        telegram_bot_token="123:abc",
        telegram_chat_id="42",
        telegram_api_base="https://telegram.test",
        target_url="https://toto.test/",
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
