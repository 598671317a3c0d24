import logging

import httpx
import pytest

from adapters.html_locator import SoupElementLocator
from conftest import FakeFetcher, FakeLocator, FakeSender
from core.domain.errors import DeliveryRejectedError, ErrorKind, FailureClass, TransportError
from core.domain.models import PipelineStage, PlausibilityVerdict
from core.services.jackpot_pipeline import JackpotPipeline, PipelineHooks, build_failure_report
from core.services.retry import ResilientRunner, RetryPolicy


def _status_error(status: int, url: str = "https://toto.test/") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def _pipeline(settings, *, fetcher, locator, sender, sleep, stages=None) -> JackpotPipeline:
    return JackpotPipeline(
        settings=settings,
        fetcher=fetcher,
        locator=locator,
        sender=sender,
        destination=settings.telegram_chat_id,
        runner=ResilientRunner(RetryPolicy.from_settings(settings), sleep=sleep),
        hooks=PipelineHooks(stage_changed=stages.append if stages is not None else None),
    )


@pytest.mark.asyncio
async def test_happy_path_delivers_formatted_message(settings, recording_sleep) -> None:
    fetcher = FakeFetcher("<html>...</html>")
    locator = FakeLocator("5 000 000 лева")
    sender = FakeSender()
    stages: list[PipelineStage] = []

    outcome = await _pipeline(
        settings, fetcher=fetcher, locator=locator, sender=sender, sleep=recording_sleep, stages=stages
    ).run()

    assert outcome.ok
    assert outcome.jackpot is not None
    assert outcome.jackpot.canonical == "5 000 000 лв."
    assert outcome.jackpot.verdict is PlausibilityVerdict.WITHIN_RANGE
    assert outcome.message == "💰 The current Toto jackpot is: *5 000 000 лв.*"
    assert sender.sent == [("42", "💰 The current Toto jackpot is: *5 000 000 лв.*", "Markdown")]
    assert stages == [
        PipelineStage.FETCHING,
        PipelineStage.EXTRACTING,
        PipelineStage.VALIDATING,
        PipelineStage.DELIVERING,
        PipelineStage.DONE,
    ]


@pytest.mark.asyncio
async def test_fetch_receives_configured_options(settings, recording_sleep) -> None:
    fetcher = FakeFetcher("<html/>")
    await _pipeline(
        settings, fetcher=fetcher, locator=FakeLocator("1 000 000"), sender=FakeSender(), sleep=recording_sleep
    ).run()

    url, options = fetcher.calls[0]
    assert url == "https://toto.test/"
    assert options.timeout_ms == 30_000
    assert options.user_agent == settings.user_agent
    assert options.wait_selector == "div.jackpot-value"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  3   500   000   лева  ", "3 500 000 лв."),
        ("4 000 000", "4 000 000 лв."),
    ],
)
async def test_end_to_end_normalization(settings, recording_sleep, raw: str, expected: str) -> None:
    sender = FakeSender()
    outcome = await _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=FakeLocator(raw), sender=sender, sleep=recording_sleep
    ).run()

    assert outcome.jackpot is not None
    assert outcome.jackpot.canonical == expected
    assert sender.sent[0][1] == f"💰 The current Toto jackpot is: *{expected}*"


@pytest.mark.asyncio
async def test_missing_element_fails_without_retry_or_delivery(settings, recording_sleep) -> None:
    fetcher = FakeFetcher("<html/>")
    sender = FakeSender()
    stages: list[PipelineStage] = []

    outcome = await _pipeline(
        settings, fetcher=fetcher, locator=FakeLocator(None), sender=sender, sleep=recording_sleep, stages=stages
    ).run()

    assert not outcome.ok
    assert outcome.stage is PipelineStage.FAILED
    assert outcome.failure is not None
    assert outcome.failure.kind is ErrorKind.ELEMENT_NOT_FOUND
    assert outcome.failure.stage is PipelineStage.EXTRACTING
    assert len(fetcher.calls) == 1
    assert recording_sleep.delays == []
    assert sender.calls == 0
    assert stages[-1] is PipelineStage.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("raw", "kind"),
    [
        ("", ErrorKind.EMPTY_INPUT),
        ("no numbers here лева", ErrorKind.NO_DIGITS),
    ],
)
async def test_normalization_errors_keep_their_kind(settings, recording_sleep, raw: str, kind: ErrorKind) -> None:
    sender = FakeSender()
    outcome = await _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=FakeLocator(raw), sender=sender, sleep=recording_sleep
    ).run()

    assert outcome.failure is not None
    assert outcome.failure.kind is kind
    assert outcome.failure.stage is PipelineStage.VALIDATING
    assert outcome.jackpot is None
    assert sender.calls == 0


@pytest.mark.asyncio
async def test_fetch_retries_then_succeeds(settings, recording_sleep) -> None:
    fetcher = FakeFetcher(httpx.ConnectTimeout("slow"), _status_error(503), "<html/>")
    outcome = await _pipeline(
        settings, fetcher=fetcher, locator=FakeLocator("5 000 000 лева"), sender=FakeSender(), sleep=recording_sleep
    ).run()

    assert outcome.ok
    assert len(fetcher.calls) == 3
    assert recording_sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_fetch_exhaustion_is_transient_network(settings, recording_sleep) -> None:
    fetcher = FakeFetcher(_status_error(502))
    sender = FakeSender()
    outcome = await _pipeline(
        settings, fetcher=fetcher, locator=FakeLocator("5 000 000"), sender=sender, sleep=recording_sleep
    ).run()

    assert outcome.failure is not None
    assert outcome.failure.kind is ErrorKind.TRANSIENT_NETWORK
    assert outcome.failure.stage is PipelineStage.FETCHING
    assert outcome.failure.status_code == 502
    assert outcome.failure.error_code == FailureClass.UPSTREAM_5XX.value
    assert outcome.failure.attempts == 4
    assert outcome.failure.message.startswith("Fetching https://toto.test/ failed")
    assert len(fetcher.calls) == 4
    assert sender.calls == 0


@pytest.mark.asyncio
async def test_fetch_404_is_terminal(settings, recording_sleep) -> None:
    fetcher = FakeFetcher(_status_error(404))
    outcome = await _pipeline(
        settings, fetcher=fetcher, locator=FakeLocator("5 000 000"), sender=FakeSender(), sleep=recording_sleep
    ).run()

    assert outcome.failure is not None
    assert outcome.failure.kind is ErrorKind.TERMINAL_NETWORK
    assert outcome.failure.status_code == 404
    assert outcome.failure.attempts == 1
    assert len(fetcher.calls) == 1
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_delivery_retries_on_5xx(settings, recording_sleep) -> None:
    sender = FakeSender(_status_error(500, "https://telegram.test/bot/sendMessage"), None)
    outcome = await _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=FakeLocator("5 000 000"), sender=sender, sleep=recording_sleep
    ).run()

    assert outcome.ok
    assert sender.calls == 2
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_delivery_rejection_is_terminal(settings, recording_sleep) -> None:
    sender = FakeSender(DeliveryRejectedError("Telegram rejected the message: chat not found", status_code=400))
    outcome = await _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=FakeLocator("5 000 000"), sender=sender, sleep=recording_sleep
    ).run()

    assert outcome.failure is not None
    assert outcome.failure.kind is ErrorKind.DELIVERY_REJECTED
    assert outcome.failure.stage is PipelineStage.DELIVERING
    assert outcome.failure.status_code == 400
    assert outcome.message == "💰 The current Toto jackpot is: *5 000 000 лв.*"
    assert sender.calls == 1


@pytest.mark.asyncio
async def test_suspicious_value_is_delivered_with_warning(settings, recording_sleep, caplog) -> None:
    sender = FakeSender()
    with caplog.at_level(logging.WARNING, logger="core.services.jackpot_pipeline"):
        outcome = await _pipeline(
            settings, fetcher=FakeFetcher("<html/>"), locator=FakeLocator("12 лева"), sender=sender, sleep=recording_sleep
        ).run()

    assert outcome.ok
    assert outcome.jackpot is not None
    assert outcome.jackpot.verdict is PlausibilityVerdict.SUSPICIOUSLY_LOW
    assert len(sender.sent) == 1
    assert any("suspiciously-low" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_runs_share_no_state(settings, recording_sleep) -> None:
    locator = FakeLocator(None)
    pipeline = _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=locator, sender=FakeSender(), sleep=recording_sleep
    )

    first = await pipeline.run()
    locator.value = "5 000 000 лева"
    second = await pipeline.run()

    assert not first.ok
    assert second.ok
    assert second.failure is None


def test_failure_report_for_classified_transport_error() -> None:
    error = TransportError("net::ERR_NAME_NOT_RESOLVED", failure=FailureClass.NAME_RESOLUTION)
    report = build_failure_report(error, stage=PipelineStage.FETCHING, attempts=4)

    assert report.kind is ErrorKind.TRANSIENT_NETWORK
    assert report.error_code == "name-resolution-failure"
    assert report.attempts == 4


class _BrokenLocator:
    def __init__(self) -> None:
        self.calls = 0

    def find_first(self, html: str, selector: str) -> str | None:
        self.calls += 1
        raise RuntimeError("parser exploded")


@pytest.mark.asyncio
async def test_locator_exception_becomes_failure_outcome(settings, recording_sleep) -> None:
    locator = _BrokenLocator()
    sender = FakeSender()
    stages: list[PipelineStage] = []

    outcome = await _pipeline(
        settings, fetcher=FakeFetcher("<html/>"), locator=locator, sender=sender, sleep=recording_sleep, stages=stages
    ).run()

    assert outcome.stage is PipelineStage.FAILED
    assert outcome.failure is not None
    assert outcome.failure.kind is ErrorKind.ELEMENT_NOT_FOUND
    assert outcome.failure.stage is PipelineStage.EXTRACTING
    assert "parser exploded" in outcome.failure.message
    assert locator.calls == 1
    assert recording_sleep.delays == []
    assert sender.calls == 0
    assert stages[-1] is PipelineStage.FAILED


@pytest.mark.asyncio
async def test_malformed_selector_becomes_failure_outcome(settings, recording_sleep) -> None:
    broken = settings.model_copy(update={"jackpot_selector": "div..jackpot["})
    sender = FakeSender()

    outcome = await _pipeline(
        broken,
        fetcher=FakeFetcher('<div class="jackpot-value">5 000 000 лева</div>'),
        locator=SoupElementLocator(),
        sender=sender,
        sleep=recording_sleep,
    ).run()

    assert not outcome.ok
    assert outcome.failure is not None
    assert outcome.failure.stage is PipelineStage.EXTRACTING
    assert outcome.failure.message.startswith("Locating 'div..jackpot[' failed")
    assert sender.calls == 0
