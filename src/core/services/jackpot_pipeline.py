"""Jackpot pipeline orchestration.

One call to `JackpotPipeline.run()` is one pass of
``idle -> fetching -> extracting -> validating -> delivering -> done``.
The first failure moves the run to ``failed`` and becomes the run's
`RunOutcome`; nothing is caught-and-continued and nothing is rolled back
(each stage either completed or never started).

The pipeline keeps no state between runs: stage bookkeeping lives in the
`_Run` created by each call. Side-effects for UI layers (progress, banners)
go through `PipelineHooks` so the CLI stays out of the core.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import httpx

from adapters.html_locator import SoupElementLocator
from adapters.page_fetchers import build_page_fetcher
from adapters.telegram_sender import TelegramSender
from core.config import AppSettings
from core.domain.errors import (
    ElementNotFoundError,
    ErrorKind,
    JackpotError,
    TransportError,
)
from core.domain.models import (
    FailureReport,
    NormalizedJackpot,
    PipelineStage,
    PlausibilityVerdict,
    RunOutcome,
)
from core.interfaces import ElementLocator, FetchOptions, MessageSender, PageFetcher
from core.services.normalization import normalize_jackpot
from core.services.retry import ResilientRunner, RetryPolicy, classify_failure

logger = logging.getLogger(__name__)

PARSE_MODE = "Markdown"


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers."""

    stage_changed: Callable[[PipelineStage], None] | None = None


class StageFailed(Exception):
    """Internal signal carrying the report of the first failed stage."""

    def __init__(self, report: FailureReport) -> None:
        super().__init__(report.message)
        self.report = report


def format_message(jackpot: NormalizedJackpot, template: str) -> str:
    return template.format(value=jackpot.canonical)


def build_failure_report(exc: BaseException, *, stage: PipelineStage, attempts: int = 1) -> FailureReport:
    """Convert any stage error into a structured report."""

    failure = classify_failure(exc)
    status_code: int | None = None
    error_code: str | None = failure.value if failure is not None else None

    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
    elif isinstance(exc, TransportError):
        status_code = exc.status_code
    else:
        status_code = getattr(exc, "status_code", None)
        raw_code = getattr(exc, "error_code", None)
        if raw_code is not None and error_code is None:
            error_code = str(raw_code)

    if isinstance(exc, JackpotError) and not isinstance(exc, TransportError):
        kind = exc.kind
        message = exc.message
    else:
        kind = ErrorKind.TRANSIENT_NETWORK if failure is not None else ErrorKind.TERMINAL_NETWORK
        message = str(exc) or exc.__class__.__name__

    return FailureReport(
        kind=kind,
        message=message,
        stage=stage,
        status_code=status_code,
        error_code=error_code,
        attempts=attempts,
    )


class _Run:
    """Bookkeeping of one pass; discarded when the pass ends."""

    def __init__(self, hooks: PipelineHooks) -> None:
        self.stage = PipelineStage.IDLE
        self._hooks = hooks

    def enter(self, stage: PipelineStage) -> None:
        logger.debug("Pipeline stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage
        if self._hooks.stage_changed:
            self._hooks.stage_changed(stage)


class JackpotPipeline:
    """Fetch -> extract -> validate -> deliver, with retries on the network stages."""

    def __init__(
        self,
        *,
        settings: AppSettings,
        fetcher: PageFetcher,
        locator: ElementLocator,
        sender: MessageSender,
        destination: str,
        runner: ResilientRunner | None = None,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.locator = locator
        self.sender = sender
        self.destination = destination
        self.runner = runner or ResilientRunner(RetryPolicy.from_settings(settings))
        self.hooks = hooks or PipelineHooks()

    async def run(self) -> RunOutcome:
        run = _Run(self.hooks)
        jackpot: NormalizedJackpot | None = None
        message: str | None = None

        try:
            run.enter(PipelineStage.FETCHING)
            html = await self._fetch()

            run.enter(PipelineStage.EXTRACTING)
            raw = self._extract(html)

            run.enter(PipelineStage.VALIDATING)
            jackpot = self._validate(raw)

            run.enter(PipelineStage.DELIVERING)
            message = format_message(jackpot, self.settings.message_template)
            await self._deliver(message)
        except StageFailed as failed:
            report = failed.report
            logger.error("Pipeline failed at %s [%s]: %s", report.stage.value, report.kind.value, report.message)
            run.enter(PipelineStage.FAILED)
            return RunOutcome(stage=PipelineStage.FAILED, jackpot=jackpot, message=message, failure=report)

        run.enter(PipelineStage.DONE)
        logger.info("Message sent successfully to Telegram")
        return RunOutcome(stage=PipelineStage.DONE, jackpot=jackpot, message=message)

    async def _fetch(self) -> str:
        options = FetchOptions(
            timeout_ms=self.settings.request_timeout_ms,
            user_agent=self.settings.user_agent,
            wait_selector=self.settings.jackpot_selector,
        )
        url = self.settings.target_url

        logger.info("Fetching %s", url)
        outcome = await self.runner.execute(lambda: self.fetcher.fetch(url, options=options), label="Fetch")
        if outcome.error is not None:
            report = build_failure_report(outcome.error, stage=PipelineStage.FETCHING, attempts=outcome.attempts)
            report = report.model_copy(update={"message": f"Fetching {url} failed: {report.message}"})
            raise StageFailed(report) from outcome.error

        logger.info("Page fetched successfully")
        return outcome.value or ""

    def _extract(self, html: str) -> str | None:
        selector = self.settings.jackpot_selector
        try:
            raw = self.locator.find_first(html, selector)
        except JackpotError as exc:
            raise StageFailed(build_failure_report(exc, stage=PipelineStage.EXTRACTING)) from exc
        except Exception as exc:
            # p. ej. un selector CSS mal formado (soupsieve.SelectorSyntaxError)
            report = FailureReport(
                kind=ErrorKind.ELEMENT_NOT_FOUND,
                message=f"Locating '{selector}' failed: {str(exc) or exc.__class__.__name__}",
                stage=PipelineStage.EXTRACTING,
            )
            raise StageFailed(report) from exc

        if raw is None:
            error = ElementNotFoundError(selector)
            raise StageFailed(build_failure_report(error, stage=PipelineStage.EXTRACTING)) from error

        logger.info('Raw value found: "%s"', raw)
        return raw

    def _validate(self, raw: str | None) -> NormalizedJackpot:
        try:
            jackpot = normalize_jackpot(raw)
        except JackpotError as exc:
            raise StageFailed(build_failure_report(exc, stage=PipelineStage.VALIDATING)) from exc

        logger.info('Cleaned value: "%s"', jackpot.canonical)
        if jackpot.verdict is not PlausibilityVerdict.WITHIN_RANGE:
            logger.warning(
                "Jackpot value %s looks %s (magnitude=%s); sending anyway",
                jackpot.canonical,
                jackpot.verdict.value,
                jackpot.magnitude,
            )
        return jackpot

    async def _deliver(self, message: str) -> None:
        logger.info('Preparing to send message: "%s"', message)
        outcome = await self.runner.execute(
            lambda: self.sender.send(self.destination, message, parse_mode=PARSE_MODE),
            label="Delivery",
        )
        if outcome.error is not None:
            report = build_failure_report(outcome.error, stage=PipelineStage.DELIVERING, attempts=outcome.attempts)
            raise StageFailed(report) from outcome.error


def build_pipeline(
    settings: AppSettings,
    *,
    backend: str | None = None,
    hooks: PipelineHooks | None = None,
) -> JackpotPipeline:
    """Wire the default collaborators; fails before any stage if credentials are missing."""

    token, chat_id = settings.require_credentials()
    return JackpotPipeline(
        settings=settings,
        fetcher=build_page_fetcher(settings, backend),
        locator=SoupElementLocator(),
        sender=TelegramSender(token, settings),
        destination=chat_id,
        hooks=hooks,
    )


async def run_once(
    *,
    settings: AppSettings,
    backend: str | None = None,
    hooks: PipelineHooks | None = None,
) -> RunOutcome:
    pipeline = build_pipeline(settings, backend=backend, hooks=hooks)
    return await pipeline.run()
