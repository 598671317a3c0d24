"""CLI principal (Typer).

Por qué una CLI fina:
- Toda la lógica vive en `core.services.jackpot_pipeline`; aquí solo se
  carga la configuración, se configura logging y se traduce el resultado a
  un código de salida para el scheduler (cron/CI).
"""

from __future__ import annotations

import asyncio
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.json_exporter import export_outcome_json, outcome_to_json
from cli import doctor
from cli.ui_components import build_outcome_panel, print_banner, stage_printer
from core.config import AppSettings
from core.domain.errors import ConfigurationMissingError
from core.domain.models import FailureReport, PipelineStage, RunOutcome
from core.logging_config import configure_logging
from core.services.jackpot_pipeline import PipelineHooks, build_pipeline

app = typer.Typer(
    no_args_is_help=True,
    help="Scrape the current Toto jackpot from toto.bg and send it to Telegram.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


class Backend(str, Enum):
    HTTP = "http"
    BROWSER = "browser"


def _emit(outcome: RunOutcome, *, json_output: bool, output: Path | None) -> None:
    if output is not None:
        export_outcome_json(outcome=outcome, output_path=output)
    if json_output:
        typer.echo(outcome_to_json(outcome))
    else:
        _console.print(build_outcome_panel(outcome))


@app.command(name="run")
def run_command(
    backend: Optional[Backend] = typer.Option(
        None,
        "--backend",
        "-b",
        case_sensitive=False,
        help="Page fetcher backend (defaults to TOTO_FETCHER_BACKEND).",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the run outcome as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the outcome JSON to this path."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (defaults to TOTO_LOG_LEVEL)."),
) -> None:
    """Run one fetch -> validate -> deliver pass."""

    settings = AppSettings()
    configure_logging(log_level or settings.log_level)

    if not json_output:
        print_banner(_console)

    hooks = PipelineHooks(stage_changed=None if json_output else stage_printer(_console))
    try:
        pipeline = build_pipeline(settings, backend=backend.value if backend else None, hooks=hooks)
    except ConfigurationMissingError as exc:
        outcome = RunOutcome(
            stage=PipelineStage.FAILED,
            failure=FailureReport(kind=exc.kind, message=exc.message, stage=PipelineStage.IDLE, attempts=0),
        )
        if json_output:
            _emit(outcome, json_output=True, output=output)
        else:
            _err_console.print(f"[red]Error:[/red] {exc.message}")
            _err_console.print("Please set TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID environment variables.")
            if output is not None:
                export_outcome_json(outcome=outcome, output_path=output)
        raise typer.Exit(code=1)

    outcome = asyncio.run(pipeline.run())
    _emit(outcome, json_output=json_output, output=output)

    if not outcome.ok:
        raise typer.Exit(code=1)


def run() -> None:
    # Cyrillic + emoji on Windows terminals/CI (cp1252 vs utf-8).
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    app()


if __name__ == "__main__":
    run()
