"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- El orquestador solo expone hooks; aquí se decide cómo se ven.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import PipelineStage, PlausibilityVerdict, RunOutcome

_STAGE_ICONS: dict[PipelineStage, str] = {
    PipelineStage.FETCHING: "📡",
    PipelineStage.EXTRACTING: "🔍",
    PipelineStage.VALIDATING: "🔢",
    PipelineStage.DELIVERING: "📬",
    PipelineStage.DONE: "🎉",
    PipelineStage.FAILED: "❌",
}


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Permite desactivarlo en modos no interactivos (`--json`).
    """

    title = Text("TOTO JACKPOT", style="bold cyan")
    subtitle = Text("toto.bg • Telegram", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def stage_printer(console: Console):
    """Callback para `PipelineHooks.stage_changed`."""

    def _print(stage: PipelineStage) -> None:
        if stage is PipelineStage.IDLE:
            return
        icon = _STAGE_ICONS.get(stage, "•")
        console.print(f"{icon} {stage.value.capitalize()}...", style="dim")

    return _print


def build_outcome_panel(outcome: RunOutcome) -> Panel:
    """Panel final: valor entregado o reporte de fallo."""

    if outcome.ok and outcome.jackpot is not None:
        body = Text()
        body.append("Jackpot: ", style="bold")
        body.append(outcome.jackpot.canonical + "\n")
        verdict = outcome.jackpot.verdict
        style = "green" if verdict is PlausibilityVerdict.WITHIN_RANGE else "yellow"
        body.append("Plausibility: ", style="bold")
        body.append(verdict.value + "\n", style=style)
        if outcome.message:
            body.append("Message: ", style="bold")
            body.append(outcome.message)
        return Panel(body, title=Text("Delivered", style="bold green"), border_style="green")

    failure = outcome.failure
    body = Text()
    if failure is not None:
        body.append("Kind: ", style="bold")
        body.append(failure.kind.value + "\n", style="red")
        body.append("Stage: ", style="bold")
        body.append(failure.stage.value + "\n")
        body.append("Message: ", style="bold")
        body.append(failure.message + "\n")
        if failure.status_code is not None:
            body.append(f"Status code: {failure.status_code}\n")
        if failure.error_code is not None:
            body.append(f"Error code: {failure.error_code}\n")
        body.append(f"Attempts: {failure.attempts}", style="dim")
    return Panel(body, title=Text("Scraper failed", style="bold red"), border_style="red")


def build_checks_table(title: str) -> Table:
    table = Table(title=title)
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    return table
