"""Logging de la aplicación (stdlib `logging` + Rich).

Por qué aquí:
- Los módulos solo hacen `logging.getLogger(__name__)`; quién y cómo se pinta
  lo decide la CLI una sola vez.
- Los avisos (reintentos, plausibilidad) salen por stderr y no ensucian la
  salida JSON de `run --json`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "toto-jackpot-rich"


def configure_logging(level: str | int = "INFO", *, console: Console | None = None) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Reconfigurar (p.ej. en tests con CliRunner) no debe duplicar handlers.
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
