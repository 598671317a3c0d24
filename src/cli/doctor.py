"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import importlib.util

import typer
from rich.console import Console

from adapters.http_client import build_async_client
from cli.ui_components import build_checks_table
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return response.status_code < 400, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_browser() -> tuple[bool, str]:
    if importlib.util.find_spec("playwright") is None:
        return False, "playwright not installed (pip install 'toto-jackpot[browser]')"
    return True, "playwright available (run `playwright install chromium` once)"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = build_checks_table("Toto Jackpot Doctor")

    missing = settings.missing_credentials()
    if missing:
        table.add_row("Telegram credentials", "FAIL", "Missing: " + ", ".join(missing))
    else:
        table.add_row("Telegram credentials", "OK", f"chat {settings.telegram_chat_id}")

    table.add_row("Fetcher backend", "OK", settings.fetcher_backend)
    table.add_row("Retries", "OK", f"{settings.max_retries} x {settings.retry_base_delay_ms} ms base delay")

    ok_http, detail_http = asyncio.run(_check_http(settings.target_url, settings))
    table.add_row("Target page", "OK" if ok_http else "FAIL", f"{settings.target_url} -> {detail_http}")

    ok_browser, detail_browser = _check_browser()
    if ok_browser:
        table.add_row("Browser backend", "OK", detail_browser)
    elif settings.fetcher_backend == "browser":
        table.add_row("Browser backend", "FAIL", detail_browser)
    else:
        table.add_row("Browser backend", "OPTIONAL", detail_browser)

    _console.print(table)

    if missing:
        _console.print(
            "\n[yellow]Note:[/yellow] Run `toto-jackpot doctor setup-telegram` or export "
            "TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID."
        )
        raise typer.Exit(code=1)


@app.command(name="setup-telegram")
def setup_telegram() -> None:
    """Interactive Telegram setup (stores credentials in the user config .env)."""

    token = typer.prompt("Telegram bot token", hide_input=True, confirmation_prompt=False).strip()
    chat_id = typer.prompt("Telegram chat id").strip()

    if not token or not chat_id:
        raise typer.BadParameter("token and chat id are required")

    env_path = write_user_env_vars(
        {
            "TELEGRAM_BOT_TOKEN": token,
            "TELEGRAM_CHAT_ID": chat_id,
        }
    )

    _console.print(f"[green]Saved Telegram config to:[/green] {env_path}")
