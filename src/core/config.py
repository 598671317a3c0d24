"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/navegador/Telegram) lean config de forma consistente.
- El orquestador recibe un `AppSettings` explícito: los tests construyen uno
  propio sin tocar el entorno del proceso.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.errors import ConfigurationMissingError

DEFAULT_TARGET_URL = "https://toto.bg/"
DEFAULT_JACKPOT_SELECTOR = "div.jackpot-value"
DEFAULT_MESSAGE_TEMPLATE = "💰 The current Toto jackpot is: *{value}*"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias).

    Objetivo: poder guardar credenciales con `setup-telegram` sin editar `.env`
    en el proyecto.
    """

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "toto-jackpot"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "toto-jackpot"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "toto-jackpot"
    return Path.home() / ".config" / "toto-jackpot"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# toto-jackpot user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/orquestador.

    Las credenciales conservan sus nombres históricos (`TELEGRAM_BOT_TOKEN`,
    `TELEGRAM_CHAT_ID`); el resto usa el prefijo `TOTO_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOTO_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    telegram_bot_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TELEGRAM_BOT_TOKEN", "TOTO_TELEGRAM_BOT_TOKEN", "telegram_bot_token"),
        description="Token del bot de Telegram.",
    )
    telegram_chat_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TELEGRAM_CHAT_ID", "TOTO_TELEGRAM_CHAT_ID", "telegram_chat_id"),
        description="Chat/canal destino de la notificación.",
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        min_length=8,
        description="Base URL de la Bot API de Telegram.",
    )

    target_url: str = Field(
        default=DEFAULT_TARGET_URL,
        min_length=8,
        description="Página monitorizada.",
    )
    jackpot_selector: str = Field(
        default=DEFAULT_JACKPOT_SELECTOR,
        min_length=1,
        description="Selector CSS del contenedor del jackpot.",
    )
    message_template: str = Field(
        default=DEFAULT_MESSAGE_TEMPLATE,
        min_length=1,
        description="Plantilla del mensaje; `{value}` recibe el valor canónico.",
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Reintentos máximos ante fallos transitorios (R).",
    )
    retry_base_delay_ms: int = Field(
        default=2000,
        ge=0,
        description="Delay base del backoff exponencial (D, milisegundos).",
    )
    request_timeout_ms: int = Field(
        default=30_000,
        gt=0,
        description="Timeout por operación externa (milisegundos).",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="User-Agent para la descarga de la página.",
    )
    fetcher_backend: Literal["http", "browser"] = Field(
        default="http",
        description="Backend de descarga: cliente HTTP o navegador (Playwright).",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging de la CLI.",
    )

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000

    def missing_credentials(self) -> list[str]:
        missing: list[str] = []
        if not (self.telegram_bot_token or "").strip():
            missing.append("TELEGRAM_BOT_TOKEN")
        if not (self.telegram_chat_id or "").strip():
            missing.append("TELEGRAM_CHAT_ID")
        return missing

    def require_credentials(self) -> tuple[str, str]:
        """Devuelve (token, chat_id) o falla antes de ejecutar cualquier etapa."""

        token = (self.telegram_bot_token or "").strip()
        chat_id = (self.telegram_chat_id or "").strip()
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationMissingError(missing)
        return token, chat_id
