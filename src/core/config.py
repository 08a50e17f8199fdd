"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI ni la API.
- Permite que adaptadores (HTTP/IA) y el scheduler lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user config directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "pickup-timer"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "pickup-timer"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "pickup-timer"
    return Path.home() / ".config" / "pickup-timer"


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

    existing.update({k: v for k, v in values.items() if v})

    lines = ["# pickup-timer user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Un único contrato de configuración para CLI, API y adaptadores.
    """

    model_config = SettingsConfigDict(
        env_prefix="PICKUP_TIMER_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout per outbound HTTP request (seconds).",
    )
    user_agent: str = Field(
        default="pickup-timer/0.1",
        min_length=1,
        description="User-Agent sent to flight/traffic providers.",
    )

    aviationstack_api_key: str | None = Field(
        default=None,
        description="Access key for the Aviationstack flights API.",
    )
    aviationstack_base_url: str = Field(
        default="http://api.aviationstack.com/v1",
        min_length=8,
        description="Aviationstack API base URL.",
    )
    google_maps_api_key: str | None = Field(
        default=None,
        description="API key for the Google Distance Matrix API.",
    )
    distance_matrix_url: str = Field(
        default="https://maps.googleapis.com/maps/api/distancematrix/json",
        min_length=8,
        description="Distance Matrix endpoint.",
    )

    ai_api_key: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible advisory provider.",
    )
    ai_base_url: str = Field(
        default="https://api.openai.com/v1",
        min_length=8,
        description="OpenAI-compatible base URL.",
    )
    ai_model: str = Field(
        default="gpt-3.5-turbo",
        min_length=1,
        description="Chat model used for extraction and advice.",
    )
    ai_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for advisory provider calls (seconds).",
    )
    ai_max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Max retries on transient provider failures (rate limit, network).",
    )

    default_buffer_minutes: float = Field(
        default=30.0,
        ge=0,
        description="Minutes between flight arrival and pickup.",
    )
    default_reminder_minutes: float = Field(
        default=15.0,
        ge=0,
        description="Minutes before departure at which a reminder fires.",
    )
    reminder_retention_seconds: float = Field(
        default=3600.0,
        ge=0,
        description="How long fired/cancelled reminders stay queryable.",
    )
    reminder_max_entries: int = Field(
        default=10_000,
        ge=1,
        description="Upper bound on reminders held in memory.",
    )

    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=3000, ge=1, le=65535)
    static_dir: Path = Field(
        default=Path("public"),
        description="Directory served at / when it exists.",
    )
    log_level: str = Field(default="INFO", min_length=1)
