"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _key_row(table: Table, label: str, value: str | None, missing_hint: str) -> None:
    if (value or "").strip():
        table.add_row(label, "OK", "configured")
    else:
        table.add_row(label, "MISSING", missing_hint)


@app.command()
def run() -> None:
    """Check API keys and provider connectivity."""

    settings = AppSettings()

    table = Table(title="Pickup Timer Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    _key_row(table, "Aviationstack key", settings.aviationstack_api_key, "flight lookups will fail")
    _key_row(table, "Google Maps key", settings.google_maps_api_key, "traffic lookups will fail")
    _key_row(table, "AI key", settings.ai_api_key, "advice falls back to a fixed tip")
    table.add_row("AI base_url", "OK", settings.ai_base_url)
    table.add_row("AI model", "OK", settings.ai_model)

    for label, url in (
        ("Aviationstack reachable", settings.aviationstack_base_url),
        ("Distance Matrix reachable", settings.distance_matrix_url),
    ):
        ok, detail = asyncio.run(_check_http(url, settings))
        table.add_row(label, "OK" if ok else "FAIL", detail)

    _console.print(table)


@app.command(name="setup")
def setup() -> None:
    """Interactive API key setup (stored in the user config .env)."""

    aviationstack = typer.prompt("Aviationstack API key", hide_input=True, default="", show_default=False)
    google = typer.prompt("Google Maps API key", hide_input=True, default="", show_default=False)
    base_url = typer.prompt("AI base URL", default=AppSettings().ai_base_url, show_default=True).strip()
    model = typer.prompt("AI model", default=AppSettings().ai_model, show_default=True).strip()
    ai_key = typer.prompt("AI API key", hide_input=True, default="", show_default=False)

    if not base_url or not model:
        raise typer.BadParameter("base_url and model are required")

    env_path = write_user_env_vars(
        {
            "PICKUP_TIMER_AVIATIONSTACK_API_KEY": aviationstack.strip(),
            "PICKUP_TIMER_GOOGLE_MAPS_API_KEY": google.strip(),
            "PICKUP_TIMER_AI_BASE_URL": base_url,
            "PICKUP_TIMER_AI_MODEL": model,
            "PICKUP_TIMER_AI_API_KEY": ai_key.strip(),
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
