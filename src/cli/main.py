"""CLI (Typer): serve the API or plan a pickup from the terminal."""

from __future__ import annotations

import asyncio
import json

import typer
import uvicorn
from rich.console import Console

from api.app import create_app
from api.schemas import PlanPickupResponse
from cli import doctor
from cli.ui_components import build_advice_panel, build_flight_table, build_plan_table, print_banner
from core.config import AppSettings
from core.errors import PickupTimerError
from core.logging_config import configure_logging
from core.services.pickup_pipeline import (
    PickupRequest,
    build_collaborators,
    fetch_flight,
    plan_pickup,
)

app = typer.Typer(no_args_is_help=True, help="Work out when to leave to pick someone up at the airport.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def _main(
    log_level: str = typer.Option(None, "--log-level", help="Override PICKUP_TIMER_LOG_LEVEL."),
) -> None:
    settings = AppSettings()
    configure_logging(log_level or settings.log_level)


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address (default from settings)."),
    port: int = typer.Option(None, help="Port (default from settings)."),
) -> None:
    """Run the HTTP API."""

    settings = AppSettings()
    print_banner(_console)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def plan(
    flight_number: str = typer.Argument(..., help="Flight number or free text mentioning it."),
    current_location: str = typer.Option(..., "--from", help="Where the driver starts."),
    airport_code: str = typer.Option(..., "--airport", help="Arrival airport code (e.g. JFK)."),
    buffer_minutes: float = typer.Option(None, "--buffer", min=0, help="Minutes after arrival."),
    as_json: bool = typer.Option(False, "--json", help="Print the API JSON body instead of tables."),
) -> None:
    """Compute the departure time for one flight."""

    settings = AppSettings()
    request = PickupRequest(
        flight_number=flight_number,
        current_location=current_location,
        airport_code=airport_code,
        buffer_minutes=buffer_minutes if buffer_minutes is not None else settings.default_buffer_minutes,
    )
    try:
        result = asyncio.run(plan_pickup(request=request, collaborators=build_collaborators(settings)))
    except PickupTimerError as exc:
        _console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc

    if as_json:
        body = PlanPickupResponse.from_plan(result).model_dump(by_alias=True)
        typer.echo(json.dumps(body, indent=2, ensure_ascii=False))
        return
    _console.print(build_plan_table(result))
    _console.print(build_advice_panel(result.advice))


@app.command()
def flight(flight_number: str = typer.Argument(..., help="IATA flight code, e.g. AA1234.")) -> None:
    """Show the flight-data provider's view of a flight."""

    settings = AppSettings()
    collaborators = build_collaborators(settings)
    try:
        snapshot = asyncio.run(fetch_flight(collaborators.flights, flight_number))
    except PickupTimerError as exc:
        _console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc
    _console.print(build_flight_table(snapshot))


def run() -> None:
    app()
