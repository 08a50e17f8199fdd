"""Componentes de UI para CLI (Rich).

Separa los detalles visuales de los comandos para poder reutilizar tablas y
paneles en `plan` y `flight`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import FlightSnapshot, PickupPlan
from core.services.departure import format_timestamp


def print_banner(console: Console) -> None:
    title = Text("Flight Pickup Timer", style="bold cyan")
    subtitle = Text("Flight arrival • Live traffic • When to leave", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_flight_table(snapshot: FlightSnapshot) -> Table:
    table = Table(title=f"Flight {snapshot.flight_iata or ''}".strip())
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Airline", snapshot.airline or "-")
    table.add_row("Arrival (scheduled)", snapshot.arrival_scheduled.isoformat())
    table.add_row("Airport", snapshot.arrival_airport or "-")
    table.add_row("Terminal", snapshot.terminal or "-")
    table.add_row("Gate", snapshot.gate or "-")
    table.add_row("Status", snapshot.status.value)
    return table


def build_plan_table(plan: PickupPlan) -> Table:
    """Tabla resumen de un `PickupPlan`."""

    table = Table(title=f"Pickup plan for {plan.flight_number}")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Airline", plan.flight.airline or "-")
    table.add_row("Arrival", plan.flight.arrival.isoformat())
    table.add_row("Terminal / Gate", f"{plan.flight.terminal or '-'} / {plan.flight.gate or '-'}")
    table.add_row("Status", plan.flight.status.value)
    table.add_row("Driving time", f"{plan.driving.duration_minutes} min ({plan.driving.distance or '?'})")
    table.add_row("Leave at", Text(format_timestamp(plan.departure_at), style="bold green"))
    return table


def build_advice_panel(advice: str) -> Panel:
    return Panel(Text(advice.strip()), title=Text("Advice", style="bold yellow"), border_style="yellow")
