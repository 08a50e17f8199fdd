"""Contratos de los colaboradores externos.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite intercambiar Aviationstack/Google/OpenAI por fakes en tests.

Reglas de diseño:
- Todos los métodos son asíncronos porque hacen I/O.
- Los fallos se señalan con subclases de `core.errors.ProviderError`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from core.domain.models import DrivingEstimate, FlightSnapshot


@runtime_checkable
class FlightDataProvider(Protocol):
    async def lookup(self, flight_iata: str) -> FlightSnapshot:
        """Return the snapshot for a flight or raise `FlightNotFoundError`."""

        ...


@runtime_checkable
class TrafficProvider(Protocol):
    async def estimate(self, origin: str, destination: str) -> DrivingEstimate:
        """Return the driving estimate or raise `RouteError`."""

        ...


@runtime_checkable
class FlightNumberExtractor(Protocol):
    async def extract_flight_number(self, text: str) -> str | None:
        """Return a flight number found in free text, or `None`/`"NOT_FOUND"`."""

        ...


@runtime_checkable
class Advisor(FlightNumberExtractor, Protocol):
    async def advise(
        self,
        snapshot: FlightSnapshot,
        estimate: DrivingEstimate,
        departure_at: datetime,
    ) -> str:
        """Return short pickup advice."""

        ...


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, channel: str, message: str) -> None:
        """Deliver a message; fire-and-forget."""

        ...
