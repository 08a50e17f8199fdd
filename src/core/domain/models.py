"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta y documentación autocontenida (Field) sin acoplar el Core
  a librerías de I/O.
- Normaliza datos de proveedores heterogéneos (vuelos, tráfico) en un formato común.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class FlightStatus(str, Enum):
    """Lifecycle of a flight as reported by the flight-data provider."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    LANDED = "landed"
    CANCELLED = "cancelled"
    DIVERTED = "diverted"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> "FlightStatus":
        """Map a raw provider value, falling back to `UNKNOWN`."""

        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


class FlightSnapshot(BaseModel):
    """Expected arrival of one flight, as returned by one provider request."""

    model_config = ConfigDict(frozen=True)

    flight_iata: str | None = Field(
        default=None,
        description="IATA flight code reported by the provider (p.ej. 'AA1234').",
    )
    airline: str | None = Field(
        default=None,
        description="Carrier name.",
    )
    arrival_scheduled: datetime = Field(
        ...,
        description="Scheduled arrival timestamp (timezone-aware).",
    )
    gate: str | None = None
    terminal: str | None = None
    status: FlightStatus = FlightStatus.UNKNOWN
    arrival_airport: str | None = Field(
        default=None,
        description="IATA code of the arrival airport.",
    )


class DrivingEstimate(BaseModel):
    """Driving time between two places for a departure right now."""

    model_config = ConfigDict(frozen=True)

    duration_seconds: float = Field(
        ...,
        ge=0,
        description="Traffic-adjusted duration when available, else free-flow.",
    )
    traffic_adjusted: bool = False
    distance_text: str = Field(
        default="",
        description="Distance as displayed by the provider (p.ej. '12.3 km').",
    )
    distance_meters: float = Field(default=0.0, ge=0)

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60


class FlightSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    airline: str | None = None
    arrival: datetime
    gate: str | None = None
    terminal: str | None = None
    status: FlightStatus = FlightStatus.UNKNOWN


class DrivingSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration_minutes: int
    distance: str


class PickupPlan(BaseModel):
    """Resultado de una ejecución completa del pipeline.

    Inmutable: una instancia por ejecución exitosa.
    """

    model_config = ConfigDict(frozen=True)

    flight_number: str
    flight: FlightSummary
    driving: DrivingSummary
    departure_at: datetime
    advice: str


class ReminderState(str, Enum):
    SCHEDULED = "scheduled"
    FIRED = "fired"
    CANCELLED = "cancelled"


class Reminder(BaseModel):
    """A one-shot alert tied to a departure time and a delivery channel.

    The only mutations after creation are the state transition and its
    `finished_at` timestamp, both performed by the scheduler.
    """

    id: str
    departure_at: datetime
    lead_minutes: float = Field(..., ge=0)
    alert_at: datetime
    channel: str = Field(
        ...,
        description="Opaque delivery address (p.ej. número de teléfono).",
    )
    state: ReminderState = ReminderState.SCHEDULED
    created_at: datetime
    finished_at: datetime | None = Field(
        default=None,
        description="When the reminder reached a terminal state.",
    )

    @property
    def fired(self) -> bool:
        return self.state is ReminderState.FIRED

    @property
    def is_terminal(self) -> bool:
        return self.state is not ReminderState.SCHEDULED
