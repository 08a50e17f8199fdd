"""Request/response bodies of the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.domain.models import PickupPlan, Reminder
from core.services.departure import format_timestamp


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlanPickupRequest(_CamelModel):
    flight_number: str = Field(..., max_length=500)
    current_location: str = Field(..., min_length=1, max_length=500)
    airport_code: str = Field(..., min_length=1, max_length=100)
    buffer_minutes: float | None = Field(default=None, ge=0, le=24 * 60)


class FlightInfo(_CamelModel):
    airline: str | None
    arrival: str
    gate: str | None
    terminal: str | None
    status: str


class DrivingTime(_CamelModel):
    duration: int
    distance: str


class PlanPickupResponse(_CamelModel):
    flight_number: str
    flight_info: FlightInfo
    driving_time: DrivingTime
    departure_time: str
    advice: str

    @classmethod
    def from_plan(cls, plan: PickupPlan) -> "PlanPickupResponse":
        return cls(
            flight_number=plan.flight_number,
            flight_info=FlightInfo(
                airline=plan.flight.airline,
                arrival=plan.flight.arrival.isoformat(),
                gate=plan.flight.gate,
                terminal=plan.flight.terminal,
                status=plan.flight.status.value,
            ),
            driving_time=DrivingTime(
                duration=plan.driving.duration_minutes,
                distance=plan.driving.distance,
            ),
            departure_time=format_timestamp(plan.departure_at),
            advice=plan.advice,
        )


class SetReminderRequest(_CamelModel):
    # Parsed by the handler: an unparsable value is a scheduling fault, not a 400.
    departure_time: str
    reminder_minutes: float | None = Field(default=None, ge=0, le=7 * 24 * 60)
    phone_number: str = Field(..., min_length=1, max_length=64)


class SetReminderResponse(_CamelModel):
    success: bool = True
    reminder_id: str
    reminder_time: str
    message: str


class ReminderResponse(_CamelModel):
    reminder_id: str
    departure_time: str
    reminder_time: str
    reminder_minutes: float
    state: str
    fired: bool

    @classmethod
    def from_reminder(cls, reminder: Reminder) -> "ReminderResponse":
        return cls(
            reminder_id=reminder.id,
            departure_time=format_timestamp(reminder.departure_at),
            reminder_time=format_timestamp(reminder.alert_at),
            reminder_minutes=reminder.lead_minutes,
            state=reminder.state.value,
            fired=reminder.fired,
        )
