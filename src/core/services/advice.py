"""Advisory text shared pieces: fallback string and the prompt summary."""

from __future__ import annotations

from datetime import datetime

from core.domain.models import DrivingEstimate, FlightSnapshot
from core.services.departure import format_timestamp, round_minutes

FALLBACK_ADVICE = "Safe travels! Remember to account for parking and walking time at the airport."


def summarize_for_advice(
    snapshot: FlightSnapshot,
    estimate: DrivingEstimate,
    departure_at: datetime,
) -> str:
    return (
        f"Flight: {snapshot.flight_iata or 'Unknown'}, "
        f"Arrival: {format_timestamp(snapshot.arrival_scheduled)}, "
        f"Driving time: {round_minutes(estimate.duration_minutes)} minutes, "
        f"Departure time: {format_timestamp(departure_at)}"
    )
