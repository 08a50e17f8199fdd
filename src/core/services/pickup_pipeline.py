"""Pickup planning orchestration.

This module turns a flight number and a starting point into a `PickupPlan`:
it normalizes the flight number, fetches the flight snapshot and the driving
estimate, derives the departure time and asks the advisor for a short tip.
The CLI and the HTTP API both delegate here, which keeps presentation
concerns (status codes, tables) out of the pipeline.

Every stage gates the next one. Flight and traffic lookups are independent,
so they run concurrently, but both are awaited before the arithmetic step.
Only the advisory stage degrades gracefully; any other failure aborts the run
and no partial plan is produced.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

import httpx

from adapters.ai_advisor import OpenAIAdvisor
from adapters.aviationstack import AviationstackFlightProvider
from adapters.distance_matrix import DistanceMatrixTrafficProvider
from core.config import AppSettings
from core.domain.models import (
    DrivingEstimate,
    DrivingSummary,
    FlightSnapshot,
    FlightSummary,
    PickupPlan,
)
from core.errors import InvalidInputError, ProviderError, UpstreamUnavailableError
from core.interfaces.providers import Advisor, FlightDataProvider, TrafficProvider
from core.services.advice import FALLBACK_ADVICE
from core.services.departure import DEFAULT_BUFFER_MINUTES, compute_departure, round_minutes
from core.services.flight_number import normalize_flight_number

logger = logging.getLogger(__name__)

FLIGHT_UNAVAILABLE = "Unable to fetch flight information"
TRAFFIC_UNAVAILABLE = "Unable to fetch traffic information"
INVALID_FLIGHT_NUMBER = "Unable to parse flight number"

_UPSTREAM_ERRORS = (ProviderError, httpx.HTTPError)


@dataclass
class PickupRequest:
    """Parameters of one pipeline run."""

    flight_number: str
    current_location: str
    airport_code: str
    buffer_minutes: float = DEFAULT_BUFFER_MINUTES


@dataclass
class Collaborators:
    """External services the pipeline talks to."""

    flights: FlightDataProvider
    traffic: TrafficProvider
    advisor: Advisor


def build_collaborators(settings: AppSettings | None = None) -> Collaborators:
    settings = settings or AppSettings()
    return Collaborators(
        flights=AviationstackFlightProvider(settings),
        traffic=DistanceMatrixTrafficProvider(settings),
        advisor=OpenAIAdvisor(settings),
    )


def airport_destination(airport_code: str) -> str:
    return f"{airport_code.strip()} Airport"


async def fetch_flight(flights: FlightDataProvider, flight_number: str) -> FlightSnapshot:
    try:
        return await flights.lookup(flight_number)
    except _UPSTREAM_ERRORS as exc:
        logger.warning("Flight API error for %s: %s", flight_number, exc)
        raise UpstreamUnavailableError(FLIGHT_UNAVAILABLE) from exc


async def _fetch_estimate(traffic: TrafficProvider, origin: str, destination: str) -> DrivingEstimate:
    try:
        return await traffic.estimate(origin, destination)
    except _UPSTREAM_ERRORS as exc:
        logger.warning("Traffic API error (%s -> %s): %s", origin, destination, exc)
        raise UpstreamUnavailableError(TRAFFIC_UNAVAILABLE) from exc


async def _fetch_advice(
    advisor: Advisor,
    snapshot: FlightSnapshot,
    estimate: DrivingEstimate,
    departure_at: datetime,
) -> str:
    try:
        advice = await advisor.advise(snapshot, estimate, departure_at)
    except Exception as exc:
        logger.warning("Advice unavailable, using fallback: %s", exc)
        return FALLBACK_ADVICE
    advice = (advice or "").strip()
    return advice or FALLBACK_ADVICE


async def plan_pickup(
    *,
    request: PickupRequest,
    collaborators: Collaborators,
) -> PickupPlan:
    flight_number = await normalize_flight_number(
        request.flight_number,
        extractor=collaborators.advisor,
    )
    if flight_number is None:
        raise InvalidInputError(INVALID_FLIGHT_NUMBER)

    flight_result, traffic_result = await asyncio.gather(
        fetch_flight(collaborators.flights, flight_number),
        _fetch_estimate(
            collaborators.traffic,
            request.current_location,
            airport_destination(request.airport_code),
        ),
        return_exceptions=True,
    )
    # Flight errors win so the outcome does not depend on which call finished first.
    for result in (flight_result, traffic_result):
        if isinstance(result, BaseException):
            raise result
    snapshot: FlightSnapshot = flight_result  # type: ignore[assignment]
    estimate: DrivingEstimate = traffic_result  # type: ignore[assignment]

    departure_at = compute_departure(
        snapshot.arrival_scheduled,
        estimate.duration_minutes,
        request.buffer_minutes,
    )

    advice = await _fetch_advice(collaborators.advisor, snapshot, estimate, departure_at)

    return PickupPlan(
        flight_number=flight_number,
        flight=FlightSummary(
            airline=snapshot.airline,
            arrival=snapshot.arrival_scheduled,
            gate=snapshot.gate,
            terminal=snapshot.terminal,
            status=snapshot.status,
        ),
        driving=DrivingSummary(
            duration_minutes=round_minutes(estimate.duration_minutes),
            distance=estimate.distance_text,
        ),
        departure_at=departure_at,
        advice=advice,
    )
