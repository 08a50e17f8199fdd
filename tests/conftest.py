"""
Shared pytest fixtures: the AA1234 scenario and fake collaborators.
"""
from __future__ import annotations

import pytest

from core.domain.models import DrivingEstimate, FlightSnapshot, FlightStatus
from core.services.pickup_pipeline import Collaborators
from fakes import FakeAdvisor, FakeFlights, FakeTraffic, utc


# ---------------------------------------------------------------------------
# AA1234 arrives 18:00Z, 40 minutes away
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot() -> FlightSnapshot:
    return FlightSnapshot(
        flight_iata="AA1234",
        airline="American Airlines",
        arrival_scheduled=utc(2024, 6, 1, 18, 0),
        gate="B22",
        terminal="8",
        status=FlightStatus.SCHEDULED,
        arrival_airport="JFK",
    )


@pytest.fixture
def estimate() -> DrivingEstimate:
    return DrivingEstimate(
        duration_seconds=40 * 60,
        traffic_adjusted=True,
        distance_text="24.1 km",
        distance_meters=24100,
    )


@pytest.fixture
def flights(snapshot) -> FakeFlights:
    return FakeFlights(snapshot)


@pytest.fixture
def traffic(estimate) -> FakeTraffic:
    return FakeTraffic(estimate)


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor(extracted="UA456")


@pytest.fixture
def collaborators(flights, traffic, advisor) -> Collaborators:
    return Collaborators(flights=flights, traffic=traffic, advisor=advisor)
