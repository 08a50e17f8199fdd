"""Error taxonomy.

Two families:
- `PickupTimerError` subclasses are what callers (API/CLI) see. Each carries
  the HTTP status it maps to and a message safe to show to users.
- `ProviderError` subclasses are raised by adapters. The pipeline converts
  them into `UpstreamUnavailableError` and logs the detail.
"""

from __future__ import annotations


class PickupTimerError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(PickupTimerError):
    """The flight number could not be normalized or a field is malformed."""

    status_code = 400


class UpstreamUnavailableError(PickupTimerError):
    """Flight or traffic data could not be obtained."""

    status_code = 500


class SchedulingFaultError(PickupTimerError):
    """A reminder could not be created."""

    status_code = 500


class ReminderNotFoundError(PickupTimerError):
    status_code = 404


class ProviderError(Exception):
    """Base error for external collaborators."""


class FlightNotFoundError(ProviderError):
    pass


class RouteError(ProviderError):
    pass


class AdvisorError(ProviderError):
    pass
