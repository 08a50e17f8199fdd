"""Departure-time arithmetic and timestamp helpers."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

DEFAULT_BUFFER_MINUTES = 30.0


def shift_minutes(moment: datetime, minutes: float) -> datetime:
    """Move `moment` by `minutes` on the absolute time line.

    Aware values are shifted in UTC and converted back to their own timezone,
    so DST jumps are resolved by the tz database rather than by wall-clock math.
    """

    delta = timedelta(minutes=minutes)
    if moment.tzinfo is None:
        return moment + delta
    shifted = moment.astimezone(timezone.utc) + delta
    return shifted.astimezone(moment.tzinfo)


def compute_departure(
    arrival: datetime,
    driving_minutes: float,
    buffer_minutes: float = DEFAULT_BUFFER_MINUTES,
) -> datetime:
    """Time to leave so the driver reaches the airport `buffer_minutes` after arrival.

    Past results are returned as-is; deciding what to do with them is up to the caller.
    """

    pickup = shift_minutes(arrival, buffer_minutes)
    return shift_minutes(pickup, -driving_minutes)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises `ValueError` when the text is not a timestamp.
    """

    if not isinstance(value, str) or not value.strip():
        raise ValueError("empty timestamp")
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a `Z` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def round_minutes(value: float) -> int:
    """Round half up (12.5 -> 13)."""

    return math.floor(value + 0.5)
