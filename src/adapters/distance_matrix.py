"""Traffic provider: Google Distance Matrix.

Asks for a departure right now with `traffic_model=best_guess`. The element's
`duration_in_traffic` is preferred over the free-flow `duration`.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import client_scope
from core.config import AppSettings
from core.domain.models import DrivingEstimate
from core.errors import ProviderError, RouteError


def estimate_from_payload(payload: dict[str, Any]) -> DrivingEstimate:
    status = payload.get("status")
    if status is not None and status != "OK":
        raise RouteError(f"distance_matrix_status:{status}")

    try:
        element = payload["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise RouteError("distance_matrix_no_route") from exc
    if not isinstance(element, dict) or element.get("status") != "OK":
        element_status = element.get("status") if isinstance(element, dict) else None
        raise RouteError(f"Unable to calculate driving time ({element_status})")

    in_traffic = element.get("duration_in_traffic")
    duration = in_traffic if isinstance(in_traffic, dict) else element.get("duration")
    if not isinstance(duration, dict) or not isinstance(duration.get("value"), (int, float)):
        raise RouteError("distance_matrix_missing_duration")

    distance = element.get("distance") if isinstance(element.get("distance"), dict) else {}
    distance_value = distance.get("value")
    try:
        return DrivingEstimate(
            duration_seconds=float(duration["value"]),
            traffic_adjusted=isinstance(in_traffic, dict),
            distance_text=str(distance.get("text") or ""),
            distance_meters=float(distance_value) if isinstance(distance_value, (int, float)) else 0.0,
        )
    except ValidationError as exc:
        raise RouteError("distance_matrix_invalid_element") from exc


class DistanceMatrixTrafficProvider:
    """Driving time from an origin to a destination, adjusted for traffic."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    async def estimate(self, origin: str, destination: str) -> DrivingEstimate:
        api_key = (self._settings.google_maps_api_key or "").strip()
        if not api_key:
            raise ProviderError("missing_google_maps_api_key")

        params = {
            "origins": origin,
            "destinations": destination,
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": api_key,
        }
        async with client_scope(self._client, self._settings) as client:
            resp = await client.get(self._settings.distance_matrix_url, params=params)

        if resp.status_code != 200:
            raise ProviderError(f"distance_matrix_http_{resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError("distance_matrix_invalid_json") from exc
        if not isinstance(payload, dict):
            raise RouteError("distance_matrix_unexpected_payload")
        return estimate_from_payload(payload)
