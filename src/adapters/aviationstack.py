"""Flight data provider: Aviationstack.

- `GET {base_url}/flights?access_key=...&flight_iata=...`
- The first record of `data` is the flight we report on.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import client_scope
from core.config import AppSettings
from core.domain.models import FlightSnapshot, FlightStatus
from core.errors import FlightNotFoundError, ProviderError


def _section(record: dict[str, Any], key: str) -> dict[str, Any]:
    value = record.get(key)
    return value if isinstance(value, dict) else {}


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_arrival(value: object) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise FlightNotFoundError("Flight has no scheduled arrival")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise ProviderError(f"Unparsable arrival time: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def snapshot_from_record(record: dict[str, Any]) -> FlightSnapshot:
    """Normaliza un registro de Aviationstack como `FlightSnapshot`."""

    arrival = _section(record, "arrival")
    try:
        return FlightSnapshot(
            flight_iata=_optional_str(_section(record, "flight").get("iata")),
            airline=_optional_str(_section(record, "airline").get("name")),
            arrival_scheduled=_parse_arrival(arrival.get("scheduled")),
            gate=_optional_str(arrival.get("gate")),
            terminal=_optional_str(arrival.get("terminal")),
            status=FlightStatus.parse(record.get("flight_status")),
            arrival_airport=_optional_str(arrival.get("iata")),
        )
    except ValidationError as exc:
        raise ProviderError("aviationstack_invalid_record") from exc


class AviationstackFlightProvider:
    """Looks up a flight's arrival by IATA flight code."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    async def lookup(self, flight_iata: str) -> FlightSnapshot:
        api_key = (self._settings.aviationstack_api_key or "").strip()
        if not api_key:
            raise ProviderError("missing_aviationstack_api_key")

        url = f"{self._settings.aviationstack_base_url.rstrip('/')}/flights"
        params = {"access_key": api_key, "flight_iata": flight_iata}

        async with client_scope(self._client, self._settings) as client:
            resp = await client.get(url, params=params)

        if resp.status_code != 200:
            raise ProviderError(f"aviationstack_http_{resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError("aviationstack_invalid_json") from exc
        if not isinstance(payload, dict):
            raise ProviderError("aviationstack_unexpected_payload")
        if isinstance(payload.get("error"), dict):
            error = payload["error"]
            raise ProviderError(f"aviationstack_error:{error.get('code') or error.get('type')}")

        data = payload.get("data")
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise FlightNotFoundError("Flight not found")
        return snapshot_from_record(data[0])
