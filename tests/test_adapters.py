"""
Provider adapters against canned HTTP responses (httpx.MockTransport).
"""
from __future__ import annotations

import json

import httpx
import pytest

from adapters import ai_advisor
from adapters.ai_advisor import ADVICE_PROMPT, EXTRACTION_PROMPT, OpenAIAdvisor
from adapters.aviationstack import AviationstackFlightProvider, snapshot_from_record
from adapters.distance_matrix import DistanceMatrixTrafficProvider
from core.config import AppSettings
from core.domain.models import DrivingEstimate, FlightStatus
from core.errors import AdvisorError, FlightNotFoundError, ProviderError, RouteError
from core.services.advice import summarize_for_advice
from fakes import utc


AVIATIONSTACK_RECORD = {
    "flight_date": "2024-06-01",
    "flight_status": "active",
    "airline": {"name": "American Airlines", "iata": "AA"},
    "flight": {"number": "1234", "iata": "AA1234"},
    "arrival": {
        "airport": "John F Kennedy International",
        "iata": "JFK",
        "terminal": "8",
        "gate": "B22",
        "scheduled": "2024-06-01T18:00:00+00:00",
    },
}


def _settings(**overrides) -> AppSettings:
    values = {
        "aviationstack_api_key": "av-key",
        "google_maps_api_key": "gm-key",
        "ai_api_key": None,
        "ai_base_url": "https://api.example.com/v1",
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# -----------------------------------------------------------------------
# Aviationstack
# -----------------------------------------------------------------------
class TestAviationstack:
    @pytest.mark.asyncio
    async def test_lookup_parses_first_record(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [AVIATIONSTACK_RECORD, {}]})

        async with _client(handler) as client:
            provider = AviationstackFlightProvider(_settings(), client=client)
            snapshot = await provider.lookup("AA1234")

        assert seen[0].url.path == "/v1/flights"
        assert seen[0].url.params["flight_iata"] == "AA1234"
        assert seen[0].url.params["access_key"] == "av-key"
        assert snapshot.airline == "American Airlines"
        assert snapshot.flight_iata == "AA1234"
        assert snapshot.arrival_scheduled == utc(2024, 6, 1, 18, 0)
        assert snapshot.gate == "B22"
        assert snapshot.terminal == "8"
        assert snapshot.status is FlightStatus.ACTIVE
        assert snapshot.arrival_airport == "JFK"

    @pytest.mark.asyncio
    async def test_empty_result_is_not_found(self):
        async with _client(lambda request: httpx.Response(200, json={"data": []})) as client:
            provider = AviationstackFlightProvider(_settings(), client=client)
            with pytest.raises(FlightNotFoundError):
                await provider.lookup("ZZ9999")

    @pytest.mark.asyncio
    async def test_api_error_payload(self):
        body = {"error": {"code": "invalid_access_key", "message": "..."}}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            provider = AviationstackFlightProvider(_settings(), client=client)
            with pytest.raises(ProviderError, match="invalid_access_key"):
                await provider.lookup("AA1234")

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            provider = AviationstackFlightProvider(_settings(), client=client)
            with pytest.raises(ProviderError):
                await provider.lookup("AA1234")

    @pytest.mark.asyncio
    async def test_missing_key_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as client:
            provider = AviationstackFlightProvider(_settings(aviationstack_api_key=None), client=client)
            with pytest.raises(ProviderError, match="missing_aviationstack_api_key"):
                await provider.lookup("AA1234")

    def test_unknown_status_and_missing_fields(self):
        record = {
            "flight_status": "incident",
            "arrival": {"scheduled": "2024-06-01T18:00:00"},
        }
        snapshot = snapshot_from_record(record)
        assert snapshot.status is FlightStatus.UNKNOWN
        assert snapshot.airline is None
        assert snapshot.gate is None
        assert snapshot.arrival_scheduled == utc(2024, 6, 1, 18, 0)

    def test_record_without_arrival_is_not_found(self):
        with pytest.raises(FlightNotFoundError):
            snapshot_from_record({"flight_status": "scheduled"})


# -----------------------------------------------------------------------
# Distance Matrix
# -----------------------------------------------------------------------
def _matrix(element: dict, status: str = "OK") -> dict:
    return {"status": status, "rows": [{"elements": [element]}]}


class TestDistanceMatrix:
    @pytest.mark.asyncio
    async def test_prefers_duration_in_traffic(self):
        seen: list[httpx.Request] = []
        element = {
            "status": "OK",
            "duration": {"text": "32 mins", "value": 1920},
            "duration_in_traffic": {"text": "40 mins", "value": 2400},
            "distance": {"text": "24.1 km", "value": 24100},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_matrix(element))

        async with _client(handler) as client:
            provider = DistanceMatrixTrafficProvider(_settings(), client=client)
            estimate = await provider.estimate("350 5th Ave, New York", "JFK Airport")

        params = seen[0].url.params
        assert params["origins"] == "350 5th Ave, New York"
        assert params["destinations"] == "JFK Airport"
        assert params["departure_time"] == "now"
        assert params["traffic_model"] == "best_guess"
        assert params["key"] == "gm-key"
        assert estimate.duration_seconds == 2400
        assert estimate.duration_minutes == 40
        assert estimate.traffic_adjusted is True
        assert estimate.distance_text == "24.1 km"
        assert estimate.distance_meters == 24100

    @pytest.mark.asyncio
    async def test_falls_back_to_free_flow_duration(self):
        element = {
            "status": "OK",
            "duration": {"text": "32 mins", "value": 1920},
            "distance": {"text": "24.1 km", "value": 24100},
        }
        async with _client(lambda request: httpx.Response(200, json=_matrix(element))) as client:
            estimate = await DistanceMatrixTrafficProvider(_settings(), client=client).estimate("a", "b")
        assert estimate.duration_seconds == 1920
        assert estimate.traffic_adjusted is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            _matrix({"status": "ZERO_RESULTS"}),
            _matrix({"status": "NOT_FOUND"}),
            {"status": "REQUEST_DENIED", "rows": []},
            {"status": "OK", "rows": []},
            _matrix({"status": "OK", "duration": {"value": -60}}),
            _matrix({"status": "OK", "duration": {"value": 60}, "distance": {"text": "?", "value": -1}}),
        ],
    )
    async def test_non_ok_route_is_route_error(self, body):
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            provider = DistanceMatrixTrafficProvider(_settings(), client=client)
            with pytest.raises(RouteError):
                await provider.estimate("a", "b")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        provider = DistanceMatrixTrafficProvider(_settings(google_maps_api_key=""))
        with pytest.raises(ProviderError, match="missing_google_maps_api_key"):
            await provider.estimate("a", "b")


# -----------------------------------------------------------------------
# Advisor
# -----------------------------------------------------------------------
def _completion(content) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-3.5-turbo",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def _ai_settings(**overrides) -> AppSettings:
    return _settings(**{"ai_api_key": "ai-key", "ai_max_retries": 2, **overrides})


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []

    async def fake_sleep(delay: float) -> None:
        recorded.append(delay)

    monkeypatch.setattr(ai_advisor.asyncio, "sleep", fake_sleep)
    monkeypatch.setattr(ai_advisor.random, "uniform", lambda a, b: 0.0)
    return recorded


class TestAdvisor:
    @pytest.mark.asyncio
    async def test_missing_key_for_hosted_provider(self, snapshot, estimate):
        advisor = OpenAIAdvisor(_settings())
        with pytest.raises(AdvisorError, match="missing_ai_api_key"):
            await advisor.extract_flight_number("united 456")
        with pytest.raises(AdvisorError):
            await advisor.advise(snapshot, estimate, utc(2024, 6, 1, 17, 50))

    @pytest.mark.asyncio
    async def test_extract_returns_model_text(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion(" UA456 \n"))

        async with _client(handler) as client:
            advisor = OpenAIAdvisor(_ai_settings(), http_client=client)
            assert await advisor.extract_flight_number("my flight is United 456") == "UA456"

        assert seen[0].url.path == "/v1/chat/completions"
        assert seen[0].headers["authorization"] == "Bearer ai-key"
        body = json.loads(seen[0].content)
        assert body["max_tokens"] == 50
        assert body["messages"][0] == {"role": "system", "content": EXTRACTION_PROMPT}
        assert body["messages"][1] == {"role": "user", "content": "my flight is United 456"}

    @pytest.mark.asyncio
    async def test_local_server_gets_placeholder_key(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion("NOT_FOUND"))

        settings = _settings(ai_api_key=None, ai_base_url="http://localhost:11434/v1")
        async with _client(handler) as client:
            advisor = OpenAIAdvisor(settings, http_client=client)
            assert await advisor.extract_flight_number("hello") == "NOT_FOUND"

        assert seen[0].url.host == "localhost"
        assert seen[0].headers["authorization"] == "Bearer local"

    @pytest.mark.asyncio
    async def test_advise_sends_plan_summary(self, snapshot, estimate):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion("Leave early."))

        departure = utc(2024, 6, 1, 17, 50)
        async with _client(handler) as client:
            advisor = OpenAIAdvisor(_ai_settings(), http_client=client)
            assert await advisor.advise(snapshot, estimate, departure) == "Leave early."

        body = json.loads(seen[0].content)
        assert body["max_tokens"] == 200
        assert body["messages"][0]["content"] == ADVICE_PROMPT
        assert body["messages"][1]["content"] == summarize_for_advice(snapshot, estimate, departure)

    @pytest.mark.asyncio
    async def test_rate_limit_honours_retry_after(self, sleeps):
        responses = [
            httpx.Response(429, headers={"Retry-After": "2"}, json={"error": {"message": "slow down"}}),
            httpx.Response(200, json=_completion("UA456")),
        ]

        async with _client(lambda request: responses.pop(0)) as client:
            advisor = OpenAIAdvisor(_ai_settings(), http_client=client)
            assert await advisor.extract_flight_number("united 456") == "UA456"

        assert sleeps == [2.0]
        assert responses == []

    @pytest.mark.asyncio
    async def test_rate_limit_backs_off_until_retries_run_out(self, sleeps, snapshot, estimate):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, json={"error": {"message": "slow down"}})

        async with _client(handler) as client:
            advisor = OpenAIAdvisor(_ai_settings(ai_max_retries=2), http_client=client)
            with pytest.raises(AdvisorError, match="RateLimitError"):
                await advisor.advise(snapshot, estimate, utc(2024, 6, 1, 17, 50))

        assert len(calls) == 3
        assert sleeps == [1.25, 2.5]

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self, sleeps):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            advisor = OpenAIAdvisor(_ai_settings(ai_max_retries=1), http_client=client)
            with pytest.raises(AdvisorError, match="APIConnectionError"):
                await advisor.extract_flight_number("united 456")

        assert len(calls) == 2
        assert sleeps == [1.25]

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, sleeps):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "boom"}})

        async with _client(handler) as client:
            advisor = OpenAIAdvisor(_ai_settings(), http_client=client)
            with pytest.raises(AdvisorError, match="InternalServerError"):
                await advisor.extract_flight_number("united 456")

        assert len(calls) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_malformed_completion_is_advisor_error(self):
        body = {**_completion("UA456"), "choices": None}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            advisor = OpenAIAdvisor(_ai_settings(), http_client=client)
            with pytest.raises(AdvisorError, match="TypeError"):
                await advisor.extract_flight_number("united 456")

    def test_advice_summary(self, snapshot):
        estimate = DrivingEstimate(duration_seconds=2430, distance_text="24 km")
        summary = summarize_for_advice(snapshot, estimate, utc(2024, 6, 1, 17, 50))
        assert summary == (
            "Flight: AA1234, Arrival: 2024-06-01T18:00:00.000Z, "
            "Driving time: 41 minutes, Departure time: 2024-06-01T17:50:00.000Z"
        )
