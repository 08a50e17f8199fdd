"""FastAPI application.

Routes are thin: they translate JSON bodies into pipeline/scheduler calls and
map the error taxonomy onto flat `{"error": ...}` responses.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from adapters.notifier import LogNotifier
from api.schemas import (
    PlanPickupRequest,
    PlanPickupResponse,
    ReminderResponse,
    SetReminderRequest,
    SetReminderResponse,
)
from core.config import AppSettings
from core.errors import PickupTimerError, SchedulingFaultError
from core.services.departure import format_timestamp, parse_timestamp
from core.services.pickup_pipeline import (
    Collaborators,
    PickupRequest,
    build_collaborators,
    fetch_flight,
    plan_pickup,
)
from core.services.reminders import ReminderScheduler

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid')}")
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"


def create_app(
    settings: AppSettings | None = None,
    *,
    collaborators: Collaborators | None = None,
    scheduler: ReminderScheduler | None = None,
) -> FastAPI:
    settings = settings or AppSettings()
    collaborators = collaborators or build_collaborators(settings)
    scheduler = scheduler or ReminderScheduler(
        LogNotifier(),
        retention_seconds=settings.reminder_retention_seconds,
        max_reminders=settings.reminder_max_entries,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        await scheduler.shutdown()

    app = FastAPI(title="Flight Pickup Timer", lifespan=lifespan)
    app.state.settings = settings
    app.state.collaborators = collaborators
    app.state.scheduler = scheduler

    @app.exception_handler(PickupTimerError)
    async def _pickup_error(_request: Request, exc: PickupTimerError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal server error")

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "reminders": len(scheduler)}

    @app.post("/plan-pickup", response_model=PlanPickupResponse, response_model_by_alias=True)
    async def plan_pickup_route(body: PlanPickupRequest) -> PlanPickupResponse:
        buffer_minutes = (
            body.buffer_minutes if body.buffer_minutes is not None else settings.default_buffer_minutes
        )
        plan = await plan_pickup(
            request=PickupRequest(
                flight_number=body.flight_number,
                current_location=body.current_location,
                airport_code=body.airport_code,
                buffer_minutes=buffer_minutes,
            ),
            collaborators=collaborators,
        )
        return PlanPickupResponse.from_plan(plan)

    @app.post("/set-reminder", response_model=SetReminderResponse, response_model_by_alias=True)
    async def set_reminder_route(body: SetReminderRequest) -> SetReminderResponse:
        try:
            departure_at = parse_timestamp(body.departure_time)
        except ValueError as exc:
            logger.warning("Reminder error: %s", exc)
            raise SchedulingFaultError("Invalid departure time") from exc

        lead_minutes = (
            body.reminder_minutes
            if body.reminder_minutes is not None
            else settings.default_reminder_minutes
        )
        reminder = scheduler.create_reminder(departure_at, lead_minutes, channel=body.phone_number)
        local_alert = reminder.alert_at.astimezone()
        return SetReminderResponse(
            reminder_id=reminder.id,
            reminder_time=format_timestamp(reminder.alert_at),
            message=f"Reminder set for {local_alert.strftime('%Y-%m-%d %H:%M:%S %Z')}",
        )

    @app.get("/reminders/{reminder_id}", response_model=ReminderResponse, response_model_by_alias=True)
    async def get_reminder_route(reminder_id: str) -> ReminderResponse:
        return ReminderResponse.from_reminder(scheduler.get_reminder(reminder_id))

    @app.delete("/reminders/{reminder_id}", response_model=ReminderResponse, response_model_by_alias=True)
    async def cancel_reminder_route(reminder_id: str) -> ReminderResponse:
        return ReminderResponse.from_reminder(scheduler.cancel_reminder(reminder_id))

    @app.get("/flight/{flight_number}")
    async def flight_route(flight_number: str) -> dict[str, object]:
        snapshot = await fetch_flight(collaborators.flights, flight_number)
        return snapshot.model_dump(mode="json")

    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app
