"""In-memory reminder registry with one-shot timers.

Each reminder gets its own asyncio task that sleeps until the alert time and
then calls `ReminderScheduler.fire`. The sleep is split into slices and the
remaining delay is recomputed from the wall clock after each slice, so a clock
adjustment moves the alert instead of being ignored until the full delay
elapses. A reminder whose alert time is already past fires on the next loop
tick.

The registry is bounded: fired and cancelled reminders are dropped after
`retention_seconds`, and when the registry is full the oldest finished entry
makes room for the new one.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from core.domain.models import Reminder, ReminderState
from core.errors import ReminderNotFoundError, SchedulingFaultError
from core.interfaces.providers import Notifier
from core.services.departure import shift_minutes

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = 15.0

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def reminder_message(reminder: Reminder) -> str:
    return (
        "REMINDER: Time to leave for airport pickup! "
        f"Departure time: {reminder.departure_at.isoformat()}"
    )


class ReminderScheduler:
    """Creates reminders and fires each one exactly once."""

    def __init__(
        self,
        notifier: Notifier,
        *,
        clock: Clock = utc_now,
        retention_seconds: float = 3600.0,
        max_reminders: int = 10_000,
        max_sleep_seconds: float = 60.0,
    ) -> None:
        self._notifier = notifier
        self._clock = clock
        self._retention_seconds = retention_seconds
        self._max_reminders = max_reminders
        self._max_sleep_seconds = max_sleep_seconds
        self._reminders: dict[str, Reminder] = {}
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._sequence = itertools.count(1)

    def __len__(self) -> int:
        return len(self._reminders)

    def _new_id(self) -> str:
        return f"{time.monotonic_ns():x}{next(self._sequence):04x}"

    def create_reminder(
        self,
        departure_at: datetime,
        lead_minutes: float = DEFAULT_LEAD_MINUTES,
        *,
        channel: str,
    ) -> Reminder:
        """Register a reminder and arm its timer. Needs a running event loop."""

        if lead_minutes < 0:
            raise SchedulingFaultError("Reminder lead time must not be negative")
        if departure_at.tzinfo is None:
            departure_at = departure_at.replace(tzinfo=timezone.utc)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SchedulingFaultError("Reminder scheduler is not running") from exc

        now = self._clock()
        self.purge_expired(now=now)
        self._make_room()

        reminder = Reminder(
            id=self._new_id(),
            departure_at=departure_at,
            lead_minutes=lead_minutes,
            alert_at=shift_minutes(departure_at, -lead_minutes),
            channel=channel,
            created_at=now,
        )
        self._reminders[reminder.id] = reminder

        task = loop.create_task(self._run_timer(reminder.id), name=f"reminder-{reminder.id}")
        self._timers[reminder.id] = task
        task.add_done_callback(lambda _t, rid=reminder.id: self._timers.pop(rid, None))

        logger.info("Reminder %s set for %s", reminder.id, reminder.alert_at.isoformat())
        return reminder

    def _make_room(self) -> None:
        if len(self._reminders) < self._max_reminders:
            return
        finished = [r for r in self._reminders.values() if r.is_terminal]
        if not finished:
            raise SchedulingFaultError("Reminder registry is full")
        oldest = min(finished, key=lambda r: r.finished_at or r.created_at)
        del self._reminders[oldest.id]

    def _seconds_until(self, moment: datetime) -> float:
        return (moment - self._clock()).total_seconds()

    async def _run_timer(self, reminder_id: str) -> None:
        reminder = self._reminders.get(reminder_id)
        if reminder is None:
            return
        remaining = self._seconds_until(reminder.alert_at)
        while remaining > 0:
            await asyncio.sleep(min(remaining, self._max_sleep_seconds))
            remaining = self._seconds_until(reminder.alert_at)
        await self.fire(reminder_id)

    async def fire(self, reminder_id: str) -> bool:
        """Dispatch the reminder if it is due and still scheduled.

        Returns whether a notification was dispatched. Calling it again, or
        before the alert time, is a no-op.
        """

        reminder = self._reminders.get(reminder_id)
        if reminder is None or reminder.state is not ReminderState.SCHEDULED:
            return False
        now = self._clock()
        if now < reminder.alert_at:
            return False

        # State flips before the first await so a concurrent call sees it.
        reminder.state = ReminderState.FIRED
        reminder.finished_at = now

        try:
            await self._notifier.notify(reminder.channel, reminder_message(reminder))
        except Exception:
            logger.exception("Reminder %s delivery failed", reminder_id)
        return True

    def get_reminder(self, reminder_id: str) -> Reminder:
        try:
            return self._reminders[reminder_id]
        except KeyError:
            raise ReminderNotFoundError(f"Reminder {reminder_id} not found") from None

    def list_reminders(self) -> list[Reminder]:
        return sorted(self._reminders.values(), key=lambda r: r.alert_at)

    def cancel_reminder(self, reminder_id: str) -> Reminder:
        """Move a scheduled reminder to `cancelled` and disarm its timer."""

        reminder = self.get_reminder(reminder_id)
        if reminder.state is ReminderState.SCHEDULED:
            reminder.state = ReminderState.CANCELLED
            reminder.finished_at = self._clock()
            self._disarm(reminder_id)
            logger.info("Reminder %s cancelled", reminder_id)
        return reminder

    def delete_reminder(self, reminder_id: str) -> Reminder:
        reminder = self._reminders.pop(reminder_id, None)
        if reminder is None:
            raise ReminderNotFoundError(f"Reminder {reminder_id} not found")
        self._disarm(reminder_id)
        return reminder

    def purge_expired(self, *, now: datetime | None = None) -> int:
        """Drop finished reminders older than the retention window."""

        now = now or self._clock()
        expired = [
            r.id
            for r in self._reminders.values()
            if r.finished_at is not None
            and (now - r.finished_at).total_seconds() >= self._retention_seconds
        ]
        for reminder_id in expired:
            del self._reminders[reminder_id]
        return len(expired)

    def _disarm(self, reminder_id: str) -> None:
        task = self._timers.pop(reminder_id, None)
        if task is not None and not task.done():
            task.cancel()

    async def shutdown(self) -> None:
        """Cancel every armed timer and wait for the tasks to finish."""

        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
