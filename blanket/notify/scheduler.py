"""Local reminder scheduling.

The view model only sees the ReminderScheduler protocol. Delivery is a
Notifier; the bundled ConsoleNotifier logs and prints.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Protocol

from blanket.config.schema import ReminderConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ReminderSchedulingError(Exception):
    """Raised when a reminder cannot be registered."""


@dataclass(frozen=True)
class Notification:
    identifier: str
    title: str
    body: str


@dataclass
class Registration:
    notification: Notification
    next_fire: datetime
    daily_at: time | None = None  # None for one-shot

    @property
    def repeats(self) -> bool:
        return self.daily_at is not None


class Notifier(Protocol):
    def deliver(self, notification: Notification) -> None: ...


class ReminderScheduler(Protocol):
    def schedule_daily(self, at: time) -> None: ...

    def schedule_once(self, delay_seconds: float) -> None: ...

    def fire_due(self, now: datetime | None = None) -> list[Notification]: ...


class ConsoleNotifier:
    def deliver(self, notification: Notification) -> None:
        logger.info("Reminder %s delivered", notification.identifier)
        print(f"🧶 {notification.title}: {notification.body}")


def next_daily_fire(at: time, now: datetime) -> datetime:
    """Next wall-clock occurrence of `at`: today if still ahead, else tomorrow."""
    candidate = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class LocalReminderScheduler:
    """In-process scheduler holding one daily reminder plus one-shot test reminders.

    Registration problems are logged, never raised to the caller.
    """

    def __init__(
        self,
        config: ReminderConfig | None = None,
        notifier: Notifier | None = None,
        clock: Clock = datetime.now,
    ):
        self.config = config or ReminderConfig()
        self.notifier = notifier or ConsoleNotifier()
        self.clock = clock
        self._daily: Registration | None = None
        self._once: list[Registration] = []
        self._once_count = 0

    def _notification(self, identifier: str) -> Notification:
        return Notification(identifier, self.config.title, self.config.body)

    def schedule_daily(self, at: time) -> None:
        try:
            if not isinstance(at, time):
                raise ReminderSchedulingError(f"Expected a time of day, got {at!r}")
            at = at.replace(second=0, microsecond=0)
            self._daily = Registration(
                notification=self._notification(self.config.identifier),
                next_fire=next_daily_fire(at, self.clock()),
                daily_at=at,
            )
            logger.info(
                "Daily reminder scheduled at %s (next %s)",
                at.strftime("%H:%M"), self._daily.next_fire.isoformat(timespec="minutes"),
            )
        except ReminderSchedulingError:
            logger.exception("Error scheduling daily reminder")

    def schedule_once(self, delay_seconds: float) -> None:
        try:
            if delay_seconds <= 0:
                raise ReminderSchedulingError(
                    f"Delay must be positive, got {delay_seconds}"
                )
            self._once_count += 1
            identifier = f"{self.config.identifier}-once-{self._once_count}"
            self._once.append(
                Registration(
                    notification=self._notification(identifier),
                    next_fire=self.clock() + timedelta(seconds=delay_seconds),
                )
            )
            logger.info("One-shot reminder %s in %.1fs", identifier, delay_seconds)
        except ReminderSchedulingError:
            logger.exception("Error scheduling one-shot reminder")

    @property
    def daily_at(self) -> time | None:
        return self._daily.daily_at if self._daily is not None else None

    def pending(self) -> list[Registration]:
        regs = list(self._once)
        if self._daily is not None:
            regs.append(self._daily)
        return sorted(regs, key=lambda r: r.next_fire)

    def next_fire_at(self) -> datetime | None:
        regs = self.pending()
        return regs[0].next_fire if regs else None

    def fire_due(self, now: datetime | None = None) -> list[Notification]:
        """Deliver every registration due at `now`.

        The daily reminder fires at most once per call and then advances to
        its next occurrence; one-shots are dropped after firing.
        """
        if now is None:
            now = self.clock()
        fired: list[Notification] = []

        due_once = [r for r in self._once if r.next_fire <= now]
        self._once = [r for r in self._once if r.next_fire > now]
        for reg in due_once:
            self._deliver(reg.notification)
            fired.append(reg.notification)

        daily = self._daily
        if daily is not None and daily.daily_at is not None and daily.next_fire <= now:
            self._deliver(daily.notification)
            fired.append(daily.notification)
            daily.next_fire = next_daily_fire(daily.daily_at, now)

        return fired

    def _deliver(self, notification: Notification) -> None:
        try:
            self.notifier.deliver(notification)
        except Exception:
            logger.exception("Failed to deliver reminder %s", notification.identifier)
