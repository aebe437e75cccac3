"""App view model: refresh workflow plus the settings the screens edit.

State lives in an explicit ViewState. A refresh moves it through
Idle -> Loading -> Idle(with data | with error); only one fetch is ever
in flight, and callers arriving mid-fetch share its result.
"""

import asyncio
import logging
import sqlite3
import time as _time
from collections.abc import Iterable
from datetime import time

from blanket.config.schema import BlanketConfig
from blanket.ingest.temperature_client import TemperatureClient
from blanket.models.fetch import (
    FetchFailure,
    FetchResult,
    FetchSuccess,
    TemperatureFetchError,
)
from blanket.models.temperature import TemperatureRange, TemperatureRecord
from blanket.models.view import QuiltRow, ViewState
from blanket.notify.scheduler import LocalReminderScheduler, ReminderScheduler
from blanket.palette import ranges as range_ops
from blanket.palette.mapper import color_for, matching_range
from blanket.palette.quilt import build_quilt
from blanket.storage import preferences_repo, refresh_repo

logger = logging.getLogger(__name__)


class AppViewModel:
    def __init__(
        self,
        config: BlanketConfig,
        client: TemperatureClient | None = None,
        scheduler: ReminderScheduler | None = None,
        store: sqlite3.Connection | None = None,
    ):
        self.config = config
        self.client = client or TemperatureClient(config.api)
        self.scheduler = scheduler or LocalReminderScheduler(config.reminder)
        self.store = store
        self.state = ViewState(
            show_knit_purl=config.display.show_knit_purl,
            ranges=range_ops.ranges_from_config(config.colors.ranges),
        )
        self._inflight: asyncio.Task[FetchResult] | None = None

        if store is not None:
            self.state.postal_code = preferences_repo.get_postal_code(store)
            self.state.reminder_time = preferences_repo.get_reminder_time(store)

    # --- Refresh workflow ---

    async def refresh(self) -> FetchResult:
        """Run one fetch cycle, or join the one already in flight."""
        if self._inflight is not None:
            logger.debug("Refresh already in flight, joining it")
            return await asyncio.shield(self._inflight)

        self.state.is_loading = True
        self._inflight = asyncio.ensure_future(self._fetch_cycle(self.state.postal_code))
        return await asyncio.shield(self._inflight)

    def refresh_sync(self) -> FetchResult:
        return asyncio.run(self.refresh())

    async def _fetch_cycle(self, postal_code: str) -> FetchResult:
        started = _time.monotonic()
        try:
            result = await self.client.fetch_temperatures(postal_code)
        except Exception as e:
            # Client failures normally come back as values.
            logger.exception("Temperature client raised unexpectedly")
            result = FetchFailure(TemperatureFetchError(f"Unexpected error: {e}", cause=e))
        finally:
            self._inflight = None
            self.state.is_loading = False

        self._apply(result)
        self._log_cycle(postal_code, result, _time.monotonic() - started)
        return result

    def _apply(self, result: FetchResult) -> None:
        if isinstance(result, FetchSuccess):
            self.state.records = result.records
            self.state.has_loaded = True
            self.state.last_error = None
        else:
            logger.error("Refresh failed: %s", result.error)
            self.state.last_error = str(result.error)

    def _log_cycle(self, postal_code: str, result: FetchResult, duration: float) -> None:
        if self.store is None:
            return
        if isinstance(result, FetchSuccess):
            refresh_repo.log_refresh(
                self.store, postal_code, "ok",
                record_count=len(result.records), duration_seconds=duration,
            )
        else:
            refresh_repo.log_refresh(
                self.store, postal_code, "error",
                error_message=str(result.error), duration_seconds=duration,
            )

    # --- Records ---

    @property
    def records(self) -> tuple[TemperatureRecord, ...]:
        return self.state.records

    @property
    def latest_record(self) -> TemperatureRecord | None:
        return self.state.records[-1] if self.state.records else None

    def color_for(self, temperature: float) -> str:
        return color_for(temperature, self.state.ranges, self.config.colors.default_color)

    def range_for(self, temperature: float) -> TemperatureRange | None:
        return matching_range(temperature, self.state.ranges)

    def quilt(self) -> list[QuiltRow]:
        display = self.config.display
        return build_quilt(
            self.state.records,
            self.state.ranges,
            default_color=self.config.colors.default_color,
            show_knit_purl=self.state.show_knit_purl,
            knit_label=display.knit_label,
            purl_label=display.purl_label,
        )

    # --- Settings ---

    def set_postal_code(self, postal_code: str) -> None:
        self.state.postal_code = postal_code.strip()
        if self.store is not None:
            preferences_repo.set_postal_code(self.store, self.state.postal_code)

    def set_reminder_time(self, at: time) -> None:
        """Persist the reminder time and re-register the daily reminder."""
        self.state.reminder_time = at.replace(second=0, microsecond=0)
        if self.store is not None:
            preferences_repo.set_reminder_time(self.store, self.state.reminder_time)
        self.schedule_reminder()

    def schedule_reminder(self) -> None:
        if self.state.reminder_time is None:
            logger.info("No reminder time set, nothing to schedule")
            return
        self.scheduler.schedule_daily(self.state.reminder_time)

    def send_test_reminder(self) -> None:
        self.scheduler.schedule_once(self.config.reminder.test_delay_seconds)

    def deliver_due_reminders(self) -> int:
        """Deliver reminders that are due now. Returns how many fired."""
        return len(self.scheduler.fire_due())

    def set_show_knit_purl(self, enabled: bool) -> None:
        self.state.show_knit_purl = enabled

    # --- Range editing ---

    @property
    def ranges(self) -> list[TemperatureRange]:
        return list(self.state.ranges)

    def add_range(
        self, lower_bound: float = 0.0, upper_bound: float = 10.0, color: str | None = None
    ) -> TemperatureRange:
        color = color or self.config.colors.default_color
        self.state.ranges = range_ops.add_range(self.state.ranges, lower_bound, upper_bound, color)
        return self.state.ranges[-1]

    def update_range(self, range_id: str, **changes: float | str) -> TemperatureRange:
        self.state.ranges = range_ops.update_range(self.state.ranges, range_id, **changes)
        return next(r for r in self.state.ranges if r.id == range_id)

    def delete_range(self, range_id: str) -> None:
        self.state.ranges = range_ops.delete_range(self.state.ranges, range_id)

    def delete_ranges(self, offsets: Iterable[int]) -> None:
        self.state.ranges = range_ops.delete_ranges(self.state.ranges, offsets)

    def move_ranges(self, offsets: Iterable[int], destination: int) -> None:
        self.state.ranges = range_ops.move_ranges(self.state.ranges, offsets, destination)
