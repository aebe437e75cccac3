"""BlanketBuddy dashboard: FastAPI backend serving records, quilt, ranges and preferences.

One AppViewModel lives for the process, so range edits last until restart.
A background task delivers its reminders while the app is running.
"""

import asyncio
import contextlib
import logging
from datetime import time

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from blanket.config.loader import load_config
from blanket.models.temperature import TemperatureRange
from blanket.models.view import QuiltRow
from blanket.palette.quilt import color_counts
from blanket.storage import refresh_repo
from blanket.storage.database import open_store
from blanket.viewmodel.app_view_model import AppViewModel

CONFIG_PATH = "blanket.yaml"
DB_PATH = "data/blanket.db"

logger = logging.getLogger(__name__)


async def _deliver_reminders(vm: AppViewModel) -> None:
    """Deliver due reminders every ops.reminder_poll_seconds while the app runs."""
    while True:
        try:
            vm.deliver_due_reminders()
        except Exception:
            logger.exception("Reminder delivery failed")
        await asyncio.sleep(vm.config.ops.reminder_poll_seconds)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    provider = app.dependency_overrides.get(get_view_model, get_view_model)
    task = asyncio.create_task(_deliver_reminders(provider()))
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="BlanketBuddy Dashboard", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_view_model: AppViewModel | None = None


def get_view_model() -> AppViewModel:
    global _view_model
    if _view_model is None:
        _view_model = AppViewModel(load_config(CONFIG_PATH), store=open_store(DB_PATH))
        _view_model.schedule_reminder()
    return _view_model


class RangeIn(BaseModel):
    lower_bound: float = 0.0
    upper_bound: float = 10.0
    color: str | None = None


class RangePatch(BaseModel):
    lower_bound: float | None = None
    upper_bound: float | None = None
    color: str | None = None


class RangeMove(BaseModel):
    offsets: list[int] = Field(min_length=1)
    destination: int


class PreferencesUpdate(BaseModel):
    postal_code: str | None = None
    reminder_time: time | None = None
    show_knit_purl: bool | None = None


def _range_json(r: TemperatureRange) -> dict:
    return {
        "id": r.id, "lower_bound": r.lower_bound,
        "upper_bound": r.upper_bound, "color": r.color,
    }


def _row_json(row: QuiltRow) -> dict:
    return {
        "id": row.record.id, "zip": row.record.zip,
        "datetime": row.record.datetime, "temp": row.record.temp,
        "label": row.label, "letter": row.letter, "color": row.color,
    }


def _state_json(vm: AppViewModel) -> dict:
    rows = vm.quilt()
    return {
        "postal_code": vm.state.postal_code,
        "is_loading": vm.state.is_loading,
        "error": vm.state.last_error,
        "last_refresh": refresh_repo.get_latest_refresh(vm.store) if vm.store else None,
        "latest": _row_json(rows[-1]) if rows else None,
        "records": [_row_json(r) for r in rows],
    }


# ── Records ─────────────────────────────────────────────────────


@app.get("/api/temperatures")
async def get_temperatures(vm: AppViewModel = Depends(get_view_model)):
    """Held records; fetches once if nothing has been loaded yet."""
    if not vm.state.has_loaded and vm.state.last_error is None:
        await vm.refresh()
    return _state_json(vm)


@app.post("/api/refresh")
async def refresh(vm: AppViewModel = Depends(get_view_model)):
    await vm.refresh()
    return _state_json(vm)


@app.get("/api/quilt")
def get_quilt(vm: AppViewModel = Depends(get_view_model)):
    rows = vm.quilt()
    return {"rows": [_row_json(r) for r in rows], "color_counts": color_counts(rows)}


@app.get("/api/color")
def get_color(temp: float, vm: AppViewModel = Depends(get_view_model)):
    r = vm.range_for(temp)
    return {"temp": temp, "color": vm.color_for(temp), "range_id": r.id if r else None}


@app.get("/api/refreshes")
def get_refreshes(limit: int = 20, vm: AppViewModel = Depends(get_view_model)):
    if vm.store is None:
        return []
    return refresh_repo.get_recent_refreshes(vm.store, limit)


# ── Color ranges ────────────────────────────────────────────────


@app.get("/api/ranges")
def get_ranges(vm: AppViewModel = Depends(get_view_model)):
    return [_range_json(r) for r in vm.ranges]


@app.post("/api/ranges", status_code=201)
def add_range(body: RangeIn, vm: AppViewModel = Depends(get_view_model)):
    r = vm.add_range(body.lower_bound, body.upper_bound, body.color)
    return _range_json(r)


@app.patch("/api/ranges/{range_id}")
def update_range(range_id: str, body: RangePatch, vm: AppViewModel = Depends(get_view_model)):
    changes = body.model_dump(exclude_none=True)
    try:
        r = vm.update_range(range_id, **changes)
    except KeyError:
        raise HTTPException(404, f"Range not found: {range_id}")
    return _range_json(r)


@app.delete("/api/ranges/{range_id}")
def delete_range(range_id: str, vm: AppViewModel = Depends(get_view_model)):
    try:
        vm.delete_range(range_id)
    except KeyError:
        raise HTTPException(404, f"Range not found: {range_id}")
    return {"status": "deleted", "id": range_id}


@app.post("/api/ranges/move")
def move_ranges(body: RangeMove, vm: AppViewModel = Depends(get_view_model)):
    try:
        vm.move_ranges(body.offsets, body.destination)
    except IndexError as e:
        raise HTTPException(400, str(e))
    return [_range_json(r) for r in vm.ranges]


# ── Preferences ─────────────────────────────────────────────────


@app.get("/api/preferences")
def get_preferences(vm: AppViewModel = Depends(get_view_model)):
    at = vm.state.reminder_time
    return {
        "postal_code": vm.state.postal_code,
        "reminder_time": at.strftime("%H:%M") if at else None,
        "show_knit_purl": vm.state.show_knit_purl,
    }


@app.put("/api/preferences")
def update_preferences(body: PreferencesUpdate, vm: AppViewModel = Depends(get_view_model)):
    if body.postal_code is not None:
        vm.set_postal_code(body.postal_code)
    if body.reminder_time is not None:
        vm.set_reminder_time(body.reminder_time)
    if body.show_knit_purl is not None:
        vm.set_show_knit_purl(body.show_knit_purl)
    return get_preferences(vm)


@app.post("/api/reminders/test")
def send_test_reminder(vm: AppViewModel = Depends(get_view_model)):
    vm.send_test_reminder()
    return {"status": "scheduled", "delay_seconds": vm.config.reminder.test_delay_seconds}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8778)
