"""Tests for the dashboard API."""

import time
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from blanket.config.schema import OpsConfig, ReminderConfig
from blanket.dashboard import app, get_view_model
from blanket.ingest.temperature_client import TemperatureClient
from blanket.models.fetch import FetchFailure, FetchSuccess, TemperatureFetchError
from blanket.notify.scheduler import ConsoleNotifier, LocalReminderScheduler
from blanket.viewmodel.app_view_model import AppViewModel


@pytest.fixture
def fake_client(records) -> MagicMock:
    client = MagicMock(spec=TemperatureClient)
    client.fetch_temperatures = AsyncMock(return_value=FetchSuccess(records))
    return client


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=ConsoleNotifier)


@pytest.fixture
def vm(blanket_config, fake_client, notifier, db) -> AppViewModel:
    config = blanket_config.model_copy(update={
        "reminder": ReminderConfig(test_delay_seconds=0.1),
        "ops": OpsConfig(reminder_poll_seconds=1),
    })
    scheduler = LocalReminderScheduler(config.reminder, notifier=notifier)
    return AppViewModel(config, client=fake_client, scheduler=scheduler, store=db)


@pytest.fixture
def api(vm):
    app.dependency_overrides[get_view_model] = lambda: vm
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _wait_for(condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.05)
    return True


class TestRecords:
    def test_first_read_fetches(self, api, fake_client):
        resp = api.get("/api/temperatures")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["records"]) == 3
        assert data["latest"]["label"] == "January 3"
        assert data["latest"]["color"] == "red"
        assert data["error"] is None

        api.get("/api/temperatures")
        assert fake_client.fetch_temperatures.await_count == 1

    def test_refresh_failure_reports_error(self, api, fake_client, records):
        api.post("/api/refresh")
        fake_client.fetch_temperatures.return_value = FetchFailure(
            TemperatureFetchError("Temperature API returned HTTP 502", status_code=502)
        )
        data = api.post("/api/refresh").json()
        assert "HTTP 502" in data["error"]
        assert len(data["records"]) == 3

    def test_quilt_counts(self, api):
        api.post("/api/refresh")
        data = api.get("/api/quilt").json()
        assert [r["color"] for r in data["rows"]] == ["blue", "green", "red"]
        assert data["color_counts"] == {"blue": 1, "green": 1, "red": 1}

    def test_color(self, api, vm):
        data = api.get("/api/color", params={"temp": 55}).json()
        assert data["color"] == "green"
        assert data["range_id"] == vm.ranges[1].id

        data = api.get("/api/color", params={"temp": 500}).json()
        assert data == {"temp": 500.0, "color": "white", "range_id": None}

    def test_empty_success_is_not_refetched(self, api, fake_client):
        fake_client.fetch_temperatures.return_value = FetchSuccess(())
        api.get("/api/temperatures")
        data = api.get("/api/temperatures").json()
        assert data["records"] == []
        assert data["latest"] is None
        assert fake_client.fetch_temperatures.await_count == 1

    def test_state_includes_last_refresh(self, api):
        assert api.get("/api/temperatures").json()["last_refresh"]["record_count"] == 3

    def test_refresh_log(self, api):
        api.post("/api/refresh")
        rows = api.get("/api/refreshes").json()
        assert len(rows) == 1
        assert rows[0]["status"] == "ok"
        assert rows[0]["record_count"] == 3


class TestRanges:
    def test_list(self, api):
        colors = [r["color"] for r in api.get("/api/ranges").json()]
        assert colors == ["blue", "green", "red"]

    def test_add_defaults(self, api):
        resp = api.post("/api/ranges", json={})
        assert resp.status_code == 201
        body = resp.json()
        assert (body["lower_bound"], body["upper_bound"], body["color"]) == (0.0, 10.0, "white")

    def test_patch_and_delete(self, api):
        range_id = api.get("/api/ranges").json()[0]["id"]
        resp = api.patch(f"/api/ranges/{range_id}", json={"color": "navy"})
        assert resp.json()["color"] == "navy"
        assert resp.json()["lower_bound"] == -50.0

        assert api.delete(f"/api/ranges/{range_id}").status_code == 200
        assert len(api.get("/api/ranges").json()) == 2

    def test_unknown_range_404(self, api):
        assert api.patch("/api/ranges/nope", json={"color": "x"}).status_code == 404
        assert api.delete("/api/ranges/nope").status_code == 404

    def test_move(self, api):
        resp = api.post("/api/ranges/move", json={"offsets": [2], "destination": 0})
        assert [r["color"] for r in resp.json()] == ["red", "blue", "green"]

    def test_move_out_of_bounds(self, api):
        resp = api.post("/api/ranges/move", json={"offsets": [7], "destination": 0})
        assert resp.status_code == 400


class TestPreferences:
    def test_update(self, api, vm, db):
        resp = api.put(
            "/api/preferences",
            json={"postal_code": " 75001 ", "reminder_time": "20:15", "show_knit_purl": True},
        )
        assert resp.json() == {
            "postal_code": "75001", "reminder_time": "20:15", "show_knit_purl": True,
        }
        assert vm.scheduler.daily_at.strftime("%H:%M") == "20:15"

        rows = api.post("/api/refresh").json()["records"]
        assert [r["letter"] for r in rows] == ["K", "P", "K"]

    def test_test_reminder_is_delivered(self, api, notifier):
        resp = api.post("/api/reminders/test")
        assert resp.json() == {"status": "scheduled", "delay_seconds": 0.1}

        assert _wait_for(lambda: notifier.deliver.call_count == 1)
        delivered = notifier.deliver.call_args.args[0]
        assert delivered.identifier == "blanketReminder-once-1"
        assert delivered.title == "Daily Blanket Reminder"

    def test_daily_reminder_is_delivered_when_due(self, api, vm, notifier):
        vm.set_reminder_time(datetime.now().time())
        registration = vm.scheduler.pending()[0]
        registration.next_fire = datetime.now()

        assert _wait_for(lambda: notifier.deliver.call_count == 1)
        assert notifier.deliver.call_args.args[0].identifier == "blanketReminder"
        assert vm.scheduler.next_fire_at() > datetime.now()
