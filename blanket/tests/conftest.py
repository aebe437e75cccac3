"""Shared test fixtures."""

import sqlite3
from pathlib import Path

import pytest
import yaml

from blanket.config.schema import ApiConfig, BlanketConfig, ColorConfig, RangeConfig
from blanket.models.temperature import TemperatureRecord
from blanket.storage.database import connect, run_migrations

API_BASE = "https://test-blanket.example.com"


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(
        base_url=API_BASE,
        table_id="tbl123",
        view_id="view456",
        token="test-token",
    )


@pytest.fixture
def blanket_config(api_config: ApiConfig) -> BlanketConfig:
    """Config with three simple ranges: cold, mild, hot."""
    return BlanketConfig(
        api=api_config,
        colors=ColorConfig(
            ranges=[
                RangeConfig(lower_bound=-50.0, upper_bound=40.0, color="blue"),
                RangeConfig(lower_bound=40.0, upper_bound=70.0, color="green"),
                RangeConfig(lower_bound=70.0, upper_bound=120.0, color="red"),
            ]
        ),
    )


@pytest.fixture
def payload() -> dict:
    """A response body in the table API's shape."""
    return {
        "list": [
            {"Id": 1, "zip": 75001, "datetime": "2024-01-01", "temp": 35.5},
            {"Id": 2, "zip": 75001, "datetime": "2024-01-02", "temp": 52.0},
            {"Id": 3, "zip": 75001, "datetime": "2024-01-03", "temp": 71.2},
        ],
        "pageInfo": {"totalRows": 3, "page": 1, "pageSize": 365, "isLastPage": True},
    }


@pytest.fixture
def records() -> tuple[TemperatureRecord, ...]:
    return (
        TemperatureRecord(id=1, zip=75001, datetime="2024-01-01", temp=35.5),
        TemperatureRecord(id=2, zip=75001, datetime="2024-01-02", temp=52.0),
        TemperatureRecord(id=3, zip=75001, datetime="2024-01-03", temp=71.2),
    )


@pytest.fixture
def db(tmp_path: Path) -> sqlite3.Connection:
    conn = connect(tmp_path / "test.db")
    run_migrations(conn)
    return conn


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "api": {"base_url": API_BASE, "table_id": "tbl123", "token": "test-token"},
        "display": {"show_knit_purl": True},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path
