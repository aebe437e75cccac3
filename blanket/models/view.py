"""View-state models for the records list and quilt."""

from dataclasses import dataclass, field
from datetime import time

from blanket.models.temperature import TemperatureRange, TemperatureRecord


@dataclass
class ViewState:
    postal_code: str = ""
    records: tuple[TemperatureRecord, ...] = ()
    is_loading: bool = False
    has_loaded: bool = False  # a fetch has succeeded at least once
    last_error: str | None = None
    show_knit_purl: bool = False
    ranges: list[TemperatureRange] = field(default_factory=list)
    reminder_time: time | None = None


@dataclass(frozen=True)
class QuiltRow:
    record: TemperatureRecord
    label: str
    letter: str
    color: str
