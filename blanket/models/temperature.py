"""Temperature records and user-defined color ranges."""

from dataclasses import dataclass, field

from blanket.models.common import new_range_id


@dataclass(frozen=True)
class TemperatureRecord:
    id: int
    zip: int
    datetime: str  # YYYY-MM-DD
    temp: float  # °F


@dataclass(frozen=True)
class TemperatureRange:
    """Half-open interval [lower_bound, upper_bound) mapped to a display color."""

    lower_bound: float
    upper_bound: float
    color: str
    id: str = field(default_factory=new_range_id)

    def contains(self, temperature: float) -> bool:
        return self.lower_bound <= temperature < self.upper_bound
