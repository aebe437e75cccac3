"""Range-bucketed color mapping: first matching half-open range wins."""

from collections.abc import Sequence

from blanket.config.schema import DEFAULT_COLOR
from blanket.models.temperature import TemperatureRange


def matching_range(
    temperature: float, ranges: Sequence[TemperatureRange]
) -> TemperatureRange | None:
    """First range in list order that contains the temperature.

    Ranges may overlap; a temperature equal to a range's upper bound does
    not match that range.
    """
    for r in ranges:
        if r.contains(temperature):
            return r
    return None


def color_for(
    temperature: float,
    ranges: Sequence[TemperatureRange],
    default: str = DEFAULT_COLOR,
) -> str:
    r = matching_range(temperature, ranges)
    return r.color if r is not None else default
