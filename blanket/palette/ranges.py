"""Editing operations on the ordered color-range list.

Every operation returns a new list; order is significant because the
mapper picks the first matching range.
"""

import dataclasses
import logging
from collections.abc import Iterable, Sequence

from blanket.config.schema import DEFAULT_COLOR, RangeConfig
from blanket.models.temperature import TemperatureRange

logger = logging.getLogger(__name__)


def ranges_from_config(configs: Iterable[RangeConfig]) -> list[TemperatureRange]:
    return [
        _checked(TemperatureRange(c.lower_bound, c.upper_bound, c.color))
        for c in configs
    ]


def add_range(
    ranges: Sequence[TemperatureRange],
    lower_bound: float = 0.0,
    upper_bound: float = 10.0,
    color: str = DEFAULT_COLOR,
) -> list[TemperatureRange]:
    """Append a new range at the end of the list."""
    return [*ranges, _checked(TemperatureRange(lower_bound, upper_bound, color))]


def update_range(
    ranges: Sequence[TemperatureRange], range_id: str, **changes: float | str
) -> list[TemperatureRange]:
    """Replace fields of the range with the given id, keeping its position."""
    updated: list[TemperatureRange] = []
    found = False
    for r in ranges:
        if r.id == range_id:
            r = _checked(dataclasses.replace(r, **changes))
            found = True
        updated.append(r)
    if not found:
        raise KeyError(f"Unknown range id: {range_id}")
    return updated


def delete_ranges(
    ranges: Sequence[TemperatureRange], offsets: Iterable[int]
) -> list[TemperatureRange]:
    drop = set(offsets)
    return [r for i, r in enumerate(ranges) if i not in drop]


def delete_range(
    ranges: Sequence[TemperatureRange], range_id: str
) -> list[TemperatureRange]:
    for i, r in enumerate(ranges):
        if r.id == range_id:
            return delete_ranges(ranges, [i])
    raise KeyError(f"Unknown range id: {range_id}")


def move_ranges(
    ranges: Sequence[TemperatureRange], offsets: Iterable[int], destination: int
) -> list[TemperatureRange]:
    """Move the ranges at `offsets` so they sit before the item originally at `destination`.

    `destination` may equal len(ranges) to move to the end. Moved items
    keep their relative order.
    """
    picked = sorted(set(offsets))
    if any(i < 0 or i >= len(ranges) for i in picked):
        raise IndexError(f"Offsets out of range: {picked}")
    if destination < 0 or destination > len(ranges):
        raise IndexError(f"Destination out of range: {destination}")

    moving = [ranges[i] for i in picked]
    remaining = [r for i, r in enumerate(ranges) if i not in set(picked)]
    insert_at = destination - sum(1 for i in picked if i < destination)
    return remaining[:insert_at] + moving + remaining[insert_at:]


def _checked(r: TemperatureRange) -> TemperatureRange:
    if r.lower_bound >= r.upper_bound:
        logger.warning(
            "Range [%s, %s) -> %s is empty and will never match",
            r.lower_bound, r.upper_bound, r.color,
        )
    return r
