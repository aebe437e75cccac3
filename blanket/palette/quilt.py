"""Quilt building: one colored, labeled row per daily record."""

from collections.abc import Sequence

from blanket.config.schema import DEFAULT_COLOR
from blanket.labels.dates import format_date, letter_for_date
from blanket.models.temperature import TemperatureRange, TemperatureRecord
from blanket.models.view import QuiltRow
from blanket.palette.mapper import color_for


def build_quilt(
    records: Sequence[TemperatureRecord],
    ranges: Sequence[TemperatureRange],
    default_color: str = DEFAULT_COLOR,
    show_knit_purl: bool = False,
    knit_label: str = "K",
    purl_label: str = "P",
) -> list[QuiltRow]:
    rows = []
    for record in records:
        letter = ""
        if show_knit_purl:
            letter = letter_for_date(record.datetime, knit_label, purl_label)
        rows.append(
            QuiltRow(
                record=record,
                label=format_date(record.datetime),
                letter=letter,
                color=color_for(record.temp, ranges, default_color),
            )
        )
    return rows


def color_counts(rows: Sequence[QuiltRow]) -> dict[str, int]:
    """Number of rows per color, in first-seen order (yarn needed per color)."""
    counts: dict[str, int] = {}
    for row in rows:
        counts[row.color] = counts.get(row.color, 0) + 1
    return counts
