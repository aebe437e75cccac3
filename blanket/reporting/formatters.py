"""Output formatters for the records list and the quilt."""

import json
from collections.abc import Sequence

from blanket.models.view import QuiltRow
from blanket.palette.quilt import color_counts


def format_temp(temp: float) -> str:
    return f"{temp:.1f}°F"


def format_records_text(rows: Sequence[QuiltRow], title: str = "BlanketBuddy") -> str:
    """Plain text list: the latest day as a card, then the full history."""
    lines = [f"=== {title} ==="]
    if not rows:
        lines.append("No temperature records.")
        return "\n".join(lines)

    latest = rows[-1]
    lines += [
        "Latest",
        f"  {latest.label}  {format_temp(latest.record.temp)}  [{latest.color}]",
        "History",
    ]
    for row in rows:
        prefix = f"{row.letter} " if row.letter else ""
        lines.append(
            f"  {prefix}{row.label:<14} {format_temp(row.record.temp):>8}  [{row.color}]"
        )
    return "\n".join(lines)


def format_quilt_text(rows: Sequence[QuiltRow]) -> str:
    """One line per row with a color swatch, followed by yarn totals."""
    lines = []
    for row in rows:
        prefix = f"{row.letter} " if row.letter else ""
        lines.append(f"{_swatch(row.color)} {prefix}{row.record.datetime} {format_temp(row.record.temp)}")
    lines.append("")
    for color, count in color_counts(rows).items():
        lines.append(f"{_swatch(color)} {color}: {count} rows")
    return "\n".join(lines)


def format_records_json(rows: Sequence[QuiltRow]) -> str:
    data = [
        {
            "id": row.record.id,
            "zip": row.record.zip,
            "datetime": row.record.datetime,
            "temp": row.record.temp,
            "label": row.label,
            "letter": row.letter,
            "color": row.color,
        }
        for row in rows
    ]
    return json.dumps(data, indent=2)


def _swatch(color: str) -> str:
    """24-bit ANSI block for '#rrggbb' colors; named colors get a plain block."""
    if len(color) == 7 and color.startswith("#"):
        try:
            r, g, b = (int(color[i:i + 2], 16) for i in (1, 3, 5))
        except ValueError:
            return "██"
        return f"\x1b[38;2;{r};{g};{b}m██\x1b[0m"
    return "██"
