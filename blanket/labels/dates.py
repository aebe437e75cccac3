"""Date labels for record rows."""

from datetime import date, datetime

DATE_FORMAT = "%Y-%m-%d"


def parse_record_date(date_string: str) -> date | None:
    try:
        return datetime.strptime(date_string, DATE_FORMAT).date()
    except (ValueError, TypeError):
        return None


def format_date(date_string: str) -> str:
    """'2024-03-05' -> 'March 5'. Unparseable input is returned unchanged."""
    d = parse_record_date(date_string)
    if d is None:
        return date_string
    return f"{d:%B} {d.day}"


def letter_for_date(date_string: str, knit: str = "K", purl: str = "P") -> str:
    """Alternating knit/purl label by day-of-year parity; '' if unparseable."""
    d = parse_record_date(date_string)
    if d is None:
        return ""
    day_of_year = d.timetuple().tm_yday
    return purl if day_of_year % 2 == 0 else knit
