import re
from datetime import date, datetime, timezone

from ..errors import InvalidRange

_ISO_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_iso_date_only(value: str) -> bool:
    return bool(_ISO_DATE_ONLY.match(value or ""))


def parse_date_only(value) -> date:
    """
    Normalize a stay boundary to a calendar day.
    Accepts:
    - date objects (returned as-is)
    - datetimes; aware values are converted to UTC first, naive ones are taken as UTC
    - "YYYY-MM-DD" strings
    Anything else raises InvalidRange.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and is_iso_date_only(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidRange("Dates must be YYYY-MM-DD", details={"value": str(value)})


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True if half-open [a_start, a_end) intersects [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def nights_between(start: date, end: date) -> int:
    return (end - start).days


def validate_range(start, end) -> tuple[date, date, int]:
    """Parse both boundaries and return (start, end, nights); zero or negative stays are rejected."""
    s = parse_date_only(start)
    e = parse_date_only(end)
    nights = nights_between(s, e)
    if nights <= 0:
        raise InvalidRange(
            "end_date must be after start_date",
            details={"start_date": s.isoformat(), "end_date": e.isoformat()},
        )
    return s, e, nights
