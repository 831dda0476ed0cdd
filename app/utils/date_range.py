from datetime import date, timedelta
from typing import Optional, Tuple
from app.errors import ValidationError


LAST_7_DAYS = "Last 7 days"
THIS_MONTH = "This month"
LAST_MONTH = "Last month"
CUSTOM_RANGE = "Custom range"

DATE_RANGE_TOKENS = (LAST_7_DAYS, THIS_MONTH, LAST_MONTH, CUSTOM_RANGE)


def _parse_iso(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a date in YYYY-MM-DD format")


def resolve_date_range(
    token: str,
    today: date,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Tuple[date, date]:
    """
    Turn a dashboard date-range token into a closed [start, end] interval.

    "Custom range" needs explicit start and end dates.
    """
    if not token:
        raise ValidationError("Date range is required")

    if token == LAST_7_DAYS:
        return today - timedelta(days=6), today
    if token == THIS_MONTH:
        return today.replace(day=1), today
    if token == LAST_MONTH:
        last_of_prev = today.replace(day=1) - timedelta(days=1)
        return last_of_prev.replace(day=1), last_of_prev
    if token == CUSTOM_RANGE:
        if not start or not end:
            raise ValidationError("Custom range requires startDate and endDate")
        start_date = _parse_iso(start, "startDate")
        end_date = _parse_iso(end, "endDate")
        if start_date > end_date:
            raise ValidationError("startDate must not be after endDate")
        return start_date, end_date

    raise ValidationError(f"Unknown date range: {token}")


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
