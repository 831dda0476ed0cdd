from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Naive UTC now, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_local_now(tz_name: str) -> datetime:
    """Get current datetime in the configured dashboard timezone."""
    return datetime.now(ZoneInfo(tz_name))


def get_local_today(tz_name: str) -> date:
    return get_local_now(tz_name).date()


def to_utc_iso(dt: datetime) -> str:
    """Format a stored (naive UTC) datetime for JSON."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
