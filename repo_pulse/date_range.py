from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from repo_pulse.errors import ConfigError
from repo_pulse.models import DateRange
from repo_pulse.pagination import TIME_RANGE_LIMITS


def range_days(time_range: str) -> int:
    """Numeric day count of a named time range ("7" -> 7); only profiled names are accepted."""
    if str(time_range) not in TIME_RANGE_LIMITS:
        raise ConfigError(f"Invalid time range: {time_range}")
    return int(time_range)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def resolve_date_range(time_range: str, now: Optional[datetime] = None) -> DateRange:
    """
    Turn a named time range into concrete UTC bounds.

    "1" is today, "2" starts at the beginning of yesterday, any other N starts
    at the beginning of the day N days ago. The range always ends at the last
    millisecond of today.
    """
    days = range_days(time_range)
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    today = start_of_day(now)

    if days == 1:
        start = today
    elif days == 2:
        start = today - timedelta(days=1)
    else:
        start = today - timedelta(days=days)

    return DateRange(start_date=start, end_date=end_of_day(now))


def clamp_start(date_range: DateRange, days: int) -> datetime:
    """Later of the range start and ``end - days``; used as the ``since`` bound of fetches."""
    return max(date_range.start_date, date_range.end_date - timedelta(days=days))


def day_key(dt: datetime) -> str:
    """UTC calendar date (YYYY-MM-DD) of a timestamp."""
    return dt.astimezone(timezone.utc).date().isoformat()


def iter_days(date_range: DateRange) -> List[str]:
    """Every calendar day in the range, inclusive, ascending."""
    first: date = date_range.start_date.astimezone(timezone.utc).date()
    last: date = date_range.end_date.astimezone(timezone.utc).date()
    return [(first + timedelta(days=offset)).isoformat() for offset in range((last - first).days + 1)]
