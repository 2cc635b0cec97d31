"""
Weekly compliance cycle arithmetic.

A cycle starts at a fixed local time on a fixed weekday in the organization
timezone (Monday 09:00 Asia/Tokyo by default) and lasts one week:
[boundary, next boundary). An instant exactly at a boundary belongs to the
cycle starting there.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Tuple


def localize(instant: datetime, tz: tzinfo) -> datetime:
    """
    Express an instant in the given timezone.

    Naive datetimes are taken to already be local wall-clock time.
    """
    if instant.tzinfo is None:
        return instant.replace(tzinfo=tz)
    return instant.astimezone(tz)


def cycle_bounds(
    instant: datetime,
    weekday: int,
    at: time,
    tz: tzinfo,
) -> Tuple[datetime, datetime]:
    """
    Compute the cycle containing an instant.

    Args:
        instant: Any datetime (aware, or naive local time)
        weekday: Boundary weekday, 0 = Monday
        at: Boundary local time-of-day
        tz: Organization timezone

    Returns:
        Tuple of (start, end) aware datetimes in tz, start inclusive

    Examples:
        >>> from zoneinfo import ZoneInfo
        >>> tokyo = ZoneInfo("Asia/Tokyo")
        >>> start, _ = cycle_bounds(datetime(2024, 6, 10, 9, 0), 0, time(9, 0), tokyo)
        >>> start.isoformat()
        '2024-06-10T09:00:00+09:00'
        >>> start, _ = cycle_bounds(datetime(2024, 6, 10, 8, 59), 0, time(9, 0), tokyo)
        >>> start.date().isoformat()
        '2024-06-03'
    """
    local = localize(instant, tz)
    days_back = (local.weekday() - weekday) % 7
    boundary_date = local.date() - timedelta(days=days_back)

    start = datetime.combine(boundary_date, at, tzinfo=tz)
    if start > local:
        start = datetime.combine(boundary_date - timedelta(days=7), at, tzinfo=tz)

    end = datetime.combine(start.date() + timedelta(days=7), at, tzinfo=tz)
    return start, end


def cycle_key(cycle_start: datetime) -> str:
    """
    Key of a cycle: YYYY-Www, weeks counted from January 1 of the start's year.

    Examples:
        >>> cycle_key(datetime(2024, 1, 1, 9, 0))
        '2024-W01'
        >>> cycle_key(datetime(2024, 6, 10, 9, 0))
        '2024-W24'
    """
    start_day = cycle_start.date()
    days = (start_day - date(start_day.year, 1, 1)).days
    return f"{start_day.year}-W{days // 7 + 1:02d}"


def event_instant(event_date: date, start_time: Optional[time], tz: tzinfo) -> datetime:
    """Instant an event starts: its date at start_time, or local midnight."""
    return datetime.combine(event_date, start_time or time.min, tzinfo=tz)


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last calendar day of the month containing day."""
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, next_first - timedelta(days=1)
