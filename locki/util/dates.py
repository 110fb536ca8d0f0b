"""Calendar keys used by the time-bucketed stats maps."""

from datetime import date, datetime, timedelta


def _as_date(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_key(value: datetime | date) -> str:
    """Key of the Sunday-to-Saturday week containing value.

    The key is the ISO date of the Sunday that closes the week, i.e. the
    Sunday after the week's first day.
    """
    day = _as_date(value)
    days_since_sunday = (day.weekday() + 1) % 7
    week_start = day - timedelta(days=days_since_sunday)
    return (week_start + timedelta(days=7)).isoformat()


def month_key(value: datetime | date) -> str:
    day = _as_date(value)
    return f"{day.year:04d}-{day.month:02d}"


def days_between(earlier: datetime | date, later: datetime | date) -> int:
    """Whole calendar days from earlier to later."""
    return (_as_date(later) - _as_date(earlier)).days
