"""Datetime utilities for scheduling."""

from datetime import datetime, date, time, timedelta, timezone
from typing import Iterator


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string such as ``"09:00"``."""
    hours, minutes = value.split(":", 1)
    return time(int(hours), int(minutes))


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return start_of_day(day) + timedelta(days=1)


def iter_slots(day: date, start: time, end: time, step_minutes: int = 30) -> Iterator[datetime]:
    """
    Yield slot start times on ``day`` from ``start`` up to, but excluding, ``end``.
    """
    current = datetime.combine(day, start, tzinfo=timezone.utc)
    stop = datetime.combine(day, end, tzinfo=timezone.utc)
    step = timedelta(minutes=step_minutes)
    while current < stop:
        yield current
        current += step


def overlaps(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open interval overlap: touching intervals do not overlap."""
    return start_a < end_b and start_b < end_a
