"""Timezone-aware time arithmetic shared by the scheduling services."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union
from zoneinfo import ZoneInfo


def parse_clock(value: str) -> int:
    """Parse an ``HH:MM`` wall-clock string into minutes since midnight."""
    if not value or not isinstance(value, str):
        raise ValueError("Time must be in HH:MM format")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Time must be in HH:MM format: {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise ValueError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(moment: datetime, minutes: Union[int, float]) -> datetime:
    """Shift an aware datetime by absolute minutes, keeping its timezone."""
    shifted = moment.astimezone(timezone.utc) + timedelta(minutes=minutes)
    return shifted.astimezone(moment.tzinfo)


def minutes_between(start: datetime, end: datetime) -> float:
    """Get the absolute number of minutes from start to end."""
    delta = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return delta.total_seconds() / 60


def local_midnight(target_date: date, tz: ZoneInfo) -> datetime:
    """Get the first instant of a calendar day in the given timezone."""
    return datetime.combine(target_date, time.min, tzinfo=tz)


def at_clock(target_date: date, clock: Union[str, int], tz: ZoneInfo) -> datetime:
    """Get the instant showing ``clock`` on the wall on ``target_date`` in ``tz``.

    ``24:00`` is the next day's midnight. A wall time skipped by a DST jump
    resolves to the instant the same number of minutes after the jump.
    """
    minutes = parse_clock(clock) if isinstance(clock, str) else clock
    days, minutes = divmod(minutes, 24 * 60)
    wall = datetime.combine(
        target_date + timedelta(days=days),
        time(minutes // 60, minutes % 60),
        tzinfo=tz
    )
    # Round trip through UTC normalizes non-existent wall times
    return wall.astimezone(timezone.utc).astimezone(tz)


def ensure_aware(moment: datetime, tz: ZoneInfo) -> datetime:
    """Attach ``tz`` to naive datetimes; aware ones are converted to ``tz``."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def local_date(moment: datetime, tz: ZoneInfo) -> date:
    """Get the calendar date of an instant as seen in ``tz``."""
    return ensure_aware(moment, tz).date()
