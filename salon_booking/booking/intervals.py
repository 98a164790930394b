"""
Half-open interval and calendar primitives.

All instants are timezone-aware. Wall-clock times ("09:00") only become
instants through ``local_instant``, which resolves them in the salon's
IANA timezone. Minute stepping happens in UTC so DST days keep real
elapsed durations.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional
from zoneinfo import ZoneInfo


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True if ``[a_start, a_end)`` overlaps ``[b_start, b_end)``. Touching ends do not overlap."""
    return a_start < b_end and b_start < a_end


def contains(outer_start: datetime, outer_end: datetime,
             inner_start: datetime, inner_end: datetime) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def intersect(a_start: datetime, a_end: datetime,
              b_start: datetime, b_end: datetime) -> Optional[tuple[datetime, datetime]]:
    """Intersection of two intervals, or None if it is empty."""
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    if start >= end:
        return None
    return start, end


def day_of_week(day: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day in the inclusive range ``[start, end]``."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def local_instant(day: date, wall_clock: time, tz: ZoneInfo) -> datetime:
    """Combine a calendar day and a local wall-clock time into an aware instant.

    Nonexistent or ambiguous wall-clock times on DST transition days resolve
    with ``fold=0`` (zoneinfo's default); no further DST policy is applied.
    """
    return datetime.combine(day, wall_clock, tzinfo=tz)


def add_minutes(instant: datetime, minutes: int) -> datetime:
    """Add elapsed minutes, returning the result in the original timezone."""
    return (instant.astimezone(timezone.utc) + timedelta(minutes=minutes)).astimezone(instant.tzinfo)


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def to_iso_utc(instant: datetime) -> str:
    """Stable UTC representation used in slot keys (``2026-10-20T08:00:00Z``)."""
    return instant.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_duration(minutes: int) -> str:
    """Human-readable duration: ``45 min``, ``2 h``, ``1 h 30 min``."""
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours} h"
    return f"{hours} h {mins} min"
