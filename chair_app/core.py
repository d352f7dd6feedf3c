# chair_app/core.py
"""Availability and conflict checks shared by booking and slot listing.

Everything in here is a pure function of its arguments: no sessions, no
clock reads. Datetimes are naive shop-local wall-clock values; use
``to_shop_time`` to bring request input into that frame first.
"""

from datetime import datetime, date, time, timedelta
from typing import Iterable, Optional, Protocol, Tuple
from zoneinfo import ZoneInfo

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class Block(Protocol):
    day_of_week: str
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"


# (start, duration in minutes) of an appointment already on the book
BookedSlot = Tuple[datetime, int]


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def day_of_week(moment: datetime | date) -> str:
    return WEEKDAYS[moment.weekday()]


def parse_clock(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def to_shop_time(moment: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime to naive shop-local time; naive values pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def block_bounds(block: Block, on_date: date) -> tuple[datetime, datetime]:
    start = datetime.combine(on_date, parse_clock(block.start_time))
    end = datetime.combine(on_date, parse_clock(block.end_time))
    return start, end


def is_within_availability(
    blocks: Iterable[Block],
    requested_start: datetime,
    requested_end: datetime,
) -> bool:
    requested_day = day_of_week(requested_start)

    for block in blocks:
        if block.day_of_week != requested_day:
            continue
        block_start, block_end = block_bounds(block, requested_start.date())
        # inclusive on both ends
        if requested_start >= block_start and requested_end <= block_end:
            return True

    return False


def has_conflict(
    existing: Iterable[BookedSlot],
    requested_start: datetime,
    requested_end: datetime,
) -> bool:
    for appt_start, duration_minutes in existing:
        appt_end = appt_start + timedelta(minutes=duration_minutes)

        if (
            overlaps(requested_start, requested_end, appt_start, appt_end)
            or requested_start == appt_start
            or requested_end == appt_end
        ):
            return True

    return False


def available_start_times(
    blocks: Iterable[Block],
    existing: Iterable[BookedSlot],
    on_date: date,
    duration_minutes: int,
    step_minutes: int,
    not_before: Optional[datetime] = None,
) -> list[str]:
    """Start times ("HH:MM") on ``on_date`` that would pass both booking checks."""
    blocks = list(blocks)
    existing = list(existing)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)
    weekday = day_of_week(on_date)

    starts: set[datetime] = set()
    for block in blocks:
        if block.day_of_week != weekday:
            continue
        block_start, block_end = block_bounds(block, on_date)

        current = block_start
        while current + duration <= block_end:
            if not_before is None or current > not_before:
                if not has_conflict(existing, current, current + duration):
                    starts.add(current)
            current += step

    return [start.strftime("%H:%M") for start in sorted(starts)]
