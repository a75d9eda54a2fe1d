# app/core.py

"""Time grid and interval predicates shared by every booking surface.

All intervals are half-open: [start, end).
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .schemas import AppointmentStatus


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def add_minutes(t: time, minutes: int) -> Optional[time]:
    """Return t + minutes, or None when the result would reach midnight."""
    total = to_minutes(t) + minutes
    if total >= 24 * 60 or total < 0:
        return None
    return from_minutes(total)


def truncate_to_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def weekday_of(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def generate_grid(start: time, end: time, step_minutes: int) -> List[time]:
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")
    if start >= end:
        return []

    grid = []
    current = datetime.combine(date.min, start)
    stop = datetime.combine(date.min, end)
    step = timedelta(minutes=step_minutes)
    while current < stop:
        grid.append(current.time())
        current += step
    return grid


def point_in_interval(t, start, end) -> bool:
    return start <= t < end


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and b_start < a_end


def is_live(appointment) -> bool:
    return appointment.status != AppointmentStatus.CANCELLED.value


def block_is_effective(block, day: date) -> bool:
    # A row with neither date nor weekday matches nothing.
    if block.date is not None and block.date == day:
        return True
    if block.day_of_week is not None and block.day_of_week == weekday_of(day):
        return True
    return False
