# app/admission.py

"""Commit-time admission of bookings.

The slot list a client saw is advisory only. Every booking is decided here
against a live appointment set that the caller reads after taking the
barber's lock (see app.booking), never against a previously rendered list.
Outcomes are returned as values, not raised.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from .availability import DEFAULT_WINDOW, is_past, working_window
from .core import add_minutes, block_is_effective, intervals_overlap, is_live

logger = logging.getLogger(__name__)


class RejectReason(str, Enum):
    SCHEDULE_INACTIVE = "SCHEDULE_INACTIVE"
    OUTSIDE_HOURS = "OUTSIDE_HOURS"
    PAST_TIME = "PAST_TIME"
    SLOT_BLOCKED = "SLOT_BLOCKED"
    SLOT_TAKEN = "SLOT_TAKEN"


@dataclass(frozen=True)
class Admitted:
    barber_id: int
    date: date
    start_time: time
    end_time: time


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    appointment: object = None
    block: object = None


@dataclass(frozen=True)
class Conflict:
    """Walk-in overlap that a staff member may override."""
    appointment: object
    start_time: time
    end_time: time


Decision = Union[Admitted, Rejected, Conflict]


def overlapping_appointments(appointments: Iterable, start: time, end: time) -> List:
    return [
        a for a in appointments
        if is_live(a) and intervals_overlap(start, end, a.start_time, a.end_time)
    ]


def _live_for(appointments: Iterable, barber_id: int, day: date) -> List:
    return [
        a for a in appointments
        if is_live(a) and a.barber_id == barber_id and a.date == day
    ]


def admit(
    barber_id: int,
    day: date,
    start_time: time,
    duration_minutes: int,
    live_appointments: Iterable,
    *,
    check_schedule: bool = False,
    schedule=None,
    blocks: Iterable = (),
    now: Optional[datetime] = None,
    default_window: Tuple[time, time] = DEFAULT_WINDOW,
) -> Union[Admitted, Rejected]:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    end_time = add_minutes(start_time, duration_minutes)
    if end_time is None:
        return Rejected(RejectReason.OUTSIDE_HOURS)

    if check_schedule:
        window = working_window(schedule, default_window)
        if window is None:
            return Rejected(RejectReason.SCHEDULE_INACTIVE)
        if start_time < window[0] or end_time > window[1]:
            return Rejected(RejectReason.OUTSIDE_HOURS)

    if now is not None and is_past(day, start_time, now):
        return Rejected(RejectReason.PAST_TIME)

    for b in blocks:
        if block_is_effective(b, day) and intervals_overlap(start_time, end_time, b.start_time, b.end_time):
            return Rejected(RejectReason.SLOT_BLOCKED, block=b)

    taken = overlapping_appointments(_live_for(live_appointments, barber_id, day), start_time, end_time)
    if taken:
        logger.debug("barber %s %s %s-%s overlaps appointment %s",
                     barber_id, day, start_time, end_time, getattr(taken[0], "id", None))
        return Rejected(RejectReason.SLOT_TAKEN, appointment=taken[0])

    return Admitted(barber_id=barber_id, date=day, start_time=start_time, end_time=end_time)


def detect_walk_in_conflict(
    barber_id: int,
    day: date,
    start_time: time,
    duration_minutes: int,
    live_appointments: Iterable,
    *,
    force: bool = False,
) -> Decision:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    end_time = add_minutes(start_time, duration_minutes)
    if end_time is None:
        return Rejected(RejectReason.OUTSIDE_HOURS)

    if not force:
        taken = overlapping_appointments(_live_for(live_appointments, barber_id, day), start_time, end_time)
        if taken:
            return Conflict(appointment=taken[0], start_time=start_time, end_time=end_time)

    return Admitted(barber_id=barber_id, date=day, start_time=start_time, end_time=end_time)
