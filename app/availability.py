# app/availability.py

"""Slot availability for one barber on one date.

Inputs are read-only snapshots (schedule row, blocks, appointments) as loaded
from the store; nothing here touches the database or the system clock.
"""

import logging
from datetime import date, datetime, time
from typing import Iterable, List, NamedTuple, Optional, Tuple

from .core import (
    add_minutes,
    block_is_effective,
    generate_grid,
    is_live,
    point_in_interval,
    truncate_to_minute,
)
from .schemas import Slot

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = (time(10, 0), time(20, 0))


def working_window(schedule, default_window: Tuple[time, time] = DEFAULT_WINDOW) -> Optional[Tuple[time, time]]:
    """Opening hours for the day, or None when the barber does not work it."""
    if schedule is None:
        return default_window
    if not schedule.active:
        return None
    return schedule.start_time, schedule.end_time


def is_past(day: date, t: time, now: datetime) -> bool:
    now = truncate_to_minute(now)
    today = now.date()
    if day < today:
        return True
    return day == today and t < now.time()


def resolve_slots(
    schedule,
    blocks: Iterable,
    appointments: Iterable,
    day: date,
    step_minutes: int,
    now: datetime,
    default_window: Tuple[time, time] = DEFAULT_WINDOW,
) -> List[Slot]:
    window = working_window(schedule, default_window)
    if window is None:
        logger.debug("schedule inactive on %s", day)
        return []

    effective_blocks = [b for b in blocks if block_is_effective(b, day)]
    live = [a for a in appointments if is_live(a)]

    slots = []
    for t in generate_grid(window[0], window[1], step_minutes):
        occupied = any(point_in_interval(t, a.start_time, a.end_time) for a in live)
        blocked = any(point_in_interval(t, b.start_time, b.end_time) for b in effective_blocks)
        past = is_past(day, t, now)
        slots.append(Slot(time=t, available=not (occupied or blocked or past)))
    return slots


class TimelineEntry(NamedTuple):
    time: time
    state: str  # "free", "past", "blocked" or "appointment"
    appointment: object = None
    block: object = None


def build_timeline(
    schedule,
    blocks: Iterable,
    appointments: Iterable,
    day: date,
    step_minutes: int,
    now: datetime,
    default_window: Tuple[time, time] = DEFAULT_WINDOW,
) -> List[TimelineEntry]:
    """Rows for the staff agenda.

    Each appointment is shown once, on the row its start falls in (or the
    first row, if it began before opening). Rows strictly inside a shown
    appointment are left out so a long appointment is not drawn in pieces.
    """
    window = working_window(schedule, default_window)
    if window is None:
        return []

    grid = generate_grid(window[0], window[1], step_minutes)
    if not grid:
        return []

    effective_blocks = [b for b in blocks if block_is_effective(b, day)]
    live = sorted((a for a in appointments if is_live(a)), key=lambda a: a.start_time)

    anchors = {}
    for a in live:
        anchor = None
        if a.start_time < grid[0]:
            if a.end_time > grid[0]:
                anchor = grid[0]
        else:
            for t in grid:
                row_end = add_minutes(t, step_minutes)
                if row_end is None or a.start_time < row_end:
                    anchor = t
                    break
        if anchor is not None:
            anchors.setdefault(anchor, []).append(a)

    rows = []
    for t in grid:
        covered = any(
            anchor < t < a.end_time
            for anchor, appts in anchors.items()
            for a in appts
        )
        if t in anchors:
            rows.extend(TimelineEntry(t, "appointment", appointment=a) for a in anchors[t])
            continue
        if covered:
            continue
        block = next((b for b in effective_blocks if point_in_interval(t, b.start_time, b.end_time)), None)
        if block is not None:
            rows.append(TimelineEntry(t, "blocked", block=block))
        elif is_past(day, t, now):
            rows.append(TimelineEntry(t, "past"))
        else:
            rows.append(TimelineEntry(t, "free"))
    return rows
