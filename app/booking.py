# app/booking.py

"""Snapshot reads and the guarded admission sequence.

Admission runs in the caller's session transaction:
    lock barber -> fresh reads -> decide -> insert -> commit
The lock is a row lock on the barber's user row (SQLite: the transaction is
reopened with BEGIN IMMEDIATE, see app.db.begin_write), so two bookings for
the same barber can't both pass the overlap check before either commits.
Read-only requests keep deferred transactions and never wait on the lock.
"""

import logging
from datetime import date, time
from typing import List, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from .admission import admit, detect_walk_in_conflict
from .config import Settings
from .core import weekday_of
from .db import begin_write
from .models import Appointment, Block, User, WorkSchedule
from .schemas import AppointmentStatus

logger = logging.getLogger(__name__)


def lock_barber(session: Session, barber_id: int) -> Optional[User]:
    begin_write(session)
    return session.exec(
        select(User)
        .where(User.id == barber_id)
        .where(User.role == "barber")
        .with_for_update()
    ).first()


def load_schedule(session: Session, barber_id: int, day: date) -> Optional[WorkSchedule]:
    return session.exec(
        select(WorkSchedule)
        .where(WorkSchedule.barber_id == barber_id)
        .where(WorkSchedule.day_of_week == weekday_of(day))
    ).first()


def load_blocks(session: Session, barber_id: int, day: date) -> List[Block]:
    return session.exec(
        select(Block)
        .where(Block.barber_id == barber_id)
        .where(or_(Block.date == day, Block.day_of_week == weekday_of(day)))
    ).all()


def load_live_appointments(session: Session, barber_id: int, day: date) -> List[Appointment]:
    return session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date == day)
        .where(Appointment.status != AppointmentStatus.CANCELLED.value)
        .order_by(Appointment.start_time)
    ).all()


def default_window(settings: Settings):
    return settings.default_day_start, settings.default_day_end


def admit_online(
    session: Session,
    barber_id: int,
    day: date,
    start_time: time,
    duration_minutes: int,
    now,
    settings: Settings,
):
    """Decide an online booking. The caller must already hold the barber lock."""
    schedule = load_schedule(session, barber_id, day)
    blocks = load_blocks(session, barber_id, day)
    live = load_live_appointments(session, barber_id, day)

    decision = admit(
        barber_id, day, start_time, duration_minutes, live,
        check_schedule=True,
        schedule=schedule,
        blocks=blocks,
        now=now,
        default_window=default_window(settings),
    )
    logger.info("online booking barber=%s %s %s (%s min): %s",
                barber_id, day, start_time, duration_minutes, type(decision).__name__)
    return decision


def admit_walk_in(
    session: Session,
    barber_id: int,
    day: date,
    start_time: time,
    duration_minutes: int,
    force: bool = False,
):
    """Decide a walk-in. The caller must already hold the barber lock."""
    live = load_live_appointments(session, barber_id, day)
    decision = detect_walk_in_conflict(
        barber_id, day, start_time, duration_minutes, live, force=force,
    )
    if force:
        logger.warning("walk-in override barber=%s %s %s", barber_id, day, start_time)
    return decision
