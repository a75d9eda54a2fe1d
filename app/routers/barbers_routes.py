# app/routers/barbers_routes.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlmodel import Session, select

from app.db import get_session
from app.models import Appointment, Block, User, WorkSchedule
from app.schemas import (
    AgendaResponse,
    AppointmentPublic,
    AvailabilityResponse,
    BarberPublic,
    BlockCreate,
    BlockPublic,
    TimelineRow,
    WorkSchedulePublic,
    WorkScheduleUpdate,
)
from app.auth import get_current_user
from app.deps import require_role
from app.admission import overlapping_appointments
from app.availability import build_timeline, resolve_slots
from app.booking import default_window, load_blocks, load_live_appointments, load_schedule
from app.clock import Clock, get_clock
from app.config import Settings, get_settings
from app.core import weekday_of
from app.lifecycle import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def _future_active_appointments(session: Session, barber_id: int, today: date) -> List[Appointment]:
    return session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.date >= today)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
    ).all()


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    barbers = session.exec(
        select(User).where(User.role == "barber").order_by(User.name)
    ).all()
    return [{"id": b.id, "name": b.name} for b in barbers]


@router.get("/me/schedule", response_model=List[WorkSchedulePublic])
def get_my_schedule(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    return session.exec(
        select(WorkSchedule)
        .where(WorkSchedule.barber_id == current_user["id"])
        .order_by(WorkSchedule.day_of_week)
    ).all()


@router.put("/me/schedule/{day_of_week}", response_model=WorkSchedulePublic)
def set_schedule_day(
    schedule: WorkScheduleUpdate,
    day_of_week: int = Path(ge=0, le=6),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    require_role(current_user, "barber")
    if schedule.start_time >= schedule.end_time:
        raise HTTPException(status_code=422, detail="start_time must be before end_time")

    barber_id = current_user["id"]

    # DB upsert: one row per (barber, weekday)
    db_schedule = session.exec(
        select(WorkSchedule)
        .where(WorkSchedule.barber_id == barber_id)
        .where(WorkSchedule.day_of_week == day_of_week)
    ).first()

    # Refuse to close a day that still has bookings ahead
    was_active = db_schedule is None or db_schedule.active
    if was_active and not schedule.active:
        pending = [
            a for a in _future_active_appointments(session, barber_id, clock.now().date())
            if weekday_of(a.date) == day_of_week
        ]
        if pending:
            raise HTTPException(
                status_code=409,
                detail={
                    "message": "Day still has future appointments; cancel or move them first",
                    "count": len(pending),
                },
            )

    if db_schedule is None:
        db_schedule = WorkSchedule(barber_id=barber_id, day_of_week=day_of_week)
    db_schedule.active = schedule.active
    db_schedule.start_time = schedule.start_time
    db_schedule.end_time = schedule.end_time

    session.add(db_schedule)
    session.commit()
    session.refresh(db_schedule)
    logger.info("barber %s schedule day %s: active=%s %s-%s", barber_id, day_of_week,
                db_schedule.active, db_schedule.start_time, db_schedule.end_time)
    return db_schedule


@router.get("/me/blocks", response_model=List[BlockPublic])
def list_my_blocks(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    return session.exec(
        select(Block).where(Block.barber_id == current_user["id"]).order_by(Block.id.desc())
    ).all()


@router.post("/me/blocks", response_model=BlockPublic, status_code=201)
def create_block(
    block: BlockCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    require_role(current_user, "barber")
    if (block.date is None) == (block.day_of_week is None):
        raise HTTPException(status_code=422, detail="Exactly one of date or day_of_week is required")
    if block.start_time >= block.end_time:
        raise HTTPException(status_code=422, detail="start_time must be before end_time")

    barber_id = current_user["id"]

    # Reject blocks that would hide existing bookings
    if block.date is not None:
        candidates = session.exec(
            select(Appointment)
            .where(Appointment.barber_id == barber_id)
            .where(Appointment.date == block.date)
            .where(Appointment.status.in_(ACTIVE_STATUSES))
        ).all()
    else:
        candidates = [
            a for a in _future_active_appointments(session, barber_id, clock.now().date())
            if weekday_of(a.date) == block.day_of_week
        ]
    conflicts = overlapping_appointments(candidates, block.start_time, block.end_time)
    if conflicts:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Appointments are booked in this range; cancel or move them first",
                "count": len(conflicts),
            },
        )

    db_block = Block(
        barber_id=barber_id,
        reason=block.reason,
        date=block.date,
        day_of_week=block.day_of_week,
        start_time=block.start_time,
        end_time=block.end_time,
    )
    session.add(db_block)
    session.commit()
    session.refresh(db_block)
    logger.info("barber %s added block %s", barber_id, db_block.id)
    return db_block


@router.delete("/me/blocks/{block_id}", status_code=204)
def delete_block(
    block_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    db_block = session.get(Block, block_id)
    if db_block is None or db_block.barber_id != current_user["id"]:
        raise HTTPException(status_code=404, detail="Block not found")

    session.delete(db_block)
    session.commit()
    logger.info("barber %s removed block %s", current_user["id"], block_id)


@router.get("/me/agenda", response_model=AgendaResponse)
def my_agenda(
    day: Optional[date] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    require_role(current_user, "barber")
    barber_id = current_user["id"]
    now = clock.now()
    day = day or now.date()

    entries = build_timeline(
        load_schedule(session, barber_id, day),
        load_blocks(session, barber_id, day),
        load_live_appointments(session, barber_id, day),
        day,
        settings.agenda_slot_minutes,
        now,
        default_window(settings),
    )

    rows = []
    for e in entries:
        rows.append(TimelineRow(
            time=e.time,
            state=e.state,
            appointment=AppointmentPublic.model_validate(e.appointment) if e.appointment is not None else None,
            block_reason=e.block.reason if e.block is not None else None,
        ))
    return {"barber_id": barber_id, "date": day, "rows": rows}


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    step_minutes: Optional[int] = Query(default=None, ge=5, le=120),
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    barber = session.get(User, barber_id)
    if barber is None or barber.role != "barber":
        raise HTTPException(status_code=404, detail="Barber Not Found")

    step = step_minutes or settings.slot_minutes
    slots = resolve_slots(
        load_schedule(session, barber_id, date),
        load_blocks(session, barber_id, date),
        load_live_appointments(session, barber_id, date),
        date,
        step,
        clock.now(),
        default_window(settings),
    )
    return {"barber_id": barber_id, "date": date, "step_minutes": step, "slots": slots}
