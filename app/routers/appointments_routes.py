# app/routers/appointments_routes.py

import logging
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.db import get_session
from app.models import Appointment, Client, Service
from app.schemas import (
    AppointmentOrigin,
    AppointmentPublic,
    AppointmentStatus,
    ClientAppointmentCreate,
    WalkInCreate,
)
from app.auth import get_current_user
from app.deps import require_role
from app.admission import Conflict, Rejected, RejectReason
from app.booking import admit_online, admit_walk_in, lock_barber
from app.clock import Clock, get_clock
from app.config import Settings, get_settings
from app.core import truncate_to_minute
from app.lifecycle import can_transition

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["appointments"],
)

REJECTION_STATUS = {
    RejectReason.SLOT_TAKEN: 409,
    RejectReason.SLOT_BLOCKED: 409,
    RejectReason.PAST_TIME: 422,
    RejectReason.SCHEDULE_INACTIVE: 422,
    RejectReason.OUTSIDE_HOURS: 422,
}

REJECTION_MESSAGE = {
    RejectReason.SLOT_TAKEN: "This time was just booked, please pick another",
    RejectReason.SLOT_BLOCKED: "The barber is not available at this time",
    RejectReason.PAST_TIME: "Cannot book an appointment in the past",
    RejectReason.SCHEDULE_INACTIVE: "Barber is not scheduled to work that day",
    RejectReason.OUTSIDE_HOURS: "Appointment must be within working hours",
}


def _rejection_error(decision: Rejected) -> HTTPException:
    return HTTPException(
        status_code=REJECTION_STATUS[decision.reason],
        detail={"reason": decision.reason.value, "message": REJECTION_MESSAGE[decision.reason]},
    )


def _commit_new_appointment(session: Session, db_appt: Appointment) -> Appointment:
    session.add(db_appt)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning("storage guard rejected barber=%s %s %s",
                       db_appt.barber_id, db_appt.date, db_appt.start_time)
        raise HTTPException(
            status_code=409,
            detail={"reason": RejectReason.SLOT_TAKEN.value, "message": REJECTION_MESSAGE[RejectReason.SLOT_TAKEN]},
        )
    session.refresh(db_appt)  # fills db_appt.id
    return db_appt


@router.post("/barbers/{barber_id}/appointments", response_model=AppointmentPublic, status_code=201)
def client_create_appointment(
    barber_id: int,
    appt: ClientAppointmentCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    require_role(current_user, "client")

    # 1) Validate services
    services = [session.get(Service, service_id) for service_id in appt.service_ids]
    if any(s is None for s in services):
        raise HTTPException(status_code=422, detail="Service not available")

    duration = sum(s.duration_minutes or settings.default_service_minutes for s in services)
    amount = sum(s.price for s in services)
    start_time = appt.start_time.replace(second=0, microsecond=0)

    # 2) Serialize against other bookings for this barber
    if lock_barber(session, barber_id) is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    # 3) Authoritative check on a fresh read
    decision = admit_online(session, barber_id, appt.date, start_time, duration, clock.now(), settings)
    if isinstance(decision, Rejected):
        raise _rejection_error(decision)

    # 4) Client profile (upsert)
    client = session.exec(
        select(Client).where(Client.user_id == current_user["id"])
    ).first()
    if client is None:
        client = Client(user_id=current_user["id"], name=current_user["name"])
    if appt.client_name:
        client.name = appt.client_name
    if appt.client_phone:
        client.phone = appt.client_phone
    session.add(client)
    session.flush()

    extras = [s.name for s in services[1:]]

    # 5) Create and save appointment
    db_appt = Appointment(
        barber_id=barber_id,
        client_id=client.id,
        service_id=services[0].id,
        date=decision.date,
        start_time=decision.start_time,
        end_time=decision.end_time,
        duration_minutes=duration,
        amount=amount,
        status=AppointmentStatus.SCHEDULED.value,
        origin=AppointmentOrigin.ONLINE.value,
        notes="Extra services: " + ", ".join(extras) if extras else "",
    )
    db_appt = _commit_new_appointment(session, db_appt)
    logger.info("appointment %s booked online barber=%s %s %s-%s",
                db_appt.id, barber_id, db_appt.date, db_appt.start_time, db_appt.end_time)
    return db_appt


@router.post("/barbers/me/walk-ins", response_model=AppointmentPublic, status_code=201)
def create_walk_in(
    walk_in: WalkInCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    require_role(current_user, "barber")
    barber_id = current_user["id"]

    service = session.get(Service, walk_in.service_id)
    if service is None:
        raise HTTPException(status_code=422, detail="Service not available")
    duration = service.duration_minutes or settings.default_service_minutes

    now = truncate_to_minute(clock.now())
    lock_barber(session, barber_id)

    decision = admit_walk_in(session, barber_id, now.date(), now.time(), duration, force=walk_in.force)
    if isinstance(decision, Conflict):
        logger.info("walk-in for barber %s conflicts with appointment %s", barber_id, decision.appointment.id)
        raise HTTPException(
            status_code=409,
            detail={
                "reason": "CONFLICT",
                "message": "Overlaps an existing appointment; resend with force to register anyway",
                "appointment": AppointmentPublic.model_validate(decision.appointment).model_dump(mode="json"),
            },
        )
    if isinstance(decision, Rejected):
        raise _rejection_error(decision)

    client = Client(name=walk_in.client_name.strip() or "Walk-in client")
    session.add(client)
    session.flush()

    db_appt = Appointment(
        barber_id=barber_id,
        client_id=client.id,
        service_id=service.id,
        date=decision.date,
        start_time=decision.start_time,
        end_time=decision.end_time,
        duration_minutes=duration,
        amount=service.price,
        status=AppointmentStatus.IN_SERVICE.value,
        origin=AppointmentOrigin.WALK_IN.value,
    )
    db_appt = _commit_new_appointment(session, db_appt)
    logger.info("walk-in %s registered barber=%s %s-%s%s", db_appt.id, barber_id,
                db_appt.start_time, db_appt.end_time, " (forced)" if walk_in.force else "")
    return db_appt


def _transition(
    appt_id: int,
    target: AppointmentStatus,
    session: Session,
    current_user: dict,
    client_may: bool = False,
) -> Appointment:
    # 1) Find the appointment in DB
    db_appt = session.get(Appointment, appt_id)
    if db_appt is None:
        raise HTTPException(status_code=404, detail="Appointment not found")

    # 2) Authorization: the appointment's barber, or the booking client when allowed
    allowed = current_user["role"] == "barber" and current_user["id"] == db_appt.barber_id
    if not allowed and client_may and current_user["role"] == "client" and db_appt.client_id is not None:
        client = session.get(Client, db_appt.client_id)
        allowed = client is not None and client.user_id == current_user["id"]
    if not allowed:
        raise HTTPException(status_code=403, detail="Forbidden")

    # 3) Terminal or out-of-order?
    if not can_transition(db_appt.status, target.value):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move appointment from {db_appt.status} to {target.value}",
        )

    # 4) Persist
    previous = db_appt.status
    db_appt.status = target.value
    session.add(db_appt)
    session.commit()
    session.refresh(db_appt)
    logger.info("appointment %s: %s -> %s", appt_id, previous, target.value)
    return db_appt


@router.patch("/appointments/{appt_id}/arrive", response_model=AppointmentPublic)
def mark_waiting(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _transition(appt_id, AppointmentStatus.WAITING, session, current_user)


@router.patch("/appointments/{appt_id}/check-in", response_model=AppointmentPublic)
def check_in(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _transition(appt_id, AppointmentStatus.IN_SERVICE, session, current_user)


@router.patch("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _transition(appt_id, AppointmentStatus.COMPLETED, session, current_user)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _transition(appt_id, AppointmentStatus.CANCELLED, session, current_user, client_may=True)


def _check_status_filter(status: str):
    valid = {s.value for s in AppointmentStatus} | {"all"}
    if status not in valid:
        raise HTTPException(status_code=422, detail="status must be an appointment status or 'all'")


@router.get("/barbers/me/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    status: str = "all",
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")
    _check_status_filter(status)

    stmt = select(Appointment).where(Appointment.barber_id == current_user["id"])

    if on_date is not None:
        stmt = stmt.where(Appointment.date == on_date)

    if status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date, Appointment.start_time)
    return session.exec(stmt).all()


@router.get("/clients/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    status: str = "all",
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    _check_status_filter(status)

    client = session.exec(
        select(Client).where(Client.user_id == current_user["id"])
    ).first()
    if client is None:
        return []

    stmt = select(Appointment).where(Appointment.client_id == client.id)

    if status != "all":
        stmt = stmt.where(Appointment.status == status)

    stmt = stmt.order_by(Appointment.date, Appointment.start_time)
    return session.exec(stmt).all()
