# app/routers/clients_routes.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.db import get_session
from app.models import Appointment, Client
from app.schemas import AppointmentStatus, ClientPublic, ClientSummary, ClientUpdate
from app.auth import get_current_user
from app.deps import require_role
from app.clock import Clock, get_clock
from app.lifecycle import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["clients"],
)


def summarize_clients(rows, today) -> List[dict]:
    """Fold (client, appointment) pairs into one directory entry per client.

    Entries sharing name (case-insensitive) and phone are the same person
    booked twice; the one with more completed visits is kept.
    """
    summaries = {}
    for client, appt in rows:
        entry = summaries.setdefault(client.id, {
            "id": client.id,
            "name": client.name,
            "phone": client.phone,
            "completed_visits": 0,
            "last_visit": None,
            "next_appointment": None,
        })
        if appt.status == AppointmentStatus.COMPLETED.value:
            entry["completed_visits"] += 1
            if entry["last_visit"] is None or appt.date > entry["last_visit"]:
                entry["last_visit"] = appt.date
        elif appt.status in ACTIVE_STATUSES and appt.date >= today:
            upcoming = entry["next_appointment"]
            if upcoming is None or (appt.date, appt.start_time) < (upcoming["date"], upcoming["start_time"]):
                entry["next_appointment"] = {"id": appt.id, "date": appt.date, "start_time": appt.start_time}

    unique = {}
    for entry in summaries.values():
        key = (entry["name"].lower(), entry["phone"])
        kept = unique.get(key)
        if kept is None or entry["completed_visits"] > kept["completed_visits"]:
            unique[key] = entry
    return sorted(unique.values(), key=lambda e: e["name"].lower())


@router.get("/barbers/me/clients", response_model=List[ClientSummary])
def my_clients(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    """Clients who have booked with the current barber, searchable by name or phone."""
    require_role(current_user, "barber")

    rows = session.exec(
        select(Client, Appointment)
        .join(Appointment, Appointment.client_id == Client.id)
        .where(Appointment.barber_id == current_user["id"])
    ).all()
    entries = summarize_clients(rows, clock.now().date())

    if q:
        needle = q.strip().lower()
        entries = [e for e in entries if needle in e["name"].lower() or needle in e["phone"]]
    return entries


@router.patch("/clients/me", response_model=ClientPublic)
def update_my_profile(
    changes: ClientUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    client = session.exec(
        select(Client).where(Client.user_id == current_user["id"])
    ).first()
    if client is None:
        client = Client(user_id=current_user["id"], name=current_user["name"])

    if changes.name is not None:
        client.name = changes.name
    if changes.phone is not None:
        client.phone = changes.phone

    session.add(client)
    session.commit()
    session.refresh(client)
    logger.info("client profile %s updated", client.id)
    return client
