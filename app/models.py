# app/models.py

from typing import Optional
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

from .schemas import AppointmentOrigin, AppointmentStatus


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str = ""
    password_hash: str
    role: str # barber or client

class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    name: str
    phone: str = ""

class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    price: float
    duration_minutes: int

class WorkSchedule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "day_of_week", name="uq_schedule_barber_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="user.id", index=True)
    day_of_week: int  # 0=Sun ... 6=Sat
    active: bool = True
    start_time: time
    end_time: time

class Block(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="user.id", index=True)
    reason: str = ""
    date: Optional[Date] = Field(default=None, index=True)
    day_of_week: Optional[int] = None
    start_time: time
    end_time: time

LIVE_BOOKED_START = "status != 'CANCELLED' AND origin != 'WALK_IN'"


class Appointment(SQLModel, table=True):
    # Backstop for the admission lock: two live online bookings never share a start.
    # Walk-ins are left out so a forced walk-in can take a no-show's start.
    __table_args__ = (
        Index(
            "uq_live_barber_start",
            "barber_id", "date", "start_time",
            unique=True,
            sqlite_where=text(LIVE_BOOKED_START),
            postgresql_where=text(LIVE_BOOKED_START),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="user.id", index=True)
    client_id: Optional[int] = Field(default=None, foreign_key="client.id")
    service_id: Optional[int] = Field(default=None, foreign_key="service.id")
    date: Date = Field(index=True)
    start_time: time
    end_time: time
    duration_minutes: int
    amount: float = 0
    status: str = AppointmentStatus.SCHEDULED.value
    origin: str = AppointmentOrigin.ONLINE.value
    notes: str = ""
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
