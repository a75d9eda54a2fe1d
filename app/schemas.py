# app/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from datetime import datetime, date as Date, time as Time
from typing import List, Optional


class UserRole(str, Enum):
    barber = "barber"
    client = "client"

class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    WAITING = "WAITING"
    IN_SERVICE = "IN_SERVICE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class AppointmentOrigin(str, Enum):
    ONLINE = "ONLINE"
    WALK_IN = "WALK_IN"

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole

class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    name: str = ""
    phone: str = ""
    role: UserRole

class BarberPublic(BaseModel):
    id: int
    name: str

class WorkScheduleUpdate(BaseModel):
    active: bool = True
    start_time: Time
    end_time: Time

class WorkSchedulePublic(BaseModel):
    id: int
    barber_id: int
    day_of_week: int   # 0=Sun, 1=Mon....
    active: bool
    start_time: Time
    end_time: Time

class BlockCreate(BaseModel):
    reason: str = ""
    date: Optional[Date] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Time
    end_time: Time

class BlockPublic(BaseModel):
    id: int
    barber_id: int
    reason: str
    date: Optional[Date]
    day_of_week: Optional[int]
    start_time: Time
    end_time: Time

class ServiceCreate(BaseModel):
    name: str
    price: float = Field(ge=0)
    duration_minutes: int = Field(ge=5, le=480)

class ServicePublic(BaseModel):
    id: int
    name: str
    price: float
    duration_minutes: int

class ClientAppointmentCreate(BaseModel):
    date: Date
    start_time: Time
    service_ids: List[int] = Field(min_length=1)
    client_name: Optional[str] = None
    client_phone: Optional[str] = None

class WalkInCreate(BaseModel):
    service_id: int
    client_name: str = ""
    force: bool = False

class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    client_id: Optional[int]
    service_id: Optional[int]
    date: Date
    start_time: Time
    end_time: Time
    duration_minutes: int
    amount: float
    status: AppointmentStatus
    origin: AppointmentOrigin
    notes: str
    created_at: datetime

class Slot(BaseModel):
    time: Time
    available: bool

class AvailabilityResponse(BaseModel):
    barber_id: int
    date: Date
    step_minutes: int
    slots: List[Slot]

class TimelineRow(BaseModel):
    time: Time
    state: str  # "free", "past", "blocked" or "appointment"
    appointment: Optional[AppointmentPublic] = None
    block_reason: Optional[str] = None

class AgendaResponse(BaseModel):
    barber_id: int
    date: Date
    rows: List[TimelineRow]

class ClientPublic(BaseModel):
    id: int
    name: str
    phone: str

class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None

class UpcomingAppointment(BaseModel):
    id: int
    date: Date
    start_time: Time

class ClientSummary(BaseModel):
    id: int
    name: str
    phone: str
    completed_visits: int = 0
    last_visit: Optional[Date] = None
    next_appointment: Optional[UpcomingAppointment] = None
