# tests/conftest.py

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from app.auth import create_access_token
from app.clock import FixedClock, get_clock
from app.db import get_session, make_engine
from app.main import app
from app.models import Appointment, Client, Service, User, WorkSchedule

# Monday 2024-06-03, 10:45 shop time
NOW = datetime(2024, 6, 3, 10, 45)
TODAY = NOW.date()
TOMORROW = date(2024, 6, 4)


@pytest.fixture(name="session")
def session_fixture():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="clock")
def clock_fixture():
    return FixedClock(NOW)


@pytest.fixture(name="client")
def client_fixture(session: Session, clock: FixedClock):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_clock] = lambda: clock
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def make_user(session: Session, email: str, role: str, name: str = "") -> User:
    user = User(email=email, name=name or email, password_hash="x", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    if role == "client":
        session.add(Client(user_id=user.id, name=user.name))
        session.commit()
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture(name="barber")
def barber_fixture(session: Session) -> User:
    return make_user(session, "tony@shop.test", "barber", "Tony")


@pytest.fixture(name="customer")
def customer_fixture(session: Session) -> User:
    return make_user(session, "ana@mail.test", "client", "Ana")


@pytest.fixture(name="haircut")
def haircut_fixture(session: Session) -> Service:
    service = Service(name="Haircut", price=25000, duration_minutes=30)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@pytest.fixture(name="beard")
def beard_fixture(session: Session) -> Service:
    service = Service(name="Beard trim", price=15000, duration_minutes=15)
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


def add_schedule(session: Session, barber: User, day_of_week: int,
                 start=time(10, 0), end=time(12, 0), active=True) -> WorkSchedule:
    schedule = WorkSchedule(barber_id=barber.id, day_of_week=day_of_week,
                            active=active, start_time=start, end_time=end)
    session.add(schedule)
    session.commit()
    session.refresh(schedule)
    return schedule


def add_appointment(session: Session, barber: User, day: date, start: time, end: time,
                    status: str = "SCHEDULED", origin: str = "ONLINE", client_id=None) -> Appointment:
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    appt = Appointment(barber_id=barber.id, client_id=client_id, date=day, start_time=start,
                       end_time=end, duration_minutes=minutes, status=status, origin=origin)
    session.add(appt)
    session.commit()
    session.refresh(appt)
    return appt
