# app/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.db import get_session
from app.models import Service
from app.schemas import ServiceCreate, ServicePublic
from app.auth import get_current_user
from app.deps import require_role

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(select(Service).order_by(Service.name)).all()


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "barber")

    db_service = Service(
        name=service.name,
        price=service.price,
        duration_minutes=service.duration_minutes,
    )
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service
