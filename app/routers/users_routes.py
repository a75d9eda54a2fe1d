# app/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.db import get_session
from app.models import Client, User
from app.schemas import UserCreate, UserPublic, UserRole
from app.auth import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)

@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return {
        "id": current_user["id"],
        "email": current_user["email"],
        "name": current_user["name"],
        "role": current_user["role"],
    }


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB
    db_user = User(
        email=user.email,
        name=user.name or user.email,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )
    session.add(db_user)
    session.flush()  # fills db_user.id

    # 3) Clients get a profile that appointments point at
    if user.role == UserRole.client:
        session.add(Client(user_id=db_user.id, name=db_user.name, phone=user.phone))

    session.commit()
    session.refresh(db_user)
    logger.info("registered %s %s", db_user.role, db_user.email)

    # 4) Return public user
    return {
        "id": db_user.id,
        "email": db_user.email,
        "name": db_user.name,
        "role": db_user.role,
    }
