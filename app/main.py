# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .db import create_db_and_tables
from . import models  # noqa: F401  registers tables on SQLModel.metadata
from .routers import (
    appointments_routes,
    auth_routes,
    barbers_routes,
    clients_routes,
    services_routes,
    users_routes,
)

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("database ready")
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(services_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(clients_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
