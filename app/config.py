# app/config.py

from datetime import time
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BARBERSHOP_", env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./barber.db"
    sql_echo: bool = False  # set to True to see SQL

    # Auth
    secret_key: str = "change-me-later"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Shop
    timezone: str = "America/Bogota"
    slot_minutes: int = 30         # client booking grid
    agenda_slot_minutes: int = 15  # staff timeline grid
    default_day_start: time = time(10, 0)
    default_day_end: time = time(20, 0)
    default_service_minutes: int = 30

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
