# app/clock.py

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from .config import get_settings


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall time in the shop's timezone."""

    def __init__(self, timezone: str):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


# Dependency: overridden in tests
def get_clock() -> Clock:
    return SystemClock(get_settings().timezone)
