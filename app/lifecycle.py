# app/lifecycle.py

from .schemas import AppointmentStatus as S

ALLOWED_TRANSITIONS = {
    S.SCHEDULED: {S.WAITING, S.IN_SERVICE, S.CANCELLED},
    S.WAITING: {S.IN_SERVICE, S.CANCELLED},
    S.IN_SERVICE: {S.COMPLETED, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

# Appointments that still hold the barber's time going forward
ACTIVE_STATUSES = (S.SCHEDULED.value, S.WAITING.value, S.IN_SERVICE.value)


def can_transition(current: str, target: str) -> bool:
    return S(target) in ALLOWED_TRANSITIONS[S(current)]
