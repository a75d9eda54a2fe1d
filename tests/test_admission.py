# tests/test_admission.py

from datetime import date, datetime, time
from itertools import combinations

import pytest

from app.admission import (
    Admitted,
    Conflict,
    Rejected,
    RejectReason,
    admit,
    detect_walk_in_conflict,
)
from app.core import from_minutes, intervals_overlap
from app.models import Appointment, Block, WorkSchedule

BARBER_A = 1
BARBER_B = 2
DAY = date(2024, 6, 1)  # Saturday


def appointment(start, end, barber_id=BARBER_A, day=DAY, status="SCHEDULED", id=None):
    return Appointment(id=id, barber_id=barber_id, date=day, start_time=start, end_time=end,
                       duration_minutes=0, status=status)


def test_overlapping_request_is_rejected():
    existing = appointment(time(10, 0), time(11, 0), id=7)
    decision = admit(BARBER_A, DAY, time(10, 30), 60, [existing])
    assert isinstance(decision, Rejected)
    assert decision.reason == RejectReason.SLOT_TAKEN
    assert decision.appointment is existing


def test_back_to_back_requests_are_admitted():
    existing = [appointment(time(10, 0), time(11, 0))]
    after = admit(BARBER_A, DAY, time(11, 0), 60, existing)
    before = admit(BARBER_A, DAY, time(9, 0), 60, existing)
    assert after == Admitted(BARBER_A, DAY, time(11, 0), time(12, 0))
    assert before == Admitted(BARBER_A, DAY, time(9, 0), time(10, 0))


def test_request_covering_an_existing_appointment_is_rejected():
    existing = [appointment(time(10, 15), time(10, 30))]
    decision = admit(BARBER_A, DAY, time(10, 0), 60, existing)
    assert decision.reason == RejectReason.SLOT_TAKEN


def test_cancelled_and_other_barbers_appointments_are_ignored():
    live = [
        appointment(time(10, 0), time(11, 0), status="CANCELLED"),
        appointment(time(10, 0), time(11, 0), barber_id=BARBER_B),
        appointment(time(10, 0), time(11, 0), day=date(2024, 6, 2)),
    ]
    assert isinstance(admit(BARBER_A, DAY, time(10, 0), 60, live), Admitted)


def test_stale_slot_list_is_rechecked():
    # the slot looked free when rendered; someone booked it since
    booked_meanwhile = appointment(time(11, 0), time(11, 30))
    decision = admit(BARBER_A, DAY, time(11, 0), 30, [booked_meanwhile])
    assert decision.reason == RejectReason.SLOT_TAKEN


def test_inactive_schedule():
    closed = WorkSchedule(barber_id=BARBER_A, day_of_week=6, active=False,
                          start_time=time(10, 0), end_time=time(20, 0))
    decision = admit(BARBER_A, DAY, time(10, 0), 30, [], check_schedule=True, schedule=closed)
    assert decision.reason == RejectReason.SCHEDULE_INACTIVE


@pytest.mark.parametrize("start,minutes", [(time(9, 30), 30), (time(11, 30), 60), (time(23, 45), 30)])
def test_outside_working_hours(start, minutes):
    open_day = WorkSchedule(barber_id=BARBER_A, day_of_week=6, active=True,
                            start_time=time(10, 0), end_time=time(12, 0))
    decision = admit(BARBER_A, DAY, start, minutes, [], check_schedule=True, schedule=open_day)
    assert decision.reason == RejectReason.OUTSIDE_HOURS


def test_default_window_applies_without_schedule_row():
    assert isinstance(admit(BARBER_A, DAY, time(19, 30), 30, [], check_schedule=True), Admitted)
    decision = admit(BARBER_A, DAY, time(19, 45), 30, [], check_schedule=True)
    assert decision.reason == RejectReason.OUTSIDE_HOURS


def test_past_time_today():
    now = datetime(2024, 6, 1, 10, 45)
    assert admit(BARBER_A, DAY, time(10, 30), 30, [], now=now).reason == RejectReason.PAST_TIME
    assert isinstance(admit(BARBER_A, DAY, time(10, 45), 30, [], now=now), Admitted)
    assert admit(BARBER_A, date(2024, 5, 31), time(18, 0), 30, [], now=now).reason == RejectReason.PAST_TIME


def test_request_overlapping_a_block_is_rejected():
    lunch = Block(barber_id=BARBER_A, date=DAY, reason="Lunch", start_time=time(11, 0), end_time=time(11, 30))
    decision = admit(BARBER_A, DAY, time(10, 30), 60, [], blocks=[lunch])
    assert decision.reason == RejectReason.SLOT_BLOCKED
    assert decision.block is lunch
    assert isinstance(admit(BARBER_A, DAY, time(11, 30), 30, [], blocks=[lunch]), Admitted)


def test_block_reason_takes_precedence_over_taken():
    lunch = Block(barber_id=BARBER_A, day_of_week=6, start_time=time(13, 0), end_time=time(14, 0))
    busy = [appointment(time(13, 0), time(13, 30))]
    assert admit(BARBER_A, DAY, time(13, 0), 30, busy, blocks=[lunch]).reason == RejectReason.SLOT_BLOCKED


def test_non_positive_duration_is_a_programming_error():
    with pytest.raises(ValueError):
        admit(BARBER_A, DAY, time(10, 0), 0, [])


def test_no_two_admitted_appointments_overlap():
    live = []
    requests = [
        (start, minutes)
        for minutes in (15, 30, 45, 60, 90)
        for start in range(9 * 60, 18 * 60, 15)
    ]
    for start, minutes in requests:
        decision = admit(BARBER_A, DAY, from_minutes(start), minutes, live)
        if isinstance(decision, Admitted):
            live.append(appointment(decision.start_time, decision.end_time))

    assert live
    for a, b in combinations(live, 2):
        assert not intervals_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def test_walk_in_conflict_is_reported_not_rejected():
    existing = appointment(time(10, 0), time(11, 0), id=3)
    decision = detect_walk_in_conflict(BARBER_A, DAY, time(10, 30), 60, [existing])
    assert isinstance(decision, Conflict)
    assert decision.appointment is existing
    assert (decision.start_time, decision.end_time) == (time(10, 30), time(11, 30))


def test_walk_in_force_skips_the_overlap_check():
    existing = appointment(time(10, 0), time(11, 0))
    decision = detect_walk_in_conflict(BARBER_A, DAY, time(10, 30), 60, [existing], force=True)
    assert decision == Admitted(BARBER_A, DAY, time(10, 30), time(11, 30))


def test_walk_in_without_conflict():
    existing = appointment(time(10, 0), time(11, 0), status="CANCELLED")
    assert isinstance(detect_walk_in_conflict(BARBER_A, DAY, time(10, 30), 30, [existing]), Admitted)


def test_walk_in_past_midnight():
    decision = detect_walk_in_conflict(BARBER_A, DAY, time(23, 50), 30, [])
    assert decision.reason == RejectReason.OUTSIDE_HOURS
