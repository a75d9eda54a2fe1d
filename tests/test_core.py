# tests/test_core.py

from datetime import date, datetime, time

import pytest

from app.core import (
    add_minutes,
    block_is_effective,
    generate_grid,
    intervals_overlap,
    point_in_interval,
    truncate_to_minute,
    weekday_of,
)
from app.models import Block


def test_grid_is_half_open():
    assert generate_grid(time(10, 0), time(12, 0), 30) == [
        time(10, 0), time(10, 30), time(11, 0), time(11, 30),
    ]


def test_grid_step_is_a_parameter():
    assert len(generate_grid(time(10, 0), time(12, 0), 15)) == 8


def test_grid_stops_before_end_when_step_does_not_divide():
    assert generate_grid(time(10, 0), time(10, 50), 30) == [time(10, 0), time(10, 30)]


@pytest.mark.parametrize("start,end", [(time(12, 0), time(10, 0)), (time(10, 0), time(10, 0))])
def test_grid_empty_when_window_is_empty(start, end):
    assert generate_grid(start, end, 30) == []


def test_grid_rejects_non_positive_step():
    with pytest.raises(ValueError):
        generate_grid(time(10, 0), time(12, 0), 0)


def test_point_in_interval_is_end_exclusive():
    assert point_in_interval(time(10, 30), time(10, 30), time(11, 30))
    assert point_in_interval(time(11, 0), time(10, 30), time(11, 30))
    assert not point_in_interval(time(11, 30), time(10, 30), time(11, 30))
    assert not point_in_interval(time(10, 0), time(10, 30), time(11, 30))


def test_overlap_is_symmetric():
    pairs = [
        ((time(10, 30), time(11, 30)), (time(10, 0), time(11, 0))),
        ((time(10, 0), time(12, 0)), (time(10, 30), time(11, 0))),
        ((time(10, 0), time(11, 0)), (time(11, 0), time(12, 0))),
        ((time(9, 0), time(9, 30)), (time(10, 0), time(11, 0))),
    ]
    for a, b in pairs:
        assert intervals_overlap(*a, *b) == intervals_overlap(*b, *a)


def test_touching_intervals_do_not_overlap():
    assert not intervals_overlap(time(10, 0), time(11, 0), time(11, 0), time(12, 0))
    assert intervals_overlap(time(10, 0), time(11, 1), time(11, 0), time(12, 0))


def test_containment_overlaps():
    assert intervals_overlap(time(10, 0), time(12, 0), time(10, 30), time(11, 0))


def test_add_minutes():
    assert add_minutes(time(10, 30), 60) == time(11, 30)
    assert add_minutes(time(23, 30), 30) is None
    assert add_minutes(time(23, 0), 59) == time(23, 59)


def test_truncate_to_minute():
    assert truncate_to_minute(datetime(2024, 6, 3, 10, 45, 59, 999)) == datetime(2024, 6, 3, 10, 45)


def test_weekday_starts_on_sunday():
    assert weekday_of(date(2024, 6, 2)) == 0  # Sunday
    assert weekday_of(date(2024, 6, 3)) == 1  # Monday
    assert weekday_of(date(2024, 6, 1)) == 6  # Saturday


def test_dated_block_is_effective_only_on_its_date():
    block = Block(barber_id=1, date=date(2024, 6, 4), start_time=time(13, 0), end_time=time(14, 0))
    assert block_is_effective(block, date(2024, 6, 4))
    assert not block_is_effective(block, date(2024, 6, 11))


def test_recurring_block_is_effective_on_its_weekday():
    block = Block(barber_id=1, day_of_week=2, start_time=time(13, 0), end_time=time(14, 0))
    assert block_is_effective(block, date(2024, 6, 4))
    assert block_is_effective(block, date(2024, 6, 11))
    assert not block_is_effective(block, date(2024, 6, 5))


def test_block_without_date_or_weekday_matches_nothing():
    block = Block(barber_id=1, start_time=time(13, 0), end_time=time(14, 0))
    assert not block_is_effective(block, date(2024, 6, 4))
