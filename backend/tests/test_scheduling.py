"""Unit tests for shift scheduling rules."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from types import SimpleNamespace
import uuid

import pytest

from app.models.shift import ShiftStatus, ShiftType
from app.services.scheduling import (
    VN_TZ,
    can_transition,
    find_conflict,
    hours_worked,
    overlaps,
    shift_bounds,
    shift_hours,
    week_bounds,
)


def _shift(start: datetime, end: datetime, status=ShiftStatus.SCHEDULED, **kwargs):
    return SimpleNamespace(
        id=kwargs.get("id", uuid.uuid4()),
        starts_at=start,
        ends_at=end,
        status=status,
        checked_in_at=kwargs.get("checked_in_at"),
        checked_out_at=kwargs.get("checked_out_at"),
    )


def _at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 6, day, hour, minute, tzinfo=VN_TZ)


# ── Bounds ─────────────────────────────────────────

def test_morning_shift_bounds():
    start, end = shift_bounds(ShiftType.MORNING, date(2024, 6, 3))
    assert start == _at(3, 6)
    assert end == _at(3, 14)


def test_night_shift_rolls_over():
    start, end = shift_bounds(ShiftType.NIGHT, date(2024, 6, 3))
    assert start == _at(3, 22)
    assert end == _at(4, 6)


def test_custom_shift_requires_times():
    with pytest.raises(ValueError):
        shift_bounds(ShiftType.CUSTOM, date(2024, 6, 3), start_time=time(9, 0))


def test_custom_shift_times():
    start, end = shift_bounds(ShiftType.CUSTOM, date(2024, 6, 3), time(9, 30), time(13, 0))
    assert end - start == timedelta(hours=3, minutes=30)


def test_standard_type_ignores_given_times():
    start, _ = shift_bounds(ShiftType.OFFICE, date(2024, 6, 3), time(1, 0), time(2, 0))
    assert start == _at(3, 8)


# ── Overlap ────────────────────────────────────────

def test_back_to_back_shifts_do_not_overlap():
    assert not overlaps(_at(3, 6), _at(3, 14), _at(3, 14), _at(3, 22))
    assert overlaps(_at(3, 6), _at(3, 14), _at(3, 13), _at(3, 22))


def test_find_conflict_skips_cancelled_and_self():
    cancelled = _shift(_at(3, 6), _at(3, 14), ShiftStatus.CANCELLED)
    same = _shift(_at(3, 6), _at(3, 14))
    assert find_conflict(_at(3, 8), _at(3, 12), [cancelled, same], ignore_id=same.id) is None

    other = _shift(_at(3, 10), _at(3, 18))
    assert find_conflict(_at(3, 8), _at(3, 12), [cancelled, other]) is other


# ── Transitions ────────────────────────────────────

def test_transitions():
    assert can_transition(ShiftStatus.SCHEDULED, ShiftStatus.CHECKED_IN)
    assert can_transition(ShiftStatus.SCHEDULED, ShiftStatus.CANCELLED)
    assert can_transition(ShiftStatus.CHECKED_IN, ShiftStatus.COMPLETED)
    assert not can_transition(ShiftStatus.SCHEDULED, ShiftStatus.COMPLETED)
    assert not can_transition(ShiftStatus.COMPLETED, ShiftStatus.CHECKED_IN)
    assert not can_transition(ShiftStatus.CANCELLED, ShiftStatus.SCHEDULED)


# ── Hours ──────────────────────────────────────────

def test_shift_hours_uses_actual_times():
    shift = _shift(
        _at(3, 6), _at(3, 14), ShiftStatus.COMPLETED,
        checked_in_at=_at(3, 6, 15), checked_out_at=_at(3, 14, 0),
    )
    assert shift_hours(shift) == Decimal("7.75")


def test_shift_hours_falls_back_to_schedule():
    assert shift_hours(_shift(_at(3, 22), _at(4, 6))) == Decimal("8.00")


def test_hours_worked_counts_completed_only():
    shifts = [
        _shift(_at(3, 6), _at(3, 14), ShiftStatus.COMPLETED),
        _shift(_at(4, 6), _at(4, 14), ShiftStatus.SCHEDULED),
        _shift(_at(5, 14), _at(5, 22), ShiftStatus.COMPLETED),
    ]
    assert hours_worked(shifts) == Decimal("16.00")
    assert hours_worked([]) == Decimal("0.00")


def test_week_bounds():
    # 2024-06-05 is a Wednesday
    assert week_bounds(date(2024, 6, 5)) == (date(2024, 6, 3), date(2024, 6, 9))
    assert week_bounds(date(2024, 6, 3)) == (date(2024, 6, 3), date(2024, 6, 9))
