"""Shift scheduling rules: standard shift windows, overlap, hours worked."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from app.models.shift import Shift, ShiftStatus, ShiftType

# Vietnam does not observe DST.
VN_TZ = timezone(timedelta(hours=7), "ICT")

SHIFT_WINDOWS: dict[ShiftType, tuple[time, time]] = {
    ShiftType.MORNING: (time(6, 0), time(14, 0)),
    ShiftType.AFTERNOON: (time(14, 0), time(22, 0)),
    ShiftType.NIGHT: (time(22, 0), time(6, 0)),
    ShiftType.OFFICE: (time(8, 0), time(17, 0)),
}

SHIFT_LABELS: dict[ShiftType, str] = {
    ShiftType.MORNING: "Ca sáng",
    ShiftType.AFTERNOON: "Ca chiều",
    ShiftType.NIGHT: "Ca đêm",
    ShiftType.OFFICE: "Ca hành chính",
    ShiftType.CUSTOM: "Ca tùy chỉnh",
}

ALLOWED_TRANSITIONS: dict[ShiftStatus, set[ShiftStatus]] = {
    ShiftStatus.SCHEDULED: {ShiftStatus.CHECKED_IN, ShiftStatus.CANCELLED},
    ShiftStatus.CHECKED_IN: {ShiftStatus.COMPLETED},
    ShiftStatus.COMPLETED: set(),
    ShiftStatus.CANCELLED: set(),
}


def shift_bounds(
    shift_type: ShiftType,
    shift_date: date,
    start_time: time | None = None,
    end_time: time | None = None,
    tz: timezone = VN_TZ,
) -> tuple[datetime, datetime]:
    """Resolve a shift to concrete start/end datetimes.

    Standard shift types use their fixed window; ``custom`` requires both
    times. An end time at or before the start rolls over to the next day.
    """
    if shift_type == ShiftType.CUSTOM:
        if start_time is None or end_time is None:
            raise ValueError("Ca tùy chỉnh cần giờ bắt đầu và giờ kết thúc")
    else:
        start_time, end_time = SHIFT_WINDOWS[shift_type]

    starts_at = datetime.combine(shift_date, start_time, tzinfo=tz)
    ends_at = datetime.combine(shift_date, end_time, tzinfo=tz)
    if ends_at <= starts_at:
        ends_at += timedelta(days=1)
    return starts_at, ends_at


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # Half-open intervals: back-to-back shifts do not overlap.
    return a_start < b_end and b_start < a_end


def find_conflict(
    starts_at: datetime,
    ends_at: datetime,
    existing: Iterable[Shift],
    ignore_id=None,
) -> Shift | None:
    for shift in existing:
        if shift.status == ShiftStatus.CANCELLED or shift.id == ignore_id:
            continue
        if overlaps(starts_at, ends_at, shift.starts_at, shift.ends_at):
            return shift
    return None


def can_transition(current: ShiftStatus, target: ShiftStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[ShiftStatus(current)]


def shift_hours(shift: Shift) -> Decimal:
    """Worked hours: actual check-in/out when both are recorded, otherwise the scheduled length."""
    start = shift.checked_in_at or shift.starts_at
    end = shift.checked_out_at if shift.checked_in_at and shift.checked_out_at else shift.ends_at
    seconds = Decimal(int((end - start).total_seconds()))
    return (seconds / Decimal(3600)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def hours_worked(shifts: Iterable[Shift]) -> Decimal:
    return sum(
        (shift_hours(s) for s in shifts if s.status == ShiftStatus.COMPLETED),
        Decimal("0.00"),
    )


def week_bounds(day: date) -> tuple[date, date]:
    """Monday..Sunday of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)
