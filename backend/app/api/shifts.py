"""Shift scheduling (ca làm việc) endpoints."""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import require_permission
from app.core.errors import ShiftConflictError
from app.db.base import get_db
from app.models.shift import Shift, ShiftStatus, ShiftType
from app.models.user import User
from app.schemas.auth import CurrentUser
from app.schemas.shift import (
    ShiftCreate,
    ShiftUpdate,
    ShiftStatusUpdate,
    ShiftResponse,
    ShiftListResponse,
    ScheduleDay,
    WeeklySchedule,
)
from app.services import scheduling
from app.services.scheduling import VN_TZ

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shifts", tags=["shifts"])


async def _get_shift(db: AsyncSession, shift_id: UUID, store_id: UUID) -> Shift:
    result = await db.execute(
        select(Shift).where(Shift.id == shift_id, Shift.store_id == store_id)
    )
    shift = result.scalar_one_or_none()
    if not shift:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy ca làm việc")
    return shift


async def _check_overlap(
    db: AsyncSession,
    staff_id: UUID,
    starts_at: datetime,
    ends_at: datetime,
    ignore_id: UUID | None = None,
) -> None:
    result = await db.execute(
        select(Shift).where(
            Shift.staff_id == staff_id,
            Shift.status != ShiftStatus.CANCELLED,
            Shift.starts_at < ends_at,
            Shift.ends_at > starts_at,
        )
    )
    conflict = scheduling.find_conflict(starts_at, ends_at, result.scalars().all(), ignore_id)
    if conflict is not None:
        raise ShiftConflictError(
            f"Nhân viên đã có {scheduling.SHIFT_LABELS[conflict.shift_type].lower()} "
            f"ngày {conflict.shift_date:%d/%m/%Y} trùng thời gian"
        )


@router.get("", response_model=ShiftListResponse)
async def list_shifts(
    from_date: date | None = None,
    to_date: date | None = None,
    staff_id: UUID | None = None,
    status_filter: ShiftStatus | None = None,
    current_user: CurrentUser = Depends(require_permission("shift:read")),
    db: AsyncSession = Depends(get_db),
):
    query = select(Shift).where(Shift.store_id == current_user.store_id)
    if staff_id:
        query = query.where(Shift.staff_id == staff_id)
    if status_filter:
        query = query.where(Shift.status == status_filter)
    if from_date:
        query = query.where(Shift.shift_date >= from_date)
    if to_date:
        query = query.where(Shift.shift_date <= to_date)

    result = await db.execute(query.order_by(Shift.starts_at))
    shifts = result.scalars().all()
    return ShiftListResponse(
        items=[ShiftResponse.model_validate(s) for s in shifts],
        total=len(shifts),
    )


@router.get("/week", response_model=WeeklySchedule)
async def weekly_schedule(
    day: date | None = None,
    staff_id: UUID | None = None,
    current_user: CurrentUser = Depends(require_permission("shift:read")),
    db: AsyncSession = Depends(get_db),
):
    """Monday..Sunday schedule for the week containing ``day`` (default: today)."""
    week_start, week_end = scheduling.week_bounds(day or datetime.now(VN_TZ).date())

    query = select(Shift).where(
        Shift.store_id == current_user.store_id,
        Shift.shift_date >= week_start,
        Shift.shift_date <= week_end,
        Shift.status != ShiftStatus.CANCELLED,
    )
    if staff_id:
        query = query.where(Shift.staff_id == staff_id)
    result = await db.execute(query.order_by(Shift.starts_at))
    shifts = result.scalars().all()

    days = []
    for offset in range(7):
        current = week_start + timedelta(days=offset)
        days.append(
            ScheduleDay(
                date=current,
                shifts=[ShiftResponse.model_validate(s) for s in shifts if s.shift_date == current],
            )
        )

    return WeeklySchedule(
        week_start=week_start,
        week_end=week_end,
        days=days,
        total_hours=sum((scheduling.shift_hours(s) for s in shifts), Decimal("0.00")),
    )


@router.get("/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: UUID,
    current_user: CurrentUser = Depends(require_permission("shift:read")),
    db: AsyncSession = Depends(get_db),
):
    shift = await _get_shift(db, shift_id, current_user.store_id)
    return ShiftResponse.model_validate(shift)


@router.post("", response_model=ShiftResponse, status_code=status.HTTP_201_CREATED)
async def create_shift(
    body: ShiftCreate,
    current_user: CurrentUser = Depends(require_permission("shift:manage")),
    db: AsyncSession = Depends(get_db),
):
    """Schedule a shift. Overlaps with the staff member's other shifts are rejected."""
    staff = await db.execute(
        select(User).where(User.id == body.staff_id, User.store_id == current_user.store_id)
    )
    staff_member = staff.scalar_one_or_none()
    if not staff_member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy nhân viên")
    if not staff_member.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Không thể xếp ca cho nhân viên đã nghỉ việc",
        )

    starts_at, ends_at = scheduling.shift_bounds(
        body.shift_type, body.shift_date, body.start_time, body.end_time
    )
    await _check_overlap(db, body.staff_id, starts_at, ends_at)

    shift = Shift(
        shift_type=body.shift_type,
        shift_date=body.shift_date,
        starts_at=starts_at,
        ends_at=ends_at,
        status=ShiftStatus.SCHEDULED,
        note=body.note,
        store_id=current_user.store_id,
        staff_id=body.staff_id,
    )
    db.add(shift)
    await db.commit()
    await db.refresh(shift)

    logger.info(
        "Shift %s scheduled for %s on %s by %s",
        body.shift_type.value, body.staff_id, body.shift_date, current_user.id,
    )
    return ShiftResponse.model_validate(shift)


@router.patch("/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: UUID,
    body: ShiftUpdate,
    current_user: CurrentUser = Depends(require_permission("shift:manage")),
    db: AsyncSession = Depends(get_db),
):
    """Reschedule a shift that has not started yet."""
    shift = await _get_shift(db, shift_id, current_user.store_id)
    if shift.status != ShiftStatus.SCHEDULED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Chỉ sửa được ca chưa bắt đầu",
        )

    updates = body.model_dump(exclude_unset=True)
    if "note" in updates:
        shift.note = updates.pop("note")
    # null on a schedule field keeps the current value
    updates = {field: value for field, value in updates.items() if value is not None}

    if updates:
        shift_type = updates.get("shift_type", shift.shift_type)
        shift_date = updates.get("shift_date", shift.shift_date)
        start_time = updates.get("start_time")
        end_time = updates.get("end_time")
        if shift_type == ShiftType.CUSTOM:
            start_time = start_time or shift.starts_at.astimezone(VN_TZ).time()
            end_time = end_time or shift.ends_at.astimezone(VN_TZ).time()
        try:
            starts_at, ends_at = scheduling.shift_bounds(shift_type, shift_date, start_time, end_time)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        await _check_overlap(db, shift.staff_id, starts_at, ends_at, ignore_id=shift.id)

        shift.shift_type = shift_type
        shift.shift_date = shift_date
        shift.starts_at = starts_at
        shift.ends_at = ends_at

    await db.commit()
    await db.refresh(shift)

    return ShiftResponse.model_validate(shift)


@router.post("/{shift_id}/status", response_model=ShiftResponse)
async def change_shift_status(
    shift_id: UUID,
    body: ShiftStatusUpdate,
    current_user: CurrentUser = Depends(require_permission("shift:checkin")),
    db: AsyncSession = Depends(get_db),
):
    """Check in, check out (completed) or cancel.

    Staff may only check themselves in and out; cancelling needs shift:manage.
    """
    shift = await _get_shift(db, shift_id, current_user.store_id)

    if not scheduling.can_transition(shift.status, body.status):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Không thể chuyển ca từ '{shift.status.value}' sang '{body.status.value}'",
        )

    manages = "shift:manage" in current_user.permissions
    if body.status == ShiftStatus.CANCELLED and not manages:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Không có quyền: shift:manage")
    if shift.staff_id != current_user.id and not manages:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Chỉ được chấm công ca của chính mình",
        )

    now = datetime.now(VN_TZ)
    if body.status == ShiftStatus.CHECKED_IN:
        shift.checked_in_at = now
    elif body.status == ShiftStatus.COMPLETED:
        shift.checked_out_at = now
    shift.status = body.status

    await db.commit()
    await db.refresh(shift)

    logger.info("Shift %s -> %s by %s", shift.id, body.status.value, current_user.id)
    return ShiftResponse.model_validate(shift)


@router.delete("/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shift(
    shift_id: UUID,
    current_user: CurrentUser = Depends(require_permission("shift:manage")),
    db: AsyncSession = Depends(get_db),
):
    shift = await _get_shift(db, shift_id, current_user.store_id)
    if shift.status != ShiftStatus.SCHEDULED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Chỉ xóa được ca chưa bắt đầu",
        )
    await db.delete(shift)
    await db.commit()
