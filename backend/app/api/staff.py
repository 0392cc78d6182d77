"""Staff (nhân viên) management endpoints."""

import logging
from datetime import date, datetime, time, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.deps import require_permission
from app.core.security import hash_password
from app.db.base import get_db
from app.models.role import Role, RoleType
from app.models.shift import Shift, ShiftStatus
from app.models.user import User
from app.schemas.auth import CurrentUser
from app.schemas.staff import (
    StaffCreate,
    StaffUpdate,
    StaffResponse,
    StaffListResponse,
    StaffHours,
)
from app.services.scheduling import VN_TZ, hours_worked

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["staff"])


async def _get_staff(db: AsyncSession, staff_id: UUID, store_id: UUID) -> User:
    result = await db.execute(
        select(User)
        .where(User.id == staff_id, User.store_id == store_id)
        .options(selectinload(User.role))
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy nhân viên")
    return user


async def _get_role(db: AsyncSession, role: RoleType) -> Role:
    result = await db.execute(select(Role).where(Role.name == role))
    found = result.scalar_one_or_none()
    if not found:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RBAC roles not seeded. Run seed_rbac first.",
        )
    return found


def _check_role_grant(current_user: CurrentUser, role: RoleType) -> None:
    # Only owners hand out manager or owner rights.
    if role != RoleType.CASHIER and current_user.role != RoleType.OWNER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Chỉ chủ cửa hàng được cấp vai trò quản lý hoặc chủ",
        )


@router.get("", response_model=StaffListResponse)
async def list_staff(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    is_active: bool | None = None,
    current_user: CurrentUser = Depends(require_permission("user:read")),
    db: AsyncSession = Depends(get_db),
):
    query = select(User).where(User.store_id == current_user.store_id)
    if is_active is not None:
        query = query.where(User.is_active == is_active)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    query = (
        query.options(selectinload(User.role))
        .offset((page - 1) * size)
        .limit(size)
        .order_by(User.full_name)
    )
    result = await db.execute(query)
    users = result.scalars().all()

    return StaffListResponse(
        items=[StaffResponse.from_user(u) for u in users],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: UUID,
    current_user: CurrentUser = Depends(require_permission("user:read")),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_staff(db, staff_id, current_user.store_id)
    return StaffResponse.from_user(user)


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    body: StaffCreate,
    current_user: CurrentUser = Depends(require_permission("user:create")),
    db: AsyncSession = Depends(get_db),
):
    """Add a staff account to the current store (requires user:create)."""
    _check_role_grant(current_user, body.role)

    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email đã được đăng ký")

    existing = await db.execute(
        select(User).where(
            User.store_id == current_user.store_id,
            User.employee_code == body.employee_code,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Mã nhân viên '{body.employee_code}' đã tồn tại",
        )

    role = await _get_role(db, body.role)
    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        phone=body.phone,
        employee_code=body.employee_code,
        position=body.position,
        store_id=current_user.store_id,
        role_id=role.id,
    )
    user.role = role
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Staff %s (%s) added by %s", user.employee_code, body.role.value, current_user.id)
    return StaffResponse.from_user(user)


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: UUID,
    body: StaffUpdate,
    current_user: CurrentUser = Depends(require_permission("user:update")),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_staff(db, staff_id, current_user.store_id)

    updates = body.model_dump(exclude_unset=True)
    new_role = updates.pop("role", None)
    if new_role is not None and new_role != user.role.name:
        _check_role_grant(current_user, new_role)
        if user.id == current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Không thể tự đổi vai trò của chính mình",
            )
        role = await _get_role(db, new_role)
        user.role_id = role.id
        user.role = role

    for field, value in updates.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)

    return StaffResponse.from_user(user)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_staff(
    staff_id: UUID,
    current_user: CurrentUser = Depends(require_permission("user:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a staff account. Orders and shifts keep referencing it."""
    if staff_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Không thể vô hiệu hóa tài khoản của chính mình",
        )
    user = await _get_staff(db, staff_id, current_user.store_id)
    user.is_active = False
    await db.commit()
    logger.info("Staff %s deactivated by %s", user.id, current_user.id)


@router.get("/{staff_id}/hours", response_model=StaffHours)
async def get_staff_hours(
    staff_id: UUID,
    from_date: date = Query(...),
    to_date: date = Query(...),
    current_user: CurrentUser = Depends(require_permission("shift:read")),
    db: AsyncSession = Depends(get_db),
):
    """Hours worked across completed shifts starting within [from_date, to_date]."""
    if to_date < from_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ngày kết thúc phải sau ngày bắt đầu",
        )
    user = await _get_staff(db, staff_id, current_user.store_id)

    start = datetime.combine(from_date, time.min, tzinfo=VN_TZ)
    end = datetime.combine(to_date + timedelta(days=1), time.min, tzinfo=VN_TZ)
    result = await db.execute(
        select(Shift).where(
            Shift.staff_id == user.id,
            Shift.status == ShiftStatus.COMPLETED,
            Shift.starts_at >= start,
            Shift.starts_at < end,
        )
    )
    shifts = result.scalars().all()

    return StaffHours(
        staff_id=user.id,
        full_name=user.full_name,
        shifts_completed=len(shifts),
        hours_worked=hours_worked(shifts),
    )
