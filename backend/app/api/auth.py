"""Authentication endpoints: staff login, store owner onboarding, profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.security import TokenClaims, create_access_token, hash_password, verify_and_upgrade
from app.core.deps import get_current_user
from app.db.base import get_db
from app.models.user import User
from app.models.settings import StoreSettings
from app.models.store import Store
from app.models.role import Role, RoleType, RolePermission
from app.schemas.auth import (
    LoginRequest,
    TokenResponse,
    RegisterOwnerRequest,
    RegisterOwnerResponse,
    CurrentUser,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_ROLE_WITH_PERMISSIONS = (
    selectinload(User.role).selectinload(Role.permissions).selectinload(RolePermission.permission)
)


def role_permissions(role: Role) -> list[str]:
    return sorted(rp.permission.action.value for rp in role.permissions)


def issue_token(user: User, role: Role) -> str:
    return create_access_token(
        TokenClaims(
            sub=user.id,
            store_id=user.store_id,
            role=role.name.value,
            permissions=role_permissions(role),
            name=user.full_name,
        )
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Authenticate via email + password and return a shift-length JWT."""
    result = await db.execute(
        select(User).where(User.email == body.email).options(_ROLE_WITH_PERMISSIONS)
    )
    user = result.scalar_one_or_none()

    verified, new_hash = verify_and_upgrade(body.password, user.hashed_password) if user else (False, None)
    if not verified:
        logger.warning("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email hoặc mật khẩu không đúng",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tài khoản đã bị vô hiệu hóa",
        )

    if new_hash:
        user.hashed_password = new_hash
        await db.commit()
        logger.info("Upgraded password hash for user %s", user.id)

    return TokenResponse(
        access_token=issue_token(user, user.role),
        user_id=user.id,
        store_id=user.store_id,
        role=user.role.name.value,
        full_name=user.full_name,
    )


@router.post(
    "/register",
    response_model=RegisterOwnerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_owner(body: RegisterOwnerRequest, db: AsyncSession = Depends(get_db)):
    """Register a new store with an owner account (self-service onboarding)."""
    existing_user = await db.execute(select(User).where(User.email == body.email))
    if existing_user.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email đã được đăng ký")

    existing_store = await db.execute(select(Store).where(Store.code == body.store_code))
    if existing_store.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Mã cửa hàng đã tồn tại")

    role_result = await db.execute(
        select(Role)
        .where(Role.name == RoleType.OWNER)
        .options(selectinload(Role.permissions).selectinload(RolePermission.permission))
    )
    owner_role = role_result.scalar_one_or_none()
    if not owner_role:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="RBAC roles not seeded. Run seed_rbac first.",
        )

    store = Store(
        name=body.store_name,
        code=body.store_code,
        address=body.store_address,
        phone=body.store_phone,
        tax_id=body.store_tax_id,
    )
    store.settings = StoreSettings()
    db.add(store)
    await db.flush()  # get store.id

    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        phone=body.phone,
        position="Chủ cửa hàng",
        store_id=store.id,
        role_id=owner_role.id,
    )
    db.add(user)
    await db.flush()  # get user.id
    await db.commit()

    token = issue_token(user, owner_role)
    logger.info("Store %s registered by %s", store.code, user.email)

    return RegisterOwnerResponse(
        user_id=user.id,
        store_id=store.id,
        access_token=token,
    )


@router.get("/me", response_model=CurrentUser)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return full profile of the current authenticated user."""
    result = await db.execute(
        select(User).where(User.id == current_user.id).options(_ROLE_WITH_PERMISSIONS)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy người dùng")

    return CurrentUser(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.name.value,
        store_id=user.store_id,
        permissions=role_permissions(user.role),
        is_active=user.is_active,
    )
