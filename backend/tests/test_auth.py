"""Unit tests for auth: security utils + dependency logic."""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from jose import JWTError, jwt

from app.core.config import settings
from app.core.deps import get_current_user, require_permission
from app.core.security import (
    TokenClaims,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_and_upgrade,
    verify_password,
)
from app.schemas.auth import CurrentUser, RegisterOwnerRequest


def _claims(**overrides) -> TokenClaims:
    data = dict(
        sub=uuid.uuid4(),
        store_id=uuid.uuid4(),
        role="cashier",
        permissions=["order:create"],
        name="Trần Thị B",
    )
    data.update(overrides)
    return TokenClaims(**data)


# ── Password hashing ──────────────────────────────

def test_hash_and_verify():
    plain = "MatKhau123!"
    hashed = hash_password(plain)
    assert hashed != plain
    assert verify_password(plain, hashed)
    assert not verify_password("wrong", hashed)


def test_verify_and_upgrade_current_hash():
    hashed = hash_password("MatKhau123!")
    assert verify_and_upgrade("MatKhau123!", hashed) == (True, None)
    assert verify_and_upgrade("sai-mat-khau", hashed) == (False, None)


# ── JWT ────────────────────────────────────────────

def test_create_and_decode_token():
    claims = _claims(role="owner", permissions=["product:read", "order:create"], name="Nguyễn Văn A")
    decoded = decode_access_token(create_access_token(claims))
    assert decoded == claims


def test_token_has_expiry():
    token = create_access_token(_claims())
    payload = jwt.get_unverified_claims(token)
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_token():
    token = create_access_token(_claims(), expires_delta=timedelta(seconds=-1))
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_token_without_store_rejected():
    token = jwt.encode({"sub": str(uuid.uuid4()), "role": "cashier"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(ValueError):
        decode_access_token(token)


@pytest.mark.asyncio
async def test_get_current_user_from_token():
    claims = _claims()
    user = await get_current_user(create_access_token(claims))
    assert user.id == claims.sub
    assert user.store_id == claims.store_id
    assert user.full_name == "Trần Thị B"
    assert user.permissions == ["order:create"]


@pytest.mark.asyncio
async def test_get_current_user_rejects_garbage():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user("not-a-token")
    assert exc_info.value.status_code == 401


def _user(role: str, permissions: list[str]) -> CurrentUser:
    return CurrentUser(
        id=uuid.uuid4(),
        email="",
        full_name="",
        role=role,
        store_id=uuid.uuid4(),
        permissions=permissions,
        is_active=True,
    )


@pytest.mark.asyncio
async def test_require_permission_missing():
    checker = require_permission("order:void")
    with pytest.raises(HTTPException) as exc_info:
        await checker(_user("cashier", ["order:create"]))
    assert exc_info.value.status_code == 403
    assert "order:void" in exc_info.value.detail


@pytest.mark.asyncio
async def test_require_permission_passes():
    checker = require_permission("order:create", "order:read")
    cashier = _user("cashier", ["order:create", "order:read"])
    assert await checker(cashier) is cashier


# ── Login ──────────────────────────────────────────

def _login_db(user):
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    mock_db = MagicMock()
    mock_db.execute = AsyncMock(return_value=result)
    mock_db.commit = AsyncMock()
    return mock_db


def _staff(active=True):
    user = MagicMock()
    user.id = uuid.uuid4()
    user.store_id = uuid.uuid4()
    user.full_name = "Lê Thu Ngân"
    user.is_active = active
    user.hashed_password = hash_password("MatKhau123!")
    user.role.name.value = "cashier"
    user.role.permissions = []
    return user


@pytest.mark.asyncio
async def test_login_issues_token():
    from app.api.auth import login
    from app.schemas.auth import LoginRequest

    staff = _staff()
    mock_db = _login_db(staff)
    response = await login(LoginRequest(email="thungan@example.com", password="MatKhau123!"), mock_db)

    assert response.role == "cashier"
    assert decode_access_token(response.access_token).sub == staff.id
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_login_wrong_password():
    from app.api.auth import login
    from app.schemas.auth import LoginRequest

    with pytest.raises(HTTPException) as exc_info:
        await login(LoginRequest(email="thungan@example.com", password="SaiMatKhau1"), _login_db(_staff()))
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_email():
    from app.api.auth import login
    from app.schemas.auth import LoginRequest

    with pytest.raises(HTTPException) as exc_info:
        await login(LoginRequest(email="khongco@example.com", password="MatKhau123!"), _login_db(None))
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_login_deactivated():
    from app.api.auth import login
    from app.schemas.auth import LoginRequest

    with pytest.raises(HTTPException) as exc_info:
        await login(LoginRequest(email="thungan@example.com", password="MatKhau123!"), _login_db(_staff(active=False)))
    assert exc_info.value.status_code == 403


# ── Registration validation ───────────────────────

def test_register_normalizes_phone_and_tax_id():
    body = RegisterOwnerRequest(
        email="chu@cuahang.vn",
        password="MatKhau123!",
        full_name="Lê Văn C",
        phone="0901 234 567",
        store_name="Tạp hóa Minh Anh",
        store_code="minh-anh",
        store_tax_id="0312345678-001",
    )
    assert body.phone == "+84901234567"
    assert body.store_tax_id == "0312345678-001"


def test_register_rejects_bad_tax_id():
    with pytest.raises(ValueError):
        RegisterOwnerRequest(
            email="chu@cuahang.vn",
            password="MatKhau123!",
            full_name="Lê Văn C",
            store_name="Tạp hóa",
            store_code="tap-hoa",
            store_tax_id="12345",
        )


def test_role_permissions_sorted():
    from app.api.auth import role_permissions

    role = MagicMock()
    role.permissions = []
    for action in ("order:read", "customer:read", "order:create"):
        rp = MagicMock()
        rp.permission.action.value = action
        role.permissions.append(rp)
    assert role_permissions(role) == ["customer:read", "order:create", "order:read"]


# ── Permission matrix sanity ──────────────────────

def test_rbac_matrix():
    from app.db.seed_rbac import ROLE_PERMISSIONS
    from app.models.role import RoleType, PermissionAction

    # Owner has ALL permissions
    assert set(ROLE_PERMISSIONS[RoleType.OWNER]) == set(PermissionAction)

    # Cashier subset of Manager subset of Owner
    cashier = set(ROLE_PERMISSIONS[RoleType.CASHIER])
    manager = set(ROLE_PERMISSIONS[RoleType.MANAGER])
    owner = set(ROLE_PERMISSIONS[RoleType.OWNER])
    assert cashier < manager < owner


def test_cashier_cannot_void_or_see_reports():
    from app.db.seed_rbac import CASHIER_PERMISSIONS
    from app.models.role import PermissionAction

    assert PermissionAction.ORDER_CREATE in CASHIER_PERMISSIONS
    assert PermissionAction.SHIFT_CHECKIN in CASHIER_PERMISSIONS
    assert PermissionAction.ORDER_VOID not in CASHIER_PERMISSIONS
    assert PermissionAction.REPORT_SALES not in CASHIER_PERMISSIONS


def test_only_owner_has_financial_reports():
    from app.db.seed_rbac import MANAGER_PERMISSIONS
    from app.models.role import PermissionAction

    assert PermissionAction.REPORT_FINANCIAL not in MANAGER_PERMISSIONS
    assert PermissionAction.STORE_SETTINGS not in MANAGER_PERMISSIONS
    assert PermissionAction.USER_DELETE not in MANAGER_PERMISSIONS
