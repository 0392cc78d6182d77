"""Staff (nhân viên) schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.role import RoleType
from app.services.validation import normalize_phone


class StaffCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = None
    employee_code: str = Field(min_length=1, max_length=20)
    position: str | None = Field(None, max_length=100)
    role: RoleType = RoleType.CASHIER

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else None


class StaffUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = None
    position: str | None = Field(None, max_length=100)
    role: RoleType | None = None
    is_active: bool | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else None


class StaffResponse(BaseModel):
    """Built with ``from_user`` because ``User.role`` is a relationship, not the role name."""

    id: UUID
    email: str
    full_name: str
    phone: str | None
    employee_code: str | None
    position: str | None
    role: RoleType
    is_active: bool
    store_id: UUID
    created_at: datetime

    @classmethod
    def from_user(cls, user) -> "StaffResponse":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            phone=user.phone,
            employee_code=user.employee_code,
            position=user.position,
            role=user.role.name,
            is_active=user.is_active,
            store_id=user.store_id,
            created_at=user.created_at,
        )


class StaffListResponse(BaseModel):
    items: list[StaffResponse]
    total: int
    page: int
    size: int


class StaffHours(BaseModel):
    staff_id: UUID
    full_name: str
    shifts_completed: int
    hours_worked: Decimal
