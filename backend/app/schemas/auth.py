"""Auth request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.services.validation import normalize_phone, validate_tax_code


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    store_id: UUID
    role: str
    full_name: str


# ── Register Store Owner ───────────────────────────
class RegisterOwnerRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = None
    store_name: str = Field(min_length=1, max_length=255)
    store_code: str = Field(min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    store_address: str | None = None
    store_phone: str | None = None
    store_tax_id: str | None = None

    @field_validator("phone", "store_phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else v

    @field_validator("store_tax_id")
    @classmethod
    def _tax_id(cls, v: str | None) -> str | None:
        return validate_tax_code(v) if v else v


class RegisterOwnerResponse(BaseModel):
    user_id: UUID
    store_id: UUID
    access_token: str
    token_type: str = "bearer"
    message: str = "Đăng ký cửa hàng thành công"


# ── Current User ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    store_id: UUID
    permissions: list[str]
    is_active: bool
