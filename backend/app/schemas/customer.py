"""Customer & loyalty schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.services.loyalty import LoyaltyTier
from app.services.validation import normalize_phone


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else None


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    phone: str | None
    email: str | None
    address: str | None
    store_id: UUID
    loyalty_points: int
    total_spent: Decimal
    loyalty_tier: LoyaltyTier
    created_at: datetime
    updated_at: datetime


class CustomerListResponse(BaseModel):
    items: list[CustomerResponse]
    total: int
    page: int
    size: int


class LoyaltyPointsRequest(BaseModel):
    points: int = Field(..., ge=1)
    note: str | None = Field(None, max_length=255)


class LoyaltyRedeemResponse(BaseModel):
    customer: CustomerResponse
    points_redeemed: int
    value: Decimal


class TierInfo(BaseModel):
    tier: LoyaltyTier
    name: str
    minimum_spent: Decimal
    points_multiplier: Decimal
    discount_percentage: Decimal
    benefits: list[str]


class LoyaltySummary(BaseModel):
    customer_id: UUID
    loyalty_points: int
    points_value: Decimal
    total_spent: Decimal
    tier: TierInfo
    next_tier: TierInfo | None
    amount_to_next_tier: Decimal
    progress_percent: Decimal
