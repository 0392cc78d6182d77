"""Order schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from app.models.order import OrderStatus, PaymentMethod
from app.schemas.cart import CartLine
from app.services.tax import DiscountType, TaxCategory


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    tax_category: TaxCategory
    is_tax_inclusive: bool
    vat_rate: Decimal
    excise_rate: Decimal
    subtotal: Decimal
    excise_amount: Decimal
    vat_amount: Decimal
    total: Decimal


class OrderCreate(BaseModel):
    customer_id: UUID | None = None
    items: list[CartLine] = Field(..., min_length=1)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    points_to_redeem: int = Field(0, ge=0)
    payment_method: PaymentMethod | None = None
    amount_paid: Decimal | None = Field(None, ge=0)
    note: str | None = None


class OrderUpdate(BaseModel):
    payment_method: PaymentMethod | None = None
    note: str | None = None


class OrderComplete(BaseModel):
    payment_method: PaymentMethod | None = None
    amount_paid: Decimal | None = Field(None, ge=0)


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    status: OrderStatus
    is_export: bool
    subtotal: Decimal
    excise_amount: Decimal
    vat_amount: Decimal
    tax_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    tier_discount: Decimal
    points_redeemed: int
    points_discount: Decimal
    points_earned: int
    total: Decimal
    cash_rounding: Decimal
    amount_due: Decimal
    amount_paid: Decimal | None
    change: Decimal
    payment_method: PaymentMethod | None
    note: str | None
    store_id: UUID
    cashier_id: UUID
    customer_id: UUID | None
    items: list[OrderItemResponse]
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    size: int
