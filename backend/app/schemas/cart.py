"""Cart quote schemas (the checkout screen's live breakdown)."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.order import PaymentMethod
from app.services.loyalty import LoyaltyTier
from app.services.tax import DiscountType, TaxCategory


class CartLine(BaseModel):
    product_id: UUID
    # Lines at or below zero after merging are dropped.
    quantity: int


class CartQuoteRequest(BaseModel):
    items: list[CartLine] = Field(default_factory=list)
    customer_id: UUID | None = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    points_to_redeem: int = Field(0, ge=0)
    payment_method: PaymentMethod | None = None
    amount_received: Decimal | None = Field(None, ge=0)


class QuoteLine(BaseModel):
    product_id: UUID
    name: str
    sku: str
    quantity: int
    unit_price: Decimal
    tax_category: TaxCategory
    is_tax_inclusive: bool
    vat_rate: Decimal
    excise_rate: Decimal
    subtotal: Decimal
    excise_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    available_quantity: int | None = None


class CheckoutQuote(BaseModel):
    lines: list[QuoteLine]
    subtotal: Decimal
    total_excise: Decimal
    total_vat: Decimal
    total_tax: Decimal
    total_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    manual_discount: Decimal
    tier_discount: Decimal
    discount_amount: Decimal
    points_redeemed: int
    points_discount: Decimal
    final_amount: Decimal
    cash_rounding: Decimal
    amount_due: Decimal
    amount_received: Decimal | None = None
    change: Decimal = Decimal("0")
    is_sufficient: bool = True
    points_to_earn: int = 0
    customer_tier: LoyaltyTier | None = None
    is_export: bool = False
