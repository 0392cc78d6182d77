"""Tax calculator schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from app.services.tax import DiscountType, TaxLineInput


class TaxCalculateRequest(BaseModel):
    items: list[TaxLineInput] = Field(..., min_length=1)
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    is_export: bool = False
    rounding_step: int | None = Field(None, gt=0)


class TaxCategoryInfo(BaseModel):
    value: str
    label: str
    vat_rate: Decimal
    excise_rate: Decimal
