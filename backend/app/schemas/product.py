"""Product schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.tax import TaxCategory
from app.services.validation import validate_barcode


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    barcode: str | None = Field(None, max_length=100)
    description: str | None = None
    unit: str = Field("cái", max_length=50)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    cost_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    is_tax_inclusive: bool = True
    image_url: str | None = None
    category_id: UUID | None = None

    @field_validator("barcode")
    @classmethod
    def _barcode(cls, v: str | None) -> str | None:
        return validate_barcode(v) if v else v


class ProductCreate(ProductBase):
    # Falls back to the category's tax category, then standard goods.
    tax_category: TaxCategory | None = None
    initial_stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    sku: str | None = Field(None, min_length=1, max_length=100)
    barcode: str | None = Field(None, max_length=100)
    description: str | None = None
    unit: str | None = Field(None, max_length=50)
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    cost_price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    tax_category: TaxCategory | None = None
    is_tax_inclusive: bool | None = None
    image_url: str | None = None
    category_id: UUID | None = None
    is_active: bool | None = None
    version: int | None = Field(None, ge=1, description="Expected version; 409 if stale")

    @field_validator("barcode")
    @classmethod
    def _barcode(cls, v: str | None) -> str | None:
        return validate_barcode(v) if v else v


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    store_id: UUID
    tax_category: TaxCategory
    is_active: bool
    in_stock: bool
    version: int
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    size: int
