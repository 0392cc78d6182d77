"""Category schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from app.services.tax import TaxCategory


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    tax_category: TaxCategory = TaxCategory.STANDARD_GOODS
    parent_id: UUID | None = None
    sort_order: int = 0


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    tax_category: TaxCategory | None = None
    parent_id: UUID | None = None
    sort_order: int | None = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    store_id: UUID
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(BaseModel):
    items: list[CategoryResponse]
    total: int
