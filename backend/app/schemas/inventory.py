"""Inventory schemas for request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.inventory import AdjustmentReason


class InventoryBase(BaseModel):
    quantity: int = Field(..., ge=0, description="Current stock quantity")
    low_stock_threshold: int = Field(10, ge=0, description="Alert when stock falls to this level")
    reorder_quantity: int = Field(50, ge=1, description="Suggested reorder quantity")


class InventoryCreate(InventoryBase):
    product_id: UUID


class InventoryUpdate(BaseModel):
    """Thresholds only; quantity changes go through /adjust."""
    low_stock_threshold: int | None = Field(None, ge=0)
    reorder_quantity: int | None = Field(None, ge=1)


class InventoryAdjustRequest(BaseModel):
    quantity_delta: int = Field(..., description="Change in quantity (positive=in, negative=out)")
    reason: AdjustmentReason
    note: str | None = Field(None, max_length=500)


class InventoryResponse(InventoryBase):
    id: UUID
    product_id: UUID
    store_id: UUID
    is_low_stock: bool
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventoryListResponse(BaseModel):
    items: list[InventoryResponse]
    total: int
    page: int
    size: int


class LowStockResponse(BaseModel):
    items: list[InventoryResponse]
    count: int


class InventoryAdjustmentResponse(BaseModel):
    id: UUID
    inventory_id: UUID
    product_id: UUID
    quantity_delta: int
    quantity_after: int
    reason: AdjustmentReason
    note: str | None
    adjusted_by: UUID | None
    order_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryHistoryResponse(BaseModel):
    items: list[InventoryAdjustmentResponse]
    total: int
    page: int
    size: int
