"""Store settings schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StoreSettingsUpdate(BaseModel):
    prices_include_tax: bool | None = None
    is_export_store: bool | None = None
    cash_rounding_step: int | None = Field(None, gt=0, le=10000)
    loyalty_enabled: bool | None = None
    receipt_header: str | None = Field(None, max_length=255)
    receipt_footer: str | None = Field(None, max_length=255)


class StoreSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    store_id: UUID
    prices_include_tax: bool
    is_export_store: bool
    cash_rounding_step: int
    loyalty_enabled: bool
    receipt_header: str | None
    receipt_footer: str
    updated_at: datetime | None = None
