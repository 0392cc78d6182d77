"""Payment schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from app.models.payment import PaymentStatus, PaymentGateway


class PaymentBase(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    gateway: PaymentGateway
    note: str | None = None
    reference: str | None = Field(None, max_length=255)


class PaymentCreate(PaymentBase):
    order_id: UUID


class PaymentUpdate(BaseModel):
    status: PaymentStatus | None = None
    transaction_id: str | None = Field(None, max_length=255)
    gateway_response: dict | None = None
    note: str | None = None


class PaymentResponse(PaymentBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    store_id: UUID
    status: PaymentStatus
    transaction_id: str | None
    gateway_response: dict | None
    processed_by: UUID | None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PaymentListResponse(BaseModel):
    items: list[PaymentResponse]
    total: int
    page: int
    size: int


class VNPayPaymentRequest(BaseModel):
    order_id: UUID
    order_info: str | None = Field(None, max_length=255)
    return_url: str
    bank_code: str | None = None


class VNPayCreateResponse(BaseModel):
    payment_id: UUID
    payment_url: str
    txn_ref: str


class MoMoPaymentRequest(BaseModel):
    order_id: UUID
    order_info: str | None = Field(None, max_length=255)
    redirect_url: str
    ipn_url: str


class MoMoCreateResponse(BaseModel):
    payment_id: UUID
    pay_url: str | None
    deeplink: str | None = None
    qr_code_url: str | None = None
    request_id: str


class IPNResponse(BaseModel):
    """Acknowledgement body expected by the gateway."""
    RspCode: str
    Message: str
