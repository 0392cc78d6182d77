"""Payments against an order.

Cash and card are recorded at the counter. VNPay and MoMo rows start
``PENDING`` under a ``reference`` sent to the gateway and are settled by
the gateway's IPN callback.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, String, Numeric, Enum, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin
from app.models.order import PaymentMethod


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentGateway(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOMO = "momo"
    VNPAY = "vnpay"

    @property
    def order_method(self) -> PaymentMethod:
        """How the order records being paid through this gateway."""
        return _ORDER_METHODS[self]

    @property
    def is_online(self) -> bool:
        return self in (PaymentGateway.MOMO, PaymentGateway.VNPAY)


_ORDER_METHODS = {
    PaymentGateway.CASH: PaymentMethod.CASH,
    PaymentGateway.CARD: PaymentMethod.CARD,
    PaymentGateway.BANK_TRANSFER: PaymentMethod.TRANSFER,
    PaymentGateway.MOMO: PaymentMethod.MOMO,
    PaymentGateway.VNPAY: PaymentMethod.VNPAY,
}


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_order", "order_id"),
        Index("ix_payments_status_created", "status", "created_at"),
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    gateway: Mapped[PaymentGateway] = mapped_column(Enum(PaymentGateway), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True
    )
    # vnp_TxnRef / MoMo orderId; IPN callbacks look the row up by it
    reference: Mapped[str | None] = mapped_column(String(255), index=True)
    transaction_id: Mapped[str | None] = mapped_column(String(255), unique=True, index=True)
    gateway_response: Mapped[dict | None] = mapped_column(JSONB)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    note: Mapped[str | None] = mapped_column(Text)

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    processed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )

    order = relationship("Order", back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment {self.reference or self.id} {self.gateway.value}={self.amount} {self.status.value}>"
