"""Customer model with loyalty balance."""

import uuid
from decimal import Decimal

from sqlalchemy import String, Integer, Text, Numeric, Enum, CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin
from app.services.loyalty import LoyaltyTier


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("store_id", "phone", name="uq_customers_store_phone"),
        UniqueConstraint("store_id", "email", name="uq_customers_store_email"),
        CheckConstraint("loyalty_points >= 0", name="ck_customers_points_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), index=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    address: Mapped[str | None] = mapped_column(Text)
    loyalty_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_spent: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0.00"), nullable=False)
    loyalty_tier: Mapped[LoyaltyTier] = mapped_column(
        Enum(LoyaltyTier), default=LoyaltyTier.BRONZE, nullable=False
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )

    orders = relationship("Order", back_populates="customer", lazy="noload")

    def __repr__(self) -> str:
        return f"<Customer {self.name}>"
