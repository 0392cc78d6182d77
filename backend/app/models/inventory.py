"""Inventory (tồn kho) and adjustment history models."""

import enum
import uuid

from sqlalchemy import Integer, ForeignKey, UniqueConstraint, CheckConstraint, Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class AdjustmentReason(str, enum.Enum):
    RESTOCK = "restock"
    SALE = "sale"
    RETURN = "return"
    DAMAGED = "damaged"
    STOCKTAKE = "stocktake"
    OTHER = "other"


class Inventory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("store_id", "product_id", name="uq_inventory_store_product"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    reorder_quantity: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )

    store = relationship("Store", back_populates="inventory")
    product = relationship("Product", back_populates="inventory")
    adjustments = relationship(
        "InventoryAdjustment", back_populates="inventory", cascade="all, delete-orphan", lazy="noload"
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    def __repr__(self) -> str:
        return f"<Inventory store={self.store_id} product={self.product_id} qty={self.quantity}>"


class InventoryAdjustment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "inventory_adjustments"

    quantity_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[AdjustmentReason] = mapped_column(Enum(AdjustmentReason), nullable=False)
    note: Mapped[str | None] = mapped_column(String(500))

    inventory_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    adjusted_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id", ondelete="SET NULL")
    )

    inventory = relationship("Inventory", back_populates="adjustments")

    def __repr__(self) -> str:
        return f"<InventoryAdjustment product={self.product_id} delta={self.quantity_delta}>"
