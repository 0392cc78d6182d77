"""Product model."""

import uuid
from decimal import Decimal

from sqlalchemy import String, Text, Numeric, Boolean, ForeignKey, Index, Integer, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin
from app.services.tax import TaxCategory


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_store_sku", "store_id", "sku", unique=True),
        Index("ix_products_store_barcode", "store_id", "barcode", unique=True),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    barcode: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str] = mapped_column(String(50), default="cái", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    tax_category: Mapped[TaxCategory] = mapped_column(
        Enum(TaxCategory), default=TaxCategory.STANDARD_GOODS, nullable=False
    )
    is_tax_inclusive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL")
    )

    store = relationship("Store", back_populates="products")
    category = relationship("Category", back_populates="products")
    inventory = relationship("Inventory", back_populates="product", uselist=False, lazy="selectin")
    order_items = relationship("OrderItem", back_populates="product", lazy="noload")

    __mapper_args__ = {"version_id_col": version}

    @property
    def in_stock(self) -> bool:
        return self.inventory is not None and self.inventory.quantity > 0

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"
