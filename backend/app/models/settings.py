"""Per-store settings (cài đặt cửa hàng)."""

import uuid

from sqlalchemy import String, Boolean, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.config import settings as app_settings
from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class StoreSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "store_settings"

    prices_include_tax: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_export_store: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cash_rounding_step: Mapped[int] = mapped_column(
        Integer, default=app_settings.CASH_ROUNDING_STEP, nullable=False
    )
    loyalty_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    receipt_header: Mapped[str | None] = mapped_column(String(255))
    receipt_footer: Mapped[str] = mapped_column(
        String(255), default="Cảm ơn quý khách! Hẹn gặp lại!", nullable=False
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    store = relationship("Store", back_populates="settings")

    def __repr__(self) -> str:
        return f"<StoreSettings store={self.store_id}>"
