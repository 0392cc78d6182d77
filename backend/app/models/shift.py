"""Work shift (ca làm việc) model."""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import String, Enum, ForeignKey, Date, DateTime, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class ShiftType(str, enum.Enum):
    MORNING = "ca_sang"
    AFTERNOON = "ca_chieu"
    NIGHT = "ca_dem"
    OFFICE = "ca_hanh_chinh"
    CUSTOM = "custom"


class ShiftStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Shift(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "shifts"
    __table_args__ = (
        Index("ix_shifts_staff_starts", "staff_id", "starts_at"),
        CheckConstraint("ends_at > starts_at", name="ck_shifts_time_order"),
    )

    shift_type: Mapped[ShiftType] = mapped_column(Enum(ShiftType), nullable=False)
    shift_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[ShiftStatus] = mapped_column(
        Enum(ShiftStatus), default=ShiftStatus.SCHEDULED, nullable=False, index=True
    )
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    note: Mapped[str | None] = mapped_column(String(500))

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    staff = relationship("User", back_populates="shifts")

    def __repr__(self) -> str:
        return f"<Shift {self.shift_type} staff={self.staff_id} {self.shift_date}>"
