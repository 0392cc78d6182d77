"""Staff member model (table ``users``)."""

import uuid

from sqlalchemy import String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("store_id", "employee_code", name="uq_users_store_employee_code"),
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    employee_code: Mapped[str | None] = mapped_column(String(20), comment="Mã nhân viên")
    position: Mapped[str | None] = mapped_column(String(100), comment="Chức vụ")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Foreign keys
    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("roles.id"), nullable=False, index=True
    )

    # Relationships
    store = relationship("Store", back_populates="staff")
    role = relationship("Role", back_populates="users")
    orders = relationship("Order", back_populates="cashier", lazy="noload")
    shifts = relationship("Shift", back_populates="staff", lazy="noload", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User {self.email}>"
