"""Role & Permission models - RBAC.

Roles are nested: owner ⊇ manager ⊇ cashier. The matrix itself lives in
``app.db.seed_rbac``.
"""

import enum
import uuid

from sqlalchemy import String, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class PermissionAction(str, enum.Enum):
    # Catalog
    PRODUCT_CREATE = "product:create"
    PRODUCT_READ = "product:read"
    PRODUCT_UPDATE = "product:update"
    PRODUCT_DELETE = "product:delete"
    # Orders
    ORDER_CREATE = "order:create"
    ORDER_READ = "order:read"
    ORDER_UPDATE = "order:update"
    ORDER_VOID = "order:void"
    ORDER_REFUND = "order:refund"
    # Inventory
    INVENTORY_READ = "inventory:read"
    INVENTORY_ADJUST = "inventory:adjust"
    # Reports
    REPORT_SALES = "report:sales"
    REPORT_INVENTORY = "report:inventory"
    REPORT_FINANCIAL = "report:financial"
    REPORT_STAFF = "report:staff"
    # Staff
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    # Shifts
    SHIFT_READ = "shift:read"
    SHIFT_MANAGE = "shift:manage"
    SHIFT_CHECKIN = "shift:checkin"
    # Customers & loyalty
    CUSTOMER_CREATE = "customer:create"
    CUSTOMER_READ = "customer:read"
    CUSTOMER_UPDATE = "customer:update"
    CUSTOMER_DELETE = "customer:delete"
    LOYALTY_MANAGE = "loyalty:manage"
    # Payments
    PAYMENT_CREATE = "payment:create"
    PAYMENT_READ = "payment:read"
    PAYMENT_UPDATE = "payment:update"
    # Tax calculator
    TAX_CALCULATE = "tax:calculate"
    # Store settings
    STORE_SETTINGS = "store:settings"


class RoleType(str, enum.Enum):
    OWNER = "owner"
    MANAGER = "manager"
    CASHIER = "cashier"


class Permission(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "permissions"

    action: Mapped[PermissionAction] = mapped_column(
        Enum(PermissionAction), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    roles = relationship("RolePermission", back_populates="permission", lazy="selectin")


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    name: Mapped[RoleType] = mapped_column(
        Enum(RoleType), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    users = relationship("User", back_populates="role", lazy="noload")
    permissions = relationship("RolePermission", back_populates="role", lazy="selectin")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    permission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False
    )

    role = relationship("Role", back_populates="permissions")
    permission = relationship("Permission", back_populates="roles")
