"""Initial database schema - stores, staff, RBAC, catalog, inventory, customers, orders, payments, shifts

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Enum columns are stored as the member NAME (SQLAlchemy Enum default).

    # --- Stores ---
    op.create_table(
        "stores",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("address", sa.Text),
        sa.Column("phone", sa.String(20)),
        sa.Column("tax_id", sa.String(14), comment="Mã số thuế (MST)"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_stores_code", "stores", ["code"])

    # --- Store settings ---
    op.create_table(
        "store_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("prices_include_tax", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_export_store", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("cash_rounding_step", sa.Integer, nullable=False, server_default=sa.text("500")),
        sa.Column("loyalty_enabled", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("receipt_header", sa.String(255)),
        sa.Column("receipt_footer", sa.String(255), nullable=False, server_default="Cảm ơn quý khách! Hẹn gặp lại!"),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, unique=True),
        *_timestamps(),
    )

    # --- Permissions ---
    op.create_table(
        "permissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.String(50), nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
    )
    op.create_index("ix_permissions_action", "permissions", ["action"])

    # --- Roles ---
    op.create_table(
        "roles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(20), nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
        *_timestamps(),
    )
    op.create_index("ix_roles_name", "roles", ["name"])

    # --- Role Permissions ---
    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    # --- Users (staff) ---
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("employee_code", sa.String(20), comment="Mã nhân viên"),
        sa.Column("position", sa.String(100), comment="Chức vụ"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("roles.id"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "employee_code", name="uq_users_store_employee_code"),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_store_id", "users", ["store_id"])
    op.create_index("ix_users_role_id", "users", ["role_id"])

    # --- Categories ---
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.String(500)),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("tax_category", sa.String(30), nullable=False, server_default="STANDARD_GOODS"),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "slug", name="uq_categories_store_slug"),
    )
    op.create_index("ix_categories_name", "categories", ["name"])
    op.create_index("ix_categories_slug", "categories", ["slug"])
    op.create_index("ix_categories_store_id", "categories", ["store_id"])

    # --- Products ---
    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("barcode", sa.String(100)),
        sa.Column("description", sa.Text),
        sa.Column("unit", sa.String(50), nullable=False, server_default="cái"),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("cost_price", sa.Numeric(12, 2)),
        sa.Column("tax_category", sa.String(30), nullable=False, server_default="STANDARD_GOODS"),
        sa.Column("is_tax_inclusive", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("image_url", sa.String(500)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("version", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_store_sku", "products", ["store_id", "sku"], unique=True)
    op.create_index("ix_products_store_barcode", "products", ["store_id", "barcode"], unique=True)

    # --- Customers ---
    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("email", sa.String(255)),
        sa.Column("address", sa.Text),
        sa.Column("loyalty_points", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("total_spent", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("loyalty_tier", sa.String(20), nullable=False, server_default="BRONZE"),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "phone", name="uq_customers_store_phone"),
        sa.UniqueConstraint("store_id", "email", name="uq_customers_store_email"),
        sa.CheckConstraint("loyalty_points >= 0", name="ck_customers_points_non_negative"),
    )
    op.create_index("ix_customers_phone", "customers", ["phone"])
    op.create_index("ix_customers_email", "customers", ["email"])
    op.create_index("ix_customers_store_id", "customers", ["store_id"])

    # --- Inventory ---
    op.create_table(
        "inventory",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("low_stock_threshold", sa.Integer, nullable=False, server_default=sa.text("10")),
        sa.Column("reorder_quantity", sa.Integer, nullable=False, server_default=sa.text("50")),
        sa.Column("version", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "product_id", name="uq_inventory_store_product"),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )
    op.create_index("ix_inventory_store_id", "inventory", ["store_id"])
    op.create_index("ix_inventory_product_id", "inventory", ["product_id"])

    # --- Orders ---
    op.create_table(
        "orders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_number", sa.String(50), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("is_export", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("excise_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("vat_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("discount_type", sa.String(20), nullable=False, server_default="PERCENTAGE"),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("tier_discount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("cash_rounding", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("amount_due", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2)),
        sa.Column("change", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("payment_method", sa.String(20)),
        sa.Column("points_redeemed", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("points_discount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("points_earned", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("note", sa.Text),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("cashier_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("customers.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_cashier_id", "orders", ["cashier_id"])
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_store_created", "orders", ["store_id", "created_at"])

    # --- Order Items ---
    op.create_table(
        "order_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_category", sa.String(30), nullable=False),
        sa.Column("is_tax_inclusive", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("vat_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("excise_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("excise_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("vat_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0.00")),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])

    # --- Inventory adjustments ---
    op.create_table(
        "inventory_adjustments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("quantity_delta", sa.Integer, nullable=False),
        sa.Column("quantity_after", sa.Integer, nullable=False),
        sa.Column("reason", sa.String(20), nullable=False),
        sa.Column("note", sa.String(500)),
        sa.Column("inventory_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("adjusted_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_inventory_adjustments_inventory_id", "inventory_adjustments", ["inventory_id"])
    op.create_index("ix_inventory_adjustments_store_id", "inventory_adjustments", ["store_id"])
    op.create_index("ix_inventory_adjustments_product_id", "inventory_adjustments", ["product_id"])

    # --- Payments ---
    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("gateway", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("transaction_id", sa.String(255), unique=True),
        sa.Column("gateway_response", postgresql.JSONB),
        sa.Column("note", sa.Text),
        sa.Column("reference", sa.String(255)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("processed_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_payments_order", "payments", ["order_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_status_created", "payments", ["status", "created_at"])
    op.create_index("ix_payments_transaction_id", "payments", ["transaction_id"])
    op.create_index("ix_payments_reference", "payments", ["reference"])
    op.create_index("ix_payments_processed_by", "payments", ["processed_by"])

    # --- Shifts ---
    op.create_table(
        "shifts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("shift_type", sa.String(20), nullable=False),
        sa.Column("shift_date", sa.Date, nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("checked_in_at", sa.DateTime(timezone=True)),
        sa.Column("checked_out_at", sa.DateTime(timezone=True)),
        sa.Column("note", sa.String(500)),
        sa.Column("store_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("staff_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("ends_at > starts_at", name="ck_shifts_time_order"),
    )
    op.create_index("ix_shifts_shift_date", "shifts", ["shift_date"])
    op.create_index("ix_shifts_status", "shifts", ["status"])
    op.create_index("ix_shifts_store_id", "shifts", ["store_id"])
    op.create_index("ix_shifts_staff_starts", "shifts", ["staff_id", "starts_at"])


def downgrade() -> None:
    op.drop_table("shifts")
    op.drop_table("payments")
    op.drop_table("inventory_adjustments")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("inventory")
    op.drop_table("customers")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("users")
    op.drop_table("role_permissions")
    op.drop_table("roles")
    op.drop_table("permissions")
    op.drop_table("store_settings")
    op.drop_table("stores")
