"""SQLAlchemy models for the retail POS."""

from app.models.store import Store
from app.models.role import Role, Permission, RolePermission
from app.models.user import User
from app.models.category import Category
from app.models.product import Product
from app.models.customer import Customer
from app.models.inventory import Inventory, InventoryAdjustment
from app.models.order import Order, OrderItem
from app.models.payment import Payment
from app.models.shift import Shift
from app.models.settings import StoreSettings

__all__ = [
    "Store",
    "Role",
    "Permission",
    "RolePermission",
    "User",
    "Category",
    "Product",
    "Customer",
    "Inventory",
    "InventoryAdjustment",
    "Order",
    "OrderItem",
    "Payment",
    "Shift",
    "StoreSettings",
]
