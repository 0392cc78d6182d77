from app.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from app.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryListResponse,
)
from app.schemas.inventory import (
    InventoryAdjustRequest, InventoryAdjustmentResponse, InventoryHistoryResponse,
)
from app.schemas.cart import CartLine, CartQuoteRequest, CheckoutQuote
from app.schemas.order import OrderCreate, OrderUpdate, OrderResponse, OrderListResponse

__all__ = [
    "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse", "CategoryListResponse",
    "InventoryAdjustRequest", "InventoryAdjustmentResponse", "InventoryHistoryResponse",
    "CartLine", "CartQuoteRequest", "CheckoutQuote",
    "OrderCreate", "OrderUpdate", "OrderResponse", "OrderListResponse",
]
