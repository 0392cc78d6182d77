"""Stateless cart pricing for the checkout screen."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.settings import get_store_settings
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.customer import Customer
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.cart import CartQuoteRequest, CheckoutQuote
from app.services.checkout import build_quote, merge_cart_lines

router = APIRouter(prefix="/cart", tags=["cart"])


async def load_cart_products(
    db: AsyncSession, store_id: UUID, product_ids: list[UUID]
) -> dict[UUID, Product]:
    """Active products of the store keyed by id; 404 if any is missing."""
    result = await db.execute(
        select(Product).where(
            Product.id.in_(product_ids),
            Product.store_id == store_id,
            Product.is_active == True,  # noqa: E712
        )
    )
    products = {p.id: p for p in result.scalars().all()}

    missing = [str(pid) for pid in product_ids if pid not in products]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Không tìm thấy sản phẩm: {', '.join(missing)}",
        )
    return products


async def load_customer(
    db: AsyncSession, store_id: UUID, customer_id: UUID | None, for_update: bool = False
) -> Customer | None:
    """The store's customer, row-locked when points are about to be spent."""
    if customer_id is None:
        return None
    query = select(Customer).where(Customer.id == customer_id, Customer.store_id == store_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy khách hàng")
    return customer


@router.post("/quote", response_model=CheckoutQuote)
async def quote_cart(
    body: CartQuoteRequest,
    current_user: CurrentUser = Depends(require_permission("order:create")),
    db: AsyncSession = Depends(get_db),
):
    """Price a cart without saving anything.

    Duplicate product lines are merged and lines whose quantity ends at
    zero or below are dropped, so an empty cart quotes to all zeros.
    """
    quantities = merge_cart_lines(body.items)
    products = await load_cart_products(db, current_user.store_id, list(quantities)) if quantities else {}
    customer = await load_customer(db, current_user.store_id, body.customer_id)
    store_settings = await get_store_settings(db, current_user.store_id)

    stock = {
        pid: (p.inventory.quantity if p.inventory is not None else 0)
        for pid, p in products.items()
    }
    return build_quote(
        quantities,
        products,
        customer=customer,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        points_to_redeem=body.points_to_redeem,
        payment_method=body.payment_method,
        amount_received=body.amount_received,
        is_export=store_settings.is_export_store,
        rounding_step=store_settings.cash_rounding_step,
        loyalty_enabled=store_settings.loyalty_enabled,
        stock=stock,
    )
