"""Order endpoints with RBAC enforcement.

Creation prices the cart through the same checkout service as
``/cart/quote`` and decrements stock in the same transaction.
"""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.cart import load_cart_products, load_customer
from app.api.settings import get_store_settings
from app.core.deps import require_permission
from app.core.errors import InsufficientStockError
from app.db.base import get_db
from app.models.inventory import AdjustmentReason, Inventory
from app.models.order import Order, OrderItem, OrderStatus
from app.schemas.auth import CurrentUser
from app.schemas.order import (
    OrderComplete,
    OrderCreate,
    OrderUpdate,
    OrderResponse,
    OrderListResponse,
)
from app.services import orders as order_service
from app.services.checkout import build_quote, merge_cart_lines
from app.services.orders import generate_order_number
from app.services.stock import apply_stock_change

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


async def _get_order(db: AsyncSession, order_id: UUID, store_id: UUID) -> Order:
    result = await db.execute(
        select(Order).where(
            Order.id == order_id,
            Order.store_id == store_id,
        )
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy đơn hàng",
        )
    return order


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    status_filter: OrderStatus | None = None,
    customer_id: UUID | None = None,
    cashier_id: UUID | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    """List orders with pagination and optional filters."""
    offset = (page - 1) * size

    query = select(Order).where(Order.store_id == current_user.store_id)

    if status_filter:
        query = query.where(Order.status == status_filter)
    if customer_id:
        query = query.where(Order.customer_id == customer_id)
    if cashier_id:
        query = query.where(Order.cashier_id == cashier_id)
    if from_date:
        query = query.where(Order.created_at >= from_date)
    if to_date:
        query = query.where(Order.created_at <= to_date)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Order.created_at.desc())
    result = await db.execute(query)
    orders = result.scalars().all()

    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:read")),
    db: AsyncSession = Depends(get_db),
):
    order = await _get_order(db, order_id, current_user.store_id)
    return OrderResponse.model_validate(order)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    body: OrderCreate,
    current_user: CurrentUser = Depends(require_permission("order:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending order (requires order:create).

    Lines are priced server-side; stock is taken immediately and redeemed
    points are deducted from the customer's balance.
    """
    quantities = merge_cart_lines(body.items)
    if not quantities:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Đơn hàng phải có ít nhất một sản phẩm",
        )

    products = await load_cart_products(db, current_user.store_id, list(quantities))
    customer = await load_customer(db, current_user.store_id, body.customer_id, for_update=True)
    store_settings = await get_store_settings(db, current_user.store_id)

    quote = build_quote(
        quantities,
        products,
        customer=customer,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        points_to_redeem=body.points_to_redeem,
        payment_method=body.payment_method,
        amount_received=body.amount_paid,
        is_export=store_settings.is_export_store,
        rounding_step=store_settings.cash_rounding_step,
        loyalty_enabled=store_settings.loyalty_enabled,
    )
    if not quote.is_sufficient:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Số tiền khách đưa không đủ. Cần thanh toán {quote.amount_due}",
        )

    inv_result = await db.execute(
        select(Inventory)
        .where(
            Inventory.store_id == current_user.store_id,
            Inventory.product_id.in_(list(quantities)),
        )
        .with_for_update()
    )
    inventories = {inv.product_id: inv for inv in inv_result.scalars().all()}
    for line in quote.lines:
        inventory = inventories.get(line.product_id)
        if inventory is None or inventory.quantity < line.quantity:
            available = inventory.quantity if inventory is not None else 0
            raise InsufficientStockError(
                f"Không đủ hàng cho '{line.name}'. Còn {available}, cần {line.quantity}"
            )

    order = Order(
        order_number=generate_order_number(),
        status=OrderStatus.PENDING,
        is_export=quote.is_export,
        subtotal=quote.subtotal,
        excise_amount=quote.total_excise,
        vat_amount=quote.total_vat,
        tax_amount=quote.total_tax,
        discount_type=quote.discount_type,
        discount_value=quote.discount_value,
        discount_amount=quote.discount_amount,
        tier_discount=quote.tier_discount,
        points_redeemed=quote.points_redeemed,
        points_discount=quote.points_discount,
        points_earned=0,
        total=quote.final_amount,
        cash_rounding=quote.cash_rounding,
        amount_due=quote.amount_due,
        amount_paid=body.amount_paid,
        change=quote.change,
        payment_method=body.payment_method,
        note=body.note,
        store_id=current_user.store_id,
        cashier_id=current_user.id,
        customer_id=customer.id if customer else None,
        items=[
            OrderItem(
                product_id=line.product_id,
                product_name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                tax_category=line.tax_category,
                is_tax_inclusive=line.is_tax_inclusive,
                vat_rate=line.vat_rate,
                excise_rate=line.excise_rate,
                subtotal=line.subtotal,
                excise_amount=line.excise_amount,
                vat_amount=line.vat_amount,
                total=line.total_amount,
            )
            for line in quote.lines
        ],
    )
    db.add(order)
    await db.flush()  # get order.id

    for line in quote.lines:
        db.add(
            apply_stock_change(
                inventories[line.product_id],
                -line.quantity,
                AdjustmentReason.SALE,
                actor_id=current_user.id,
                note=order.order_number,
                order_id=order.id,
            )
        )

    if customer is not None and quote.points_redeemed:
        customer.loyalty_points -= quote.points_redeemed

    await db.commit()
    await db.refresh(order)

    logger.info(
        "Order %s created by %s: %d lines, total %s",
        order.order_number, current_user.id, len(quote.lines), order.total,
    )
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: UUID,
    body: OrderUpdate,
    current_user: CurrentUser = Depends(require_permission("order:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update note / payment method (requires order:update). Amounts are not editable."""
    order = await _get_order(db, order_id, current_user.store_id)

    updates = body.model_dump(exclude_unset=True)
    if "payment_method" in updates and order.status != OrderStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Chỉ đổi được phương thức thanh toán của đơn đang chờ",
        )

    for field, value in updates.items():
        setattr(order, field, value)

    await db.commit()
    await db.refresh(order)

    return OrderResponse.model_validate(order)


@router.post("/{order_id}/complete", response_model=OrderResponse)
async def complete_order(
    order_id: UUID,
    body: OrderComplete | None = None,
    current_user: CurrentUser = Depends(require_permission("order:update")),
    db: AsyncSession = Depends(get_db),
):
    """Mark order as completed (requires order:update). Accrues loyalty points."""
    order = await _get_order(db, order_id, current_user.store_id)
    store_settings = await get_store_settings(db, current_user.store_id)

    body = body or OrderComplete()
    await order_service.complete_order(
        db,
        order,
        store_settings,
        payment_method=body.payment_method,
        amount_paid=body.amount_paid,
    )
    await db.commit()
    await db.refresh(order)

    return OrderResponse.model_validate(order)


@router.post("/{order_id}/void", response_model=OrderResponse)
async def void_order(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:void")),
    db: AsyncSession = Depends(get_db),
):
    """Void an order (requires order:void). Stock and redeemed points are restored."""
    order = await _get_order(db, order_id, current_user.store_id)
    await order_service.reverse_order(db, order, OrderStatus.VOIDED, current_user.id)
    await db.commit()
    await db.refresh(order)

    return OrderResponse.model_validate(order)


@router.post("/{order_id}/refund", response_model=OrderResponse)
async def refund_order(
    order_id: UUID,
    current_user: CurrentUser = Depends(require_permission("order:refund")),
    db: AsyncSession = Depends(get_db),
):
    """Refund a completed order (requires order:refund). Loyalty accrual is reversed."""
    order = await _get_order(db, order_id, current_user.store_id)
    await order_service.reverse_order(db, order, OrderStatus.REFUNDED, current_user.id)
    await db.commit()
    await db.refresh(order)

    return OrderResponse.model_validate(order)
