"""Order lifecycle side effects: completion accrues loyalty, void/refund undo stock and points."""

import logging
import secrets
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import OrderStateError
from app.models.customer import Customer
from app.models.inventory import AdjustmentReason, Inventory
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.settings import StoreSettings
from app.services import loyalty
from app.services.checkout import rounds_to_cash
from app.services.formatting import calculate_change
from app.services.scheduling import VN_TZ
from app.services.stock import apply_stock_change
from app.services.tax import apply_cash_rounding

logger = logging.getLogger(__name__)


def generate_order_number(now: datetime | None = None) -> str:
    """``HD-YYYYMMDDHHMMSS-XXXX`` (hóa đơn), local Vietnam time plus a random suffix."""
    now = now or datetime.now(VN_TZ)
    return f"HD-{now:%Y%m%d%H%M%S}-{secrets.token_hex(2).upper()}"


async def _load_customer(db: AsyncSession, order: Order) -> Customer | None:
    if order.customer_id is None:
        return None
    result = await db.execute(
        select(Customer).where(Customer.id == order.customer_id).with_for_update()
    )
    return result.scalar_one_or_none()


def settle_payment(
    order: Order,
    payment_method: PaymentMethod,
    amount_paid: Decimal | None,
    rounding_step: int,
) -> None:
    """Fix amount_due for the final payment method and record tendered cash and change."""
    if rounds_to_cash(payment_method):
        amount_due = apply_cash_rounding(order.total, rounding_step)
    else:
        amount_due = order.total
    if amount_paid is None:
        amount_paid = amount_due
    if amount_paid < amount_due:
        raise OrderStateError(
            f"Số tiền thanh toán ({amount_paid}) nhỏ hơn số tiền phải trả ({amount_due})"
        )

    order.payment_method = payment_method
    order.amount_due = amount_due
    order.cash_rounding = amount_due - order.total
    order.amount_paid = amount_paid
    order.change = calculate_change(amount_due, amount_paid)


async def complete_order(
    db: AsyncSession,
    order: Order,
    store_settings: StoreSettings,
    payment_method: PaymentMethod | None = None,
    amount_paid: Decimal | None = None,
) -> Order:
    """Mark a pending order completed and accrue the customer's points and spend.

    The caller commits.
    """
    if order.status != OrderStatus.PENDING:
        raise OrderStateError(f"Chỉ hoàn thành được đơn đang chờ, trạng thái hiện tại: {order.status.value}")

    method = payment_method or order.payment_method
    if method is None:
        raise OrderStateError("Cần chọn phương thức thanh toán để hoàn thành đơn")

    settle_payment(order, method, amount_paid, store_settings.cash_rounding_step)

    customer = await _load_customer(db, order)
    if customer is not None and store_settings.loyalty_enabled:
        earned = loyalty.points_earned(order.total, customer.loyalty_tier)
        previous_tier = customer.loyalty_tier
        customer.loyalty_points += earned
        customer.total_spent += order.total
        customer.loyalty_tier = loyalty.tier_for_spent(customer.total_spent).tier
        order.points_earned = earned
        if customer.loyalty_tier != previous_tier:
            logger.info(
                "Customer %s moved from %s to %s", customer.id, previous_tier.value, customer.loyalty_tier.value
            )

    order.status = OrderStatus.COMPLETED
    logger.info("Order %s completed: %s via %s", order.order_number, order.amount_due, method.value)
    return order


async def reverse_order(
    db: AsyncSession,
    order: Order,
    target: OrderStatus,
    actor_id: UUID | None,
) -> Order:
    """Void or refund: put stock back, return redeemed points, undo accrual if it happened.

    The caller commits.
    """
    if target == OrderStatus.VOIDED:
        allowed = (OrderStatus.PENDING, OrderStatus.COMPLETED)
    elif target == OrderStatus.REFUNDED:
        allowed = (OrderStatus.COMPLETED,)
    else:
        raise ValueError(f"Not a reversal status: {target}")
    if order.status not in allowed:
        raise OrderStateError(
            f"Không thể chuyển đơn từ trạng thái {order.status.value} sang {target.value}"
        )

    was_completed = order.status == OrderStatus.COMPLETED
    quantities = {item.product_id: item.quantity for item in order.items}

    result = await db.execute(
        select(Inventory)
        .where(
            Inventory.store_id == order.store_id,
            Inventory.product_id.in_(list(quantities)),
        )
        .with_for_update()
    )
    for inventory in result.scalars().all():
        db.add(
            apply_stock_change(
                inventory,
                quantities[inventory.product_id],
                AdjustmentReason.RETURN,
                actor_id=actor_id,
                note=f"{target.value} {order.order_number}",
                order_id=order.id,
            )
        )

    customer = await _load_customer(db, order)
    if customer is not None:
        points = customer.loyalty_points + order.points_redeemed
        if was_completed:
            points -= order.points_earned
            customer.total_spent = max(customer.total_spent - order.total, Decimal("0"))
            customer.loyalty_tier = loyalty.tier_for_spent(customer.total_spent).tier
        if points < 0:
            logger.warning(
                "Customer %s already spent points earned on %s; balance clamped to 0",
                customer.id, order.order_number,
            )
        customer.loyalty_points = max(points, 0)

    order.status = target
    logger.info("Order %s %s by %s", order.order_number, target.value, actor_id)
    return order
