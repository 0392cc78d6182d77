"""Unit tests for Order Management API."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException

from app.core.errors import InsufficientStockError
from app.models.inventory import AdjustmentReason, InventoryAdjustment
from app.models.order import Order, OrderStatus, PaymentMethod
from app.schemas.auth import CurrentUser
from app.schemas.cart import CartLine
from app.schemas.order import OrderCreate, OrderUpdate
from app.services.loyalty import LoyaltyTier
from app.services.orders import generate_order_number
from app.services.tax import TaxCategory


# ── Order number generation ──────────────────────

def test_generate_order_number():
    """Order number should have format HD-YYYYMMDDHHMMSS-XXXX."""
    order_num = generate_order_number(datetime(2024, 6, 3, 9, 15, 30))
    prefix, stamp, suffix = order_num.split("-")
    assert prefix == "HD"
    assert stamp == "20240603091530"
    assert len(suffix) == 4


def test_order_numbers_are_unique_within_a_second():
    now = datetime(2024, 6, 3, 9, 15, 30)
    assert len({generate_order_number(now) for _ in range(20)}) > 1


# ── Fixtures ───────────────────────────────────────

def _user(permissions=("order:create",)) -> CurrentUser:
    return CurrentUser(
        id=uuid.uuid4(),
        email="",
        full_name="Thu ngân A",
        role="cashier",
        store_id=uuid.uuid4(),
        permissions=list(permissions),
        is_active=True,
    )


def _product(price="50000", category=TaxCategory.ALCOHOL):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name="Bia Sài Gòn",
        sku="BIA-SG",
        price=Decimal(price),
        tax_category=category,
        is_tax_inclusive=False,
    )


def _inventory(product_id, store_id, quantity):
    return SimpleNamespace(
        id=uuid.uuid4(), product_id=product_id, store_id=store_id, quantity=quantity
    )


def _store_settings():
    return SimpleNamespace(is_export_store=False, cash_rounding_step=500, loyalty_enabled=True)


def _inventory_result(inventories):
    result = MagicMock()
    result.scalars.return_value.all.return_value = inventories
    return result


async def _refresh(order):
    now = datetime.now(timezone.utc)
    order.id = order.id or uuid.uuid4()
    order.created_at = order.updated_at = now
    for item in order.items:
        item.id = uuid.uuid4()
        item.order_id = order.id


def _patched(products, customer=None):
    return (
        patch("app.api.orders.load_cart_products", new=AsyncMock(return_value=products)),
        patch("app.api.orders.load_customer", new=AsyncMock(return_value=customer)),
        patch("app.api.orders.get_store_settings", new=AsyncMock(return_value=_store_settings())),
    )


# ── Order creation ─────────────────────────────────

@pytest.mark.asyncio
async def test_create_order_prices_and_takes_stock():
    from app.api.orders import create_order

    user = _user()
    beer = _product()
    inventory = _inventory(beer.id, user.store_id, 10)

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.return_value = _inventory_result([inventory])
    mock_db.refresh.side_effect = _refresh

    body = OrderCreate(
        items=[CartLine(product_id=beer.id, quantity=1), CartLine(product_id=beer.id, quantity=1)],
        payment_method=PaymentMethod.CASH,
        amount_paid=Decimal("200000"),
    )
    p1, p2, p3 = _patched({beer.id: beer})
    with p1, p2, p3:
        response = await create_order(body, user, mock_db)

    assert response.status == OrderStatus.PENDING
    assert response.order_number.startswith("HD-")
    assert response.subtotal == Decimal("100000.00")
    assert response.excise_amount == Decimal("65000.00")
    assert response.vat_amount == Decimal("16500.00")
    assert response.total == Decimal("181500.00")
    assert response.amount_due == Decimal("181500")
    assert response.change == Decimal("18500")
    assert response.items[0].quantity == 2
    assert response.items[0].vat_rate == Decimal("10")

    assert inventory.quantity == 8
    adjustments = [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], InventoryAdjustment)]
    assert len(adjustments) == 1
    assert adjustments[0].quantity_delta == -2
    assert adjustments[0].reason == AdjustmentReason.SALE
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_order_insufficient_stock():
    from app.api.orders import create_order

    user = _user()
    beer = _product()

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.return_value = _inventory_result([_inventory(beer.id, user.store_id, 1)])

    body = OrderCreate(items=[CartLine(product_id=beer.id, quantity=3)])
    p1, p2, p3 = _patched({beer.id: beer})
    with p1, p2, p3, pytest.raises(InsufficientStockError) as exc_info:
        await create_order(body, user, mock_db)

    assert "Còn 1, cần 3" in exc_info.value.detail
    mock_db.add.assert_not_called()
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_order_not_enough_cash():
    from app.api.orders import create_order

    beer = _product()
    mock_db = AsyncMock()

    body = OrderCreate(
        items=[CartLine(product_id=beer.id, quantity=1)],
        payment_method=PaymentMethod.CASH,
        amount_paid=Decimal("50000"),
    )
    p1, p2, p3 = _patched({beer.id: beer})
    with p1, p2, p3, pytest.raises(HTTPException) as exc_info:
        await create_order(body, _user(), mock_db)

    assert exc_info.value.status_code == 400
    assert "91000" in exc_info.value.detail


@pytest.mark.asyncio
async def test_create_order_all_lines_cancel_out():
    from app.api.orders import create_order

    pid = uuid.uuid4()
    body = OrderCreate(
        items=[CartLine(product_id=pid, quantity=1), CartLine(product_id=pid, quantity=-1)]
    )
    with pytest.raises(HTTPException) as exc_info:
        await create_order(body, _user(), AsyncMock())
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_create_order_deducts_redeemed_points():
    from app.api.orders import create_order

    user = _user()
    item = _product("100000", TaxCategory.STANDARD_GOODS)
    customer = SimpleNamespace(id=uuid.uuid4(), loyalty_points=3500, loyalty_tier=LoyaltyTier.BRONZE)

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.return_value = _inventory_result([_inventory(item.id, user.store_id, 5)])
    mock_db.refresh.side_effect = _refresh

    body = OrderCreate(
        customer_id=customer.id,
        items=[CartLine(product_id=item.id, quantity=1)],
        points_to_redeem=3000,
        payment_method=PaymentMethod.CARD,
    )
    p1, p2, p3 = _patched({item.id: item}, customer)
    with p1, p2 as mock_load_customer, p3:
        response = await create_order(body, user, mock_db)

    assert response.points_redeemed == 3000
    assert response.total == Decimal("107000.00")
    assert response.customer_id == customer.id
    assert customer.loyalty_points == 500
    mock_load_customer.assert_awaited_once_with(mock_db, user.store_id, customer.id, for_update=True)


# ── Updates ────────────────────────────────────────

@pytest.mark.asyncio
async def test_payment_method_locked_after_completion():
    from app.api.orders import update_order

    order = MagicMock(spec=Order)
    order.status = OrderStatus.COMPLETED
    result = MagicMock()
    result.scalar_one_or_none.return_value = order
    mock_db = AsyncMock()
    mock_db.execute.return_value = result

    with pytest.raises(HTTPException) as exc_info:
        await update_order(uuid.uuid4(), OrderUpdate(payment_method=PaymentMethod.CARD), _user(), mock_db)
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_get_order_other_store():
    from app.api.orders import get_order

    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    mock_db = AsyncMock()
    mock_db.execute.return_value = result

    with pytest.raises(HTTPException) as exc_info:
        await get_order(uuid.uuid4(), _user(), mock_db)
    assert exc_info.value.status_code == 404


# ── RBAC permissions ──────────────────────────────

def test_order_permissions_in_rbac():
    """Verify order permissions are defined in RBAC."""
    from app.models.role import PermissionAction

    assert PermissionAction.ORDER_CREATE == "order:create"
    assert PermissionAction.ORDER_READ == "order:read"
    assert PermissionAction.ORDER_UPDATE == "order:update"
    assert PermissionAction.ORDER_VOID == "order:void"
    assert PermissionAction.ORDER_REFUND == "order:refund"
