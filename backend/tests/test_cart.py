"""Tests for the stateless /cart/quote endpoint and its loaders."""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from sqlalchemy.dialects import postgresql

from app.api.cart import load_customer, quote_cart
from app.models.order import PaymentMethod
from app.schemas.auth import CurrentUser
from app.schemas.cart import CartLine, CartQuoteRequest
from app.services.loyalty import LoyaltyTier
from app.services.tax import TaxCategory


def _user() -> CurrentUser:
    return CurrentUser(
        id=uuid.uuid4(),
        email="",
        full_name="Thu ngân B",
        role="cashier",
        store_id=uuid.uuid4(),
        permissions=["order:create"],
        is_active=True,
    )


def _product(price="12345", category=TaxCategory.STANDARD_GOODS, stock=7):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name="Nước mắm Phú Quốc",
        sku="NM-PQ",
        price=Decimal(price),
        tax_category=category,
        is_tax_inclusive=False,
        inventory=SimpleNamespace(quantity=stock) if stock is not None else None,
    )


def _store_settings(step=500, loyalty_enabled=True):
    return SimpleNamespace(
        is_export_store=False, cash_rounding_step=step, loyalty_enabled=loyalty_enabled
    )


def _patched(products, customer=None, store_settings=None):
    return (
        patch("app.api.cart.load_cart_products", new=AsyncMock(return_value=products)),
        patch("app.api.cart.load_customer", new=AsyncMock(return_value=customer)),
        patch(
            "app.api.cart.get_store_settings",
            new=AsyncMock(return_value=store_settings or _store_settings()),
        ),
    )


# ── /cart/quote ────────────────────────────────────

@pytest.mark.asyncio
async def test_quote_merges_lines_and_rounds_cash():
    sauce = _product()
    body = CartQuoteRequest(
        items=[
            CartLine(product_id=sauce.id, quantity=1),
            CartLine(product_id=sauce.id, quantity=1),
        ],
        payment_method=PaymentMethod.CASH,
        amount_received=Decimal("30000"),
    )
    p1, p2, p3 = _patched({sauce.id: sauce})
    with p1 as mock_products, p2, p3:
        quote = await quote_cart(body, _user(), AsyncMock())

    assert mock_products.await_args.args[2] == [sauce.id]
    assert len(quote.lines) == 1
    line = quote.lines[0]
    assert line.quantity == 2
    assert line.available_quantity == 7
    # 24690 + 2469 VAT
    assert quote.final_amount == Decimal("27159")
    assert quote.amount_due == Decimal("27000")
    assert quote.cash_rounding == Decimal("-159")
    assert quote.change == Decimal("3000")
    assert quote.is_sufficient


@pytest.mark.asyncio
async def test_quote_card_payment_is_exact():
    sauce = _product()
    body = CartQuoteRequest(
        items=[CartLine(product_id=sauce.id, quantity=1)],
        payment_method=PaymentMethod.CARD,
    )
    p1, p2, p3 = _patched({sauce.id: sauce})
    with p1, p2, p3:
        quote = await quote_cart(body, _user(), AsyncMock())

    assert quote.amount_due == Decimal("13580")
    assert quote.cash_rounding == 0


@pytest.mark.asyncio
async def test_quote_uses_store_rounding_step_and_missing_inventory():
    sauce = _product(price="10000", stock=None)
    body = CartQuoteRequest(items=[CartLine(product_id=sauce.id, quantity=1)])
    p1, p2, p3 = _patched({sauce.id: sauce}, store_settings=_store_settings(step=1000))
    with p1, p2, p3:
        quote = await quote_cart(body, _user(), AsyncMock())

    # 11000 is already a multiple of 1000
    assert quote.amount_due == Decimal("11000")
    assert quote.lines[0].available_quantity == 0


@pytest.mark.asyncio
async def test_quote_empty_cart_skips_product_lookup():
    pid = uuid.uuid4()
    body = CartQuoteRequest(
        items=[CartLine(product_id=pid, quantity=2), CartLine(product_id=pid, quantity=-2)]
    )
    p1, p2, p3 = _patched({})
    with p1 as mock_products, p2, p3:
        quote = await quote_cart(body, _user(), AsyncMock())

    mock_products.assert_not_awaited()
    assert quote.lines == []
    assert quote.amount_due == 0


@pytest.mark.asyncio
async def test_quote_with_loyalty_disabled_store():
    sauce = _product(price="100000")
    customer = SimpleNamespace(id=uuid.uuid4(), loyalty_points=0, loyalty_tier=LoyaltyTier.GOLD)
    body = CartQuoteRequest(
        items=[CartLine(product_id=sauce.id, quantity=1)], customer_id=customer.id
    )
    p1, p2, p3 = _patched(
        {sauce.id: sauce}, customer, store_settings=_store_settings(loyalty_enabled=False)
    )
    with p1, p2, p3:
        quote = await quote_cart(body, _user(), AsyncMock())

    assert quote.tier_discount == 0
    assert quote.points_to_earn == 0
    assert quote.customer_tier is None


# ── load_customer ──────────────────────────────────

def _customer_db(customer):
    mock_db = AsyncMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = customer
    mock_db.execute.return_value = result
    return mock_db


def _sql(mock_db) -> str:
    query = mock_db.execute.call_args.args[0]
    return str(query.compile(dialect=postgresql.dialect()))


@pytest.mark.asyncio
async def test_load_customer_locks_row_for_checkout():
    customer = SimpleNamespace(id=uuid.uuid4())
    mock_db = _customer_db(customer)

    assert await load_customer(mock_db, uuid.uuid4(), customer.id, for_update=True) is customer
    assert "FOR UPDATE" in _sql(mock_db)


@pytest.mark.asyncio
async def test_load_customer_plain_read_for_quotes():
    customer = SimpleNamespace(id=uuid.uuid4())
    mock_db = _customer_db(customer)

    await load_customer(mock_db, uuid.uuid4(), customer.id)
    assert "FOR UPDATE" not in _sql(mock_db)


@pytest.mark.asyncio
async def test_load_customer_none_and_missing():
    from fastapi import HTTPException

    mock_db = _customer_db(None)
    assert await load_customer(mock_db, uuid.uuid4(), None) is None
    mock_db.execute.assert_not_awaited()

    with pytest.raises(HTTPException) as exc_info:
        await load_customer(mock_db, uuid.uuid4(), uuid.uuid4())
    assert exc_info.value.status_code == 404
