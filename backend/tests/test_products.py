"""Unit tests for Product Management API."""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.models.inventory import Inventory
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.tax import TaxCategory


def _user():
    mock_user = MagicMock()
    mock_user.id = uuid.uuid4()
    mock_user.store_id = uuid.uuid4()
    return mock_user


def _result(scalar=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    return result


def _product(store_id, quantity=12, version=1) -> Product:
    now = datetime.now(timezone.utc)
    product = Product(
        id=uuid.uuid4(),
        store_id=store_id,
        name="Bia Sài Gòn lon 330ml",
        sku="BIA-SG-330",
        barcode="8934822101336",
        unit="lon",
        price=Decimal("15000.00"),
        tax_category=TaxCategory.ALCOHOL,
        is_tax_inclusive=True,
        is_active=True,
        version=version,
        created_at=now,
        updated_at=now,
    )
    product.inventory = Inventory(store_id=store_id, product_id=product.id, quantity=quantity)
    return product


async def _refresh(product):
    now = datetime.now(timezone.utc)
    product.id = product.id or uuid.uuid4()
    product.is_active = True
    product.version = 1
    product.created_at = product.updated_at = now


@pytest.mark.asyncio
async def test_create_product_duplicate_sku():
    """Creating product with existing SKU should fail."""
    from app.api.products import create_product

    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=MagicMock())

    body = ProductCreate(name="Bia", sku="SKU-001", price=Decimal("15000"))

    with pytest.raises(HTTPException) as exc_info:
        await create_product(body, _user(), mock_db)

    assert exc_info.value.status_code == 409
    assert "SKU-001" in exc_info.value.detail


@pytest.mark.asyncio
async def test_create_product_inherits_category_tax():
    from app.api.products import create_product

    user = _user()
    category = SimpleNamespace(id=uuid.uuid4(), tax_category=TaxCategory.TOBACCO)
    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    # sku check, category lookup
    mock_db.execute.side_effect = [_result(scalar=None), _result(scalar=category)]
    mock_db.refresh.side_effect = _refresh

    body = ProductCreate(
        name="Thuốc lá Vinataba", sku="TL-VNT", price=Decimal("30000"),
        category_id=category.id, initial_stock=24,
    )
    result = await create_product(body, user, mock_db)

    assert result.tax_category == TaxCategory.TOBACCO
    assert result.in_stock is True
    product = mock_db.add.call_args.args[0]
    assert product.inventory.quantity == 24
    assert product.store_id == user.store_id


@pytest.mark.asyncio
async def test_create_product_defaults_to_standard_goods():
    from app.api.products import create_product

    mock_db = AsyncMock()
    mock_db.add = MagicMock()
    mock_db.execute.return_value = _result(scalar=None)
    mock_db.refresh.side_effect = _refresh

    body = ProductCreate(name="Nước suối", sku="NS-500", price=Decimal("5000"))
    result = await create_product(body, _user(), mock_db)

    assert result.tax_category == TaxCategory.STANDARD_GOODS
    assert result.in_stock is False


@pytest.mark.asyncio
async def test_create_product_unknown_category():
    from app.api.products import create_product

    mock_db = AsyncMock()
    mock_db.execute.side_effect = [_result(scalar=None), _result(scalar=None)]

    body = ProductCreate(name="Bia", sku="BIA", price=Decimal("15000"), category_id=uuid.uuid4())
    with pytest.raises(HTTPException) as exc_info:
        await create_product(body, _user(), mock_db)
    assert exc_info.value.status_code == 404


def test_product_rejects_bad_barcode():
    with pytest.raises(ValidationError):
        ProductCreate(name="Bia", sku="BIA", price=Decimal("15000"), barcode="12AB")


@pytest.mark.asyncio
async def test_list_products_filters_by_store():
    """List products should only return items for current user's store."""
    from app.api.products import list_products

    user = _user()
    mock_db = AsyncMock()

    mock_count_result = MagicMock()
    mock_count_result.scalar_one.return_value = 1
    mock_items_result = MagicMock()
    mock_items_result.scalars.return_value.all.return_value = [_product(user.store_id)]
    mock_db.execute.side_effect = [mock_count_result, mock_items_result]

    result = await list_products(
        page=1,
        size=50,
        search="bia_",
        category_id=None,
        is_active=True,
        current_user=user,
        db=mock_db,
    )

    assert result.total == 1
    assert result.page == 1
    assert result.items[0].store_id == user.store_id


def test_escape_like():
    from app.api.products import _escape_like

    assert _escape_like("50%_off") == "50\\%\\_off"


@pytest.mark.asyncio
async def test_barcode_lookup_not_found():
    from app.api.products import get_product_by_barcode

    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=None)

    with pytest.raises(HTTPException) as exc_info:
        await get_product_by_barcode("8934822101336", _user(), mock_db)
    assert exc_info.value.status_code == 404
    assert "8934822101336" in exc_info.value.detail


@pytest.mark.asyncio
async def test_update_product_stale_version():
    from app.api.products import update_product

    user = _user()
    product = _product(user.store_id, version=3)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=product)

    with pytest.raises(HTTPException) as exc_info:
        await update_product(product.id, ProductUpdate(price=Decimal("16000"), version=2), user, mock_db)

    assert exc_info.value.status_code == 409
    assert product.price == Decimal("15000.00")
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_product_current_version():
    from app.api.products import update_product

    user = _user()
    product = _product(user.store_id, version=3)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=product)

    result = await update_product(product.id, ProductUpdate(price=Decimal("16000"), version=3), user, mock_db)

    assert result.price == Decimal("16000")
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_product_is_soft():
    from app.api.products import delete_product

    user = _user()
    product = _product(user.store_id)
    mock_db = AsyncMock()
    mock_db.execute.return_value = _result(scalar=product)

    await delete_product(product.id, user, mock_db)

    assert product.is_active is False
    mock_db.delete.assert_not_called()
    mock_db.commit.assert_awaited_once()
