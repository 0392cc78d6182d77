"""Product catalog endpoints with RBAC and optimistic concurrency."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission
from app.db.base import get_db
from app.models.category import Category
from app.models.inventory import Inventory
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
)
from app.services.tax import TaxCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _get_product(db: AsyncSession, product_id: UUID, store_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.store_id == store_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy sản phẩm")
    return product


async def _ensure_unique(
    db: AsyncSession,
    store_id: UUID,
    field,
    value: str,
    label: str,
    exclude_id: UUID | None = None,
) -> None:
    query = select(Product).where(Product.store_id == store_id, field == value)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} '{value}' đã tồn tại",
        )


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    search: str | None = None,
    category_id: UUID | None = None,
    is_active: bool | None = True,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List products for the current store; search matches name, SKU or barcode."""
    offset = (page - 1) * size

    query = select(Product).where(Product.store_id == current_user.store_id)
    if is_active is not None:
        query = query.where(Product.is_active == is_active)
    if category_id:
        query = query.where(Product.category_id == category_id)
    if search:
        like = f"%{_escape_like(search)}%"
        query = query.where(
            or_(
                Product.name.ilike(like),
                Product.sku.ilike(like),
                Product.barcode.ilike(like),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Product.created_at.desc())
    result = await db.execute(query)
    products = result.scalars().all()

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        size=size,
    )


@router.get("/barcode/{barcode}", response_model=ProductResponse)
async def get_product_by_barcode(
    barcode: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Scanner lookup."""
    result = await db.execute(
        select(Product).where(
            Product.store_id == current_user.store_id,
            Product.barcode == barcode,
            Product.is_active == True,  # noqa: E712
        )
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Không tìm thấy sản phẩm với mã vạch {barcode}",
        )
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await _get_product(db, product_id, current_user.store_id)
    return ProductResponse.model_validate(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    current_user: CurrentUser = Depends(require_permission("product:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a product and its inventory row (requires product:create)."""
    await _ensure_unique(db, current_user.store_id, Product.sku, body.sku, "SKU")
    if body.barcode:
        await _ensure_unique(db, current_user.store_id, Product.barcode, body.barcode, "Mã vạch")

    tax_category = body.tax_category
    if body.category_id:
        result = await db.execute(
            select(Category).where(
                Category.id == body.category_id,
                Category.store_id == current_user.store_id,
            )
        )
        category = result.scalar_one_or_none()
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Không tìm thấy danh mục")
        if tax_category is None:
            tax_category = category.tax_category

    data = body.model_dump(exclude={"tax_category", "initial_stock", "low_stock_threshold"})
    product = Product(
        **data,
        tax_category=tax_category or TaxCategory.STANDARD_GOODS,
        store_id=current_user.store_id,
    )
    product.inventory = Inventory(
        store_id=current_user.store_id,
        quantity=body.initial_stock,
        low_stock_threshold=body.low_stock_threshold,
    )
    db.add(product)
    await db.commit()
    await db.refresh(product)

    logger.info("Product %s created in store %s", product.sku, current_user.store_id)
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    current_user: CurrentUser = Depends(require_permission("product:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update a product (requires product:update).

    When the client sends the ``version`` it loaded, a mismatch means
    someone else saved first and the update is rejected with 409.
    """
    product = await _get_product(db, product_id, current_user.store_id)

    updates = body.model_dump(exclude_unset=True)
    expected_version = updates.pop("version", None)
    if expected_version is not None and expected_version != product.version:
        logger.warning(
            "Stale product update %s: client v%s, server v%s",
            product_id, expected_version, product.version,
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sản phẩm đã được cập nhật bởi người khác, vui lòng tải lại",
        )

    if "sku" in updates and updates["sku"] != product.sku:
        await _ensure_unique(db, current_user.store_id, Product.sku, updates["sku"], "SKU", product_id)
    if updates.get("barcode") and updates["barcode"] != product.barcode:
        await _ensure_unique(
            db, current_user.store_id, Product.barcode, updates["barcode"], "Mã vạch", product_id
        )

    for field, value in updates.items():
        setattr(product, field, value)

    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(require_permission("product:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a product. Rows stay because past order items reference them."""
    product = await _get_product(db, product_id, current_user.store_id)
    product.is_active = False
    await db.commit()
    logger.info("Product %s deactivated", product.sku)
