"""Category CRUD endpoints with RBAC enforcement."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission
from app.db.base import get_db
from app.models.category import Category
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryListResponse,
)
from app.services.formatting import slugify
from app.services.tax import TaxCategory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


async def _get_category(db: AsyncSession, category_id: UUID, store_id: UUID) -> Category:
    result = await db.execute(
        select(Category).where(
            Category.id == category_id,
            Category.store_id == store_id,
        )
    )
    category = result.scalar_one_or_none()
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy danh mục",
        )
    return category


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    tax_category: TaxCategory | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the store's categories in display order, optionally by tax category."""
    query = select(Category).where(Category.store_id == current_user.store_id)
    if tax_category is not None:
        query = query.where(Category.tax_category == tax_category)

    result = await db.execute(query.order_by(Category.sort_order, Category.name))
    items = result.scalars().all()

    return CategoryListResponse(
        items=[CategoryResponse.model_validate(c) for c in items],
        total=len(items),
    )



@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    category = await _get_category(db, category_id, current_user.store_id)
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    current_user: CurrentUser = Depends(require_permission("product:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a new category (requires product:create permission)."""
    existing = await db.execute(
        select(Category).where(
            Category.store_id == current_user.store_id,
            Category.name == body.name,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Danh mục với tên này đã tồn tại",
        )

    if body.parent_id:
        await _get_category(db, body.parent_id, current_user.store_id)

    category = Category(
        **body.model_dump(),
        slug=slugify(body.name),
        store_id=current_user.store_id,
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)

    logger.info("Category %s created in store %s", category.slug, current_user.store_id)
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    body: CategoryUpdate,
    current_user: CurrentUser = Depends(require_permission("product:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update a category (requires product:update permission).

    Changing ``tax_category`` does not touch existing products; it only
    seeds the default for products created afterwards.
    """
    category = await _get_category(db, category_id, current_user.store_id)

    if body.name and body.name != category.name:
        existing = await db.execute(
            select(Category).where(
                Category.store_id == current_user.store_id,
                Category.name == body.name,
                Category.id != category_id,
            )
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Danh mục với tên này đã tồn tại",
            )

    if body.parent_id == category_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Danh mục không thể là danh mục cha của chính nó",
        )

    updates = body.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(category, field, value)
    if "name" in updates:
        category.slug = slugify(category.name)

    await db.commit()
    await db.refresh(category)

    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    current_user: CurrentUser = Depends(require_permission("product:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Delete a category (requires product:delete permission)."""
    category = await _get_category(db, category_id, current_user.store_id)

    products_count = await db.execute(
        select(func.count()).select_from(Product).where(Product.category_id == category_id)
    )
    if products_count.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Không thể xóa danh mục đang có sản phẩm",
        )

    await db.delete(category)
    await db.commit()
