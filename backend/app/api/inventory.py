"""Inventory management endpoints with RBAC enforcement."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, require_permission
from app.db.base import get_db
from app.models.inventory import Inventory, InventoryAdjustment
from app.models.product import Product
from app.schemas.auth import CurrentUser
from app.schemas.inventory import (
    InventoryCreate,
    InventoryUpdate,
    InventoryAdjustRequest,
    InventoryAdjustmentResponse,
    InventoryHistoryResponse,
    InventoryResponse,
    InventoryListResponse,
    LowStockResponse,
)
from app.services.stock import apply_stock_change

router = APIRouter(prefix="/inventory", tags=["inventory"])


async def _get_inventory(db: AsyncSession, inventory_id: UUID, store_id: UUID) -> Inventory:
    result = await db.execute(
        select(Inventory).where(
            Inventory.id == inventory_id,
            Inventory.store_id == store_id,
        )
    )
    inventory = result.scalar_one_or_none()
    if not inventory:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy bản ghi tồn kho",
        )
    return inventory


@router.get("", response_model=InventoryListResponse)
async def list_inventory(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    low_stock_only: bool = False,
    search: str | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List inventory items with pagination and optional filters."""
    offset = (page - 1) * size

    query = (
        select(Inventory)
        .join(Product, Inventory.product_id == Product.id)
        .where(Inventory.store_id == current_user.store_id)
    )

    if low_stock_only:
        query = query.where(Inventory.quantity <= Inventory.low_stock_threshold)

    if search:
        query = query.where(
            (Product.name.ilike(f"%{search}%"))
            | (Product.sku.ilike(f"%{search}%"))
            | (Product.barcode.ilike(f"%{search}%"))
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Inventory.updated_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return InventoryListResponse(
        items=[InventoryResponse.model_validate(inv) for inv in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/low-stock", response_model=LowStockResponse)
async def get_low_stock_items(
    threshold: int | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Low stock items for alerts, lowest first."""
    query = (
        select(Inventory)
        .join(Product, Inventory.product_id == Product.id)
        .where(
            Inventory.store_id == current_user.store_id,
            Product.is_active == True,  # noqa: E712
        )
    )

    if threshold is not None:
        query = query.where(Inventory.quantity <= threshold)
    else:
        query = query.where(Inventory.quantity <= Inventory.low_stock_threshold)

    query = query.order_by(Inventory.quantity.asc())
    result = await db.execute(query)
    items = result.scalars().all()

    return LowStockResponse(
        items=[InventoryResponse.model_validate(inv) for inv in items],
        count=len(items),
    )


@router.get("/{inventory_id}", response_model=InventoryResponse)
async def get_inventory(
    inventory_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    inventory = await _get_inventory(db, inventory_id, current_user.store_id)
    return InventoryResponse.model_validate(inventory)


@router.get("/product/{product_id}", response_model=InventoryResponse)
async def get_inventory_by_product(
    product_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get inventory for a specific product in current store."""
    result = await db.execute(
        select(Inventory).where(
            Inventory.product_id == product_id,
            Inventory.store_id == current_user.store_id,
        )
    )
    inventory = result.scalar_one_or_none()

    if not inventory:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sản phẩm chưa có bản ghi tồn kho",
        )

    return InventoryResponse.model_validate(inventory)


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
async def create_inventory(
    body: InventoryCreate,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """Create an inventory record for a product that has none (requires inventory:adjust)."""
    existing = await db.execute(
        select(Inventory).where(
            Inventory.store_id == current_user.store_id,
            Inventory.product_id == body.product_id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Sản phẩm đã có bản ghi tồn kho",
        )

    product_check = await db.execute(
        select(Product).where(
            Product.id == body.product_id,
            Product.store_id == current_user.store_id,
        )
    )
    if not product_check.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy sản phẩm",
        )

    inventory = Inventory(
        **body.model_dump(),
        store_id=current_user.store_id,
    )
    db.add(inventory)
    await db.commit()
    await db.refresh(inventory)

    return InventoryResponse.model_validate(inventory)


@router.patch("/{inventory_id}", response_model=InventoryResponse)
async def update_inventory(
    inventory_id: UUID,
    body: InventoryUpdate,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """Update thresholds / reorder quantity (requires inventory:adjust)."""
    inventory = await _get_inventory(db, inventory_id, current_user.store_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(inventory, field, value)

    await db.commit()
    await db.refresh(inventory)

    return InventoryResponse.model_validate(inventory)


@router.post("/{inventory_id}/adjust", response_model=InventoryResponse)
async def adjust_inventory(
    inventory_id: UUID,
    body: InventoryAdjustRequest,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """
    Adjust stock in/out (requires inventory:adjust).

    Positive ``quantity_delta`` for stock in, negative for stock out. Stock
    never goes below zero.
    """
    inventory = await _get_inventory(db, inventory_id, current_user.store_id)

    if body.quantity_delta == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Số lượng điều chỉnh phải khác 0",
        )

    adjustment = apply_stock_change(
        inventory,
        body.quantity_delta,
        body.reason,
        actor_id=current_user.id,
        note=body.note,
    )
    db.add(adjustment)
    await db.commit()
    await db.refresh(inventory)

    return InventoryResponse.model_validate(inventory)


@router.get("/{inventory_id}/history", response_model=InventoryHistoryResponse)
async def get_inventory_history(
    inventory_id: UUID,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    current_user: CurrentUser = Depends(require_permission("inventory:read")),
    db: AsyncSession = Depends(get_db),
):
    """Adjustment history for one inventory record, newest first."""
    await _get_inventory(db, inventory_id, current_user.store_id)

    query = select(InventoryAdjustment).where(
        InventoryAdjustment.inventory_id == inventory_id,
        InventoryAdjustment.store_id == current_user.store_id,
    )
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    query = query.order_by(InventoryAdjustment.created_at.desc()).offset((page - 1) * size).limit(size)
    result = await db.execute(query)

    return InventoryHistoryResponse(
        items=[InventoryAdjustmentResponse.model_validate(a) for a in result.scalars().all()],
        total=total,
        page=page,
        size=size,
    )


@router.delete("/{inventory_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory(
    inventory_id: UUID,
    current_user: CurrentUser = Depends(require_permission("inventory:adjust")),
    db: AsyncSession = Depends(get_db),
):
    """Delete an inventory record (requires inventory:adjust)."""
    inventory = await _get_inventory(db, inventory_id, current_user.store_id)
    await db.delete(inventory)
    await db.commit()
