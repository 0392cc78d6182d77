"""Customer management and loyalty endpoints with RBAC enforcement."""

import logging
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.customer import Customer
from app.schemas.auth import CurrentUser
from app.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
    LoyaltyPointsRequest,
    LoyaltyRedeemResponse,
    LoyaltySummary,
    TierInfo,
)
from app.services import loyalty

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


def _tier_info(rule: loyalty.TierRule) -> TierInfo:
    return TierInfo(
        tier=rule.tier,
        name=rule.name,
        minimum_spent=rule.minimum_spent,
        points_multiplier=rule.points_multiplier,
        discount_percentage=rule.discount_percentage,
        benefits=list(rule.benefits),
    )


async def _get_customer(
    db: AsyncSession, customer_id: UUID, store_id: UUID, for_update: bool = False
) -> Customer:
    query = select(Customer).where(Customer.id == customer_id, Customer.store_id == store_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Không tìm thấy khách hàng",
        )
    return customer


async def _ensure_unique(
    db: AsyncSession, store_id: UUID, field, value: str, label: str, exclude_id: UUID | None = None
) -> None:
    query = select(Customer).where(Customer.store_id == store_id, field == value)
    if exclude_id is not None:
        query = query.where(Customer.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{label} '{value}' đã được sử dụng",
        )


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    search: str | None = None,
    tier: loyalty.LoyaltyTier | None = None,
    current_user: CurrentUser = Depends(require_permission("customer:read")),
    db: AsyncSession = Depends(get_db),
):
    """List the store's customers; search matches name, phone or email."""
    offset = (page - 1) * size

    query = select(Customer).where(Customer.store_id == current_user.store_id)
    if tier:
        query = query.where(Customer.loyalty_tier == tier)
    if search:
        like = f"%{search}%"
        query = query.where(
            or_(
                Customer.name.ilike(like),
                Customer.phone.ilike(like),
                Customer.email.ilike(like),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(Customer.created_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return CustomerListResponse(
        items=[CustomerResponse.model_validate(c) for c in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("customer:read")),
    db: AsyncSession = Depends(get_db),
):
    customer = await _get_customer(db, customer_id, current_user.store_id)
    return CustomerResponse.model_validate(customer)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: CustomerCreate,
    current_user: CurrentUser = Depends(require_permission("customer:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a customer (requires customer:create). Phone and email are unique per store."""
    if body.phone:
        await _ensure_unique(db, current_user.store_id, Customer.phone, body.phone, "Số điện thoại")
    if body.email:
        await _ensure_unique(db, current_user.store_id, Customer.email, body.email, "Email")

    customer = Customer(
        **body.model_dump(),
        store_id=current_user.store_id,
        loyalty_points=0,
        total_spent=Decimal("0"),
        loyalty_tier=loyalty.LoyaltyTier.BRONZE,
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: UUID,
    body: CustomerUpdate,
    current_user: CurrentUser = Depends(require_permission("customer:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update contact details. Points, spend and tier only change through orders."""
    customer = await _get_customer(db, customer_id, current_user.store_id)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("phone") and updates["phone"] != customer.phone:
        await _ensure_unique(
            db, current_user.store_id, Customer.phone, updates["phone"], "Số điện thoại", customer_id
        )
    if updates.get("email") and updates["email"] != customer.email:
        await _ensure_unique(
            db, current_user.store_id, Customer.email, updates["email"], "Email", customer_id
        )

    for field, value in updates.items():
        setattr(customer, field, value)

    await db.commit()
    await db.refresh(customer)

    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("customer:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Delete a customer. Their past orders keep the sale but lose the link."""
    customer = await _get_customer(db, customer_id, current_user.store_id)
    await db.delete(customer)
    await db.commit()
    logger.info("Customer %s deleted by %s", customer_id, current_user.id)


# ── Loyalty ───────────────────────────────────────


@router.get("/{customer_id}/loyalty", response_model=LoyaltySummary)
async def get_loyalty_summary(
    customer_id: UUID,
    current_user: CurrentUser = Depends(require_permission("customer:read")),
    db: AsyncSession = Depends(get_db),
):
    """Points balance, its cash value, and progress to the next tier."""
    customer = await _get_customer(db, customer_id, current_user.store_id)

    current = loyalty.get_tier_rule(customer.loyalty_tier)
    upcoming = loyalty.next_tier(customer.loyalty_tier)
    to_next = Decimal("0")
    if upcoming is not None:
        to_next = max(upcoming.minimum_spent - customer.total_spent, Decimal("0"))

    return LoyaltySummary(
        customer_id=customer.id,
        loyalty_points=customer.loyalty_points,
        points_value=Decimal(
            loyalty.redeemable_points(customer.loyalty_points) * settings.LOYALTY_POINT_VALUE
        ),
        total_spent=customer.total_spent,
        tier=_tier_info(current),
        next_tier=_tier_info(upcoming) if upcoming else None,
        amount_to_next_tier=to_next,
        progress_percent=loyalty.tier_progress(customer.total_spent),
    )


@router.post("/{customer_id}/loyalty/add", response_model=CustomerResponse)
async def add_loyalty_points(
    customer_id: UUID,
    body: LoyaltyPointsRequest,
    current_user: CurrentUser = Depends(require_permission("loyalty:manage")),
    db: AsyncSession = Depends(get_db),
):
    """Manual point grant (goodwill, promotions). Does not affect spend or tier."""
    customer = await _get_customer(db, customer_id, current_user.store_id, for_update=True)
    customer.loyalty_points += body.points

    await db.commit()
    await db.refresh(customer)

    logger.info(
        "Granted %d points to customer %s by %s (%s)",
        body.points, customer.id, current_user.id, body.note or "-",
    )
    return CustomerResponse.model_validate(customer)


@router.post("/{customer_id}/loyalty/redeem", response_model=LoyaltyRedeemResponse)
async def redeem_loyalty_points(
    customer_id: UUID,
    body: LoyaltyPointsRequest,
    current_user: CurrentUser = Depends(require_permission("loyalty:manage")),
    db: AsyncSession = Depends(get_db),
):
    """Redeem points outside checkout (gift vouchers). Only whole blocks are spent."""
    customer = await _get_customer(db, customer_id, current_user.store_id, for_update=True)

    value = loyalty.redemption_value(body.points, customer.loyalty_points)
    used = loyalty.redeemable_points(body.points)
    customer.loyalty_points -= used

    await db.commit()
    await db.refresh(customer)

    logger.info("Customer %s redeemed %d points (%s ₫)", customer.id, used, value)
    return LoyaltyRedeemResponse(
        customer=CustomerResponse.model_validate(customer),
        points_redeemed=used,
        value=value,
    )
