"""Reporting & analytics endpoints with RBAC enforcement.

Days are Vietnam calendar days: timestamps are converted to local time in
SQL before grouping.
"""

from datetime import datetime, date, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, desc, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import require_permission
from app.db.base import get_db
from app.models.customer import Customer
from app.models.inventory import Inventory
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.user import User
from app.schemas.auth import CurrentUser
from app.schemas.report import (
    CustomerAnalytics,
    DailySales,
    DailySalesReport,
    DashboardKPIs,
    InventoryTurnover,
    PaymentMethodBreakdown,
    StaffPerformance,
    TaxBreakdownRow,
    TaxReport,
    TopProduct,
)
from app.services.scheduling import VN_TZ
from app.services.tax import CATEGORY_LABELS, TaxCategory

router = APIRouter(prefix="/reports", tags=["reports"])

ZERO = Decimal("0.00")
LOCAL_TZ_NAME = "Asia/Ho_Chi_Minh"


def _local_date(column):
    return func.date(func.timezone(LOCAL_TZ_NAME, column))


def day_window(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """[start 00:00, end+1 00:00) in Vietnam time."""
    return (
        datetime.combine(start_date, time.min, tzinfo=VN_TZ),
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=VN_TZ),
    )


def percent_change(current: Decimal, previous: Decimal) -> Decimal | None:
    """Growth in percent; ``None`` when there is no baseline."""
    if not previous:
        return None
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return change.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ngày kết thúc phải sau hoặc bằng ngày bắt đầu",
        )


def _completed_in(store_id, start_date: date, end_date: date):
    start, end = day_window(start_date, end_date)
    return and_(
        Order.store_id == store_id,
        Order.status == OrderStatus.COMPLETED,
        Order.created_at >= start,
        Order.created_at < end,
    )


@router.get("/daily-sales", response_model=DailySalesReport)
async def get_daily_sales_report(
    start_date: date = Query(..., description="Start date (YYYY-MM-DD)"),
    end_date: date = Query(..., description="End date (YYYY-MM-DD)"),
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """Revenue, tax and discount per day (requires report:sales)."""
    _check_range(start_date, end_date)

    day = _local_date(Order.created_at)
    query = (
        select(
            day.label("date"),
            func.count(Order.id).label("order_count"),
            func.sum(Order.total).label("revenue"),
            func.sum(Order.tax_amount).label("tax"),
            func.sum(Order.discount_amount + Order.points_discount).label("discount"),
            func.avg(Order.total).label("average_order_value"),
        )
        .where(_completed_in(current_user.store_id, start_date, end_date))
        .group_by(day)
        .order_by(day)
    )
    result = await db.execute(query)
    rows = result.all()

    days = [
        DailySales(
            date=row.date,
            order_count=row.order_count,
            revenue=_money(row.revenue),
            tax=_money(row.tax),
            discount=_money(row.discount),
            average_order_value=_money(row.average_order_value),
        )
        for row in rows
    ]

    return DailySalesReport(
        from_date=start_date,
        to_date=end_date,
        days=days,
        total_orders=sum(d.order_count for d in days),
        total_revenue=sum((d.revenue for d in days), ZERO),
    )


@router.get("/top-products", response_model=list[TopProduct])
async def get_top_products_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """Best sellers by quantity (requires report:sales)."""
    _check_range(start_date, end_date)

    query = (
        select(
            OrderItem.product_id,
            Product.name,
            Product.sku,
            func.sum(OrderItem.quantity).label("quantity_sold"),
            func.sum(OrderItem.total).label("revenue"),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .join(Product, OrderItem.product_id == Product.id)
        .where(_completed_in(current_user.store_id, start_date, end_date))
        .group_by(OrderItem.product_id, Product.name, Product.sku)
        .order_by(desc("quantity_sold"))
        .limit(limit)
    )
    result = await db.execute(query)

    return [
        TopProduct(
            product_id=row.product_id,
            name=row.name,
            sku=row.sku,
            quantity_sold=row.quantity_sold,
            revenue=_money(row.revenue),
        )
        for row in result.all()
    ]


@router.get("/payment-methods", response_model=list[PaymentMethodBreakdown])
async def get_payment_method_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """Revenue share per payment method (requires report:sales)."""
    _check_range(start_date, end_date)

    query = (
        select(
            Order.payment_method,
            func.count(Order.id).label("order_count"),
            func.sum(Order.total).label("revenue"),
        )
        .where(
            _completed_in(current_user.store_id, start_date, end_date),
            Order.payment_method.isnot(None),
        )
        .group_by(Order.payment_method)
        .order_by(desc("revenue"))
    )
    result = await db.execute(query)
    rows = result.all()

    total_revenue = sum((_money(row.revenue) for row in rows), ZERO)
    return [
        PaymentMethodBreakdown(
            payment_method=row.payment_method.value,
            order_count=row.order_count,
            revenue=_money(row.revenue),
            percentage=(
                (_money(row.revenue) / total_revenue * 100).quantize(Decimal("0.01"))
                if total_revenue > 0
                else ZERO
            ),
        )
        for row in rows
    ]


@router.get("/inventory-turnover", response_model=list[InventoryTurnover])
async def get_inventory_turnover_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    limit: int = Query(50, ge=1, le=200),
    sort_by: Literal["turnover", "stock", "sold"] = Query("turnover"),
    current_user: CurrentUser = Depends(require_permission("report:inventory")),
    db: AsyncSession = Depends(get_db),
):
    """Units sold against stock on hand, with days of stock left (requires report:inventory)."""
    _check_range(start_date, end_date)

    sold = (
        select(
            OrderItem.product_id,
            func.sum(OrderItem.quantity).label("quantity_sold"),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .where(_completed_in(current_user.store_id, start_date, end_date))
        .group_by(OrderItem.product_id)
        .subquery()
    )
    query = (
        select(
            Product.id,
            Product.name,
            Product.sku,
            func.coalesce(Inventory.quantity, 0).label("current_stock"),
            func.coalesce(sold.c.quantity_sold, 0).label("quantity_sold"),
        )
        .outerjoin(Inventory, Inventory.product_id == Product.id)
        .outerjoin(sold, sold.c.product_id == Product.id)
        .where(Product.store_id == current_user.store_id, Product.is_active == True)  # noqa: E712
    )
    result = await db.execute(query)

    period_days = Decimal((end_date - start_date).days + 1)
    items = []
    for row in result.all():
        stock = int(row.current_stock)
        quantity_sold = int(row.quantity_sold)
        rate = Decimal(quantity_sold) / stock if stock > 0 else Decimal(quantity_sold)
        days_of_stock = None
        if quantity_sold > 0:
            days_of_stock = (stock / (quantity_sold / period_days)).quantize(Decimal("0.1"))
        items.append(
            InventoryTurnover(
                product_id=row.id,
                name=row.name,
                sku=row.sku,
                quantity_sold=quantity_sold,
                current_stock=stock,
                turnover_rate=rate.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                days_of_stock=days_of_stock,
            )
        )

    sort_keys = {
        "turnover": lambda i: i.turnover_rate,
        "stock": lambda i: i.current_stock,
        "sold": lambda i: i.quantity_sold,
    }
    items.sort(key=sort_keys[sort_by], reverse=True)
    return items[:limit]


@router.get("/customer-analytics", response_model=CustomerAnalytics)
async def get_customer_analytics_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    top: int = Query(10, ge=1, le=50),
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """Customer base, tier mix and top spenders (requires report:sales)."""
    _check_range(start_date, end_date)
    store_id = current_user.store_id
    start, end = day_window(start_date, end_date)

    total_customers = (
        await db.execute(select(func.count(Customer.id)).where(Customer.store_id == store_id))
    ).scalar_one()

    new_customers = (
        await db.execute(
            select(func.count(Customer.id)).where(
                Customer.store_id == store_id,
                Customer.created_at >= start,
                Customer.created_at < end,
            )
        )
    ).scalar_one()

    repeat = (
        select(Order.customer_id)
        .where(_completed_in(store_id, start_date, end_date), Order.customer_id.isnot(None))
        .group_by(Order.customer_id)
        .having(func.count(Order.id) > 1)
        .subquery()
    )
    returning_customers = (
        await db.execute(select(func.count()).select_from(repeat))
    ).scalar_one()

    tier_rows = await db.execute(
        select(Customer.loyalty_tier, func.count(Customer.id))
        .where(Customer.store_id == store_id)
        .group_by(Customer.loyalty_tier)
    )
    tier_distribution = {tier.value: count for tier, count in tier_rows.all()}

    average_ltv = (
        await db.execute(select(func.avg(Customer.total_spent)).where(Customer.store_id == store_id))
    ).scalar_one()

    top_rows = await db.execute(
        select(
            Customer.id,
            Customer.name,
            Customer.loyalty_tier,
            func.count(Order.id).label("order_count"),
            func.sum(Order.total).label("spent"),
        )
        .join(Order, Order.customer_id == Customer.id)
        .where(_completed_in(store_id, start_date, end_date))
        .group_by(Customer.id, Customer.name, Customer.loyalty_tier)
        .order_by(desc("spent"))
        .limit(top)
    )
    top_customers = [
        {
            "customer_id": str(row.id),
            "name": row.name,
            "tier": row.loyalty_tier.value,
            "order_count": row.order_count,
            "spent": str(_money(row.spent)),
        }
        for row in top_rows.all()
    ]

    return CustomerAnalytics(
        total_customers=total_customers,
        new_customers=new_customers,
        returning_customers=returning_customers,
        tier_distribution=tier_distribution,
        average_lifetime_value=_money(average_ltv),
        top_customers=top_customers,
    )


@router.get("/dashboard", response_model=DashboardKPIs)
async def get_dashboard(
    current_user: CurrentUser = Depends(require_permission("report:sales")),
    db: AsyncSession = Depends(get_db),
):
    """Today vs yesterday at a glance."""
    store_id = current_user.store_id
    today = datetime.now(VN_TZ).date()
    yesterday = today - timedelta(days=1)

    async def revenue_and_count(day: date) -> tuple[Decimal, int]:
        row = (
            await db.execute(
                select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
                .where(_completed_in(store_id, day, day))
            )
        ).one()
        return _money(row[0]), int(row[1])

    today_revenue, today_orders = await revenue_and_count(today)
    yesterday_revenue, yesterday_orders = await revenue_and_count(yesterday)

    low_stock_count = (
        await db.execute(
            select(func.count(Inventory.id)).where(
                Inventory.store_id == store_id,
                Inventory.quantity <= Inventory.low_stock_threshold,
            )
        )
    ).scalar_one()

    pending_orders = (
        await db.execute(
            select(func.count(Order.id)).where(
                Order.store_id == store_id,
                Order.status == OrderStatus.PENDING,
            )
        )
    ).scalar_one()

    return DashboardKPIs(
        today_revenue=today_revenue,
        yesterday_revenue=yesterday_revenue,
        revenue_growth=percent_change(today_revenue, yesterday_revenue),
        today_orders=today_orders,
        yesterday_orders=yesterday_orders,
        orders_growth=percent_change(Decimal(today_orders), Decimal(yesterday_orders)),
        average_order_value=_money(today_revenue / today_orders) if today_orders else ZERO,
        low_stock_count=low_stock_count,
        pending_orders=pending_orders,
    )


@router.get("/tax", response_model=TaxReport)
async def get_tax_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: CurrentUser = Depends(require_permission("report:financial")),
    db: AsyncSession = Depends(get_db),
):
    """VAT and excise collected in a period, per tax category (requires report:financial)."""
    _check_range(start_date, end_date)
    completed = _completed_in(current_user.store_id, start_date, end_date)

    totals = (
        await db.execute(
            select(
                func.count(Order.id),
                func.coalesce(func.sum(Order.subtotal - Order.discount_amount), 0),
                func.coalesce(func.sum(Order.excise_amount), 0),
                func.coalesce(func.sum(Order.vat_amount), 0),
            ).where(completed)
        )
    ).one()

    rows = await db.execute(
        select(
            OrderItem.tax_category,
            OrderItem.vat_rate,
            OrderItem.excise_rate,
            func.sum(OrderItem.subtotal).label("taxable_amount"),
            func.sum(OrderItem.excise_amount).label("excise_amount"),
            func.sum(OrderItem.vat_amount).label("vat_amount"),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .where(completed)
        .group_by(OrderItem.tax_category, OrderItem.vat_rate, OrderItem.excise_rate)
        .order_by(OrderItem.tax_category)
    )
    breakdown = [
        TaxBreakdownRow(
            tax_category=row.tax_category.value,
            label=CATEGORY_LABELS[TaxCategory(row.tax_category)],
            vat_rate=row.vat_rate,
            excise_rate=row.excise_rate,
            taxable_amount=_money(row.taxable_amount),
            excise_amount=_money(row.excise_amount),
            vat_amount=_money(row.vat_amount),
        )
        for row in rows.all()
    ]

    total_excise = _money(totals[2])
    total_vat = _money(totals[3])
    return TaxReport(
        from_date=start_date,
        to_date=end_date,
        order_count=int(totals[0]),
        revenue_before_tax=_money(totals[1]),
        total_excise=total_excise,
        total_vat=total_vat,
        total_tax=total_excise + total_vat,
        breakdown=breakdown,
    )


@router.get("/staff-performance", response_model=list[StaffPerformance])
async def get_staff_performance(
    start_date: date = Query(...),
    end_date: date = Query(...),
    current_user: CurrentUser = Depends(require_permission("report:staff")),
    db: AsyncSession = Depends(get_db),
):
    """Orders and revenue per cashier (requires report:staff)."""
    _check_range(start_date, end_date)

    rows = await db.execute(
        select(
            User.id,
            User.full_name,
            func.count(Order.id).label("order_count"),
            func.sum(Order.total).label("revenue"),
            func.avg(Order.total).label("average_order_value"),
        )
        .join(Order, Order.cashier_id == User.id)
        .where(_completed_in(current_user.store_id, start_date, end_date))
        .group_by(User.id, User.full_name)
        .order_by(desc("revenue"))
    )
    return [
        StaffPerformance(
            staff_id=row.id,
            full_name=row.full_name,
            order_count=row.order_count,
            revenue=_money(row.revenue),
            average_order_value=_money(row.average_order_value),
        )
        for row in rows.all()
    ]
