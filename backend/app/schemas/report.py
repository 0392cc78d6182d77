"""Analytics / report schemas."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class DailySales(BaseModel):
    date: date
    order_count: int
    revenue: Decimal
    tax: Decimal
    discount: Decimal
    average_order_value: Decimal


class DailySalesReport(BaseModel):
    from_date: date
    to_date: date
    days: list[DailySales]
    total_orders: int
    total_revenue: Decimal


class TopProduct(BaseModel):
    product_id: UUID
    name: str
    sku: str
    quantity_sold: int
    revenue: Decimal


class PaymentMethodBreakdown(BaseModel):
    payment_method: str
    order_count: int
    revenue: Decimal
    percentage: Decimal


class InventoryTurnover(BaseModel):
    product_id: UUID
    name: str
    sku: str
    quantity_sold: int
    current_stock: int
    turnover_rate: Decimal
    days_of_stock: Decimal | None


class CustomerAnalytics(BaseModel):
    total_customers: int
    new_customers: int
    returning_customers: int
    tier_distribution: dict[str, int]
    average_lifetime_value: Decimal
    top_customers: list[dict]


class DashboardKPIs(BaseModel):
    today_revenue: Decimal
    yesterday_revenue: Decimal
    revenue_growth: Decimal | None
    today_orders: int
    yesterday_orders: int
    orders_growth: Decimal | None
    average_order_value: Decimal
    low_stock_count: int
    pending_orders: int


class TaxBreakdownRow(BaseModel):
    tax_category: str
    label: str
    vat_rate: Decimal
    excise_rate: Decimal
    taxable_amount: Decimal
    excise_amount: Decimal
    vat_amount: Decimal


class TaxReport(BaseModel):
    """VAT / excise totals for a filing period (kỳ kê khai)."""
    from_date: date
    to_date: date
    order_count: int
    revenue_before_tax: Decimal
    total_excise: Decimal
    total_vat: Decimal
    total_tax: Decimal
    breakdown: list[TaxBreakdownRow]


class StaffPerformance(BaseModel):
    staff_id: UUID
    full_name: str
    order_count: int
    revenue: Decimal
    average_order_value: Decimal
