"""Checkout pricing: cart lines -> tax engine -> loyalty -> cash due.

Shared by the stateless ``/cart/quote`` endpoint and order creation so the
number shown on the checkout screen is the number that gets persisted.
"""

import logging
from decimal import Decimal
from uuid import UUID

from app.core.config import settings
from app.core.errors import LoyaltyError
from app.models.order import PaymentMethod
from app.schemas.cart import CartLine, CheckoutQuote, QuoteLine
from app.services import loyalty
from app.services.formatting import calculate_change
from app.services.tax import (
    ZERO,
    DiscountType,
    TaxLineInput,
    apply_cash_rounding,
    calculate_tax,
)

logger = logging.getLogger(__name__)


def merge_cart_lines(lines: list[CartLine]) -> dict[UUID, int]:
    """Sum quantities per product, keep first-seen order, drop lines that end at <= 0."""
    merged: dict[UUID, int] = {}
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return {product_id: qty for product_id, qty in merged.items() if qty > 0}


def rounds_to_cash(payment_method: PaymentMethod | None) -> bool:
    # Counter default is cash; card and wallet payments settle the exact amount.
    return payment_method is None or payment_method == PaymentMethod.CASH


def build_quote(
    quantities: dict[UUID, int],
    products: dict,
    customer=None,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    discount_value: Decimal = ZERO,
    points_to_redeem: int = 0,
    payment_method: PaymentMethod | None = None,
    amount_received: Decimal | None = None,
    is_export: bool = False,
    rounding_step: int = 500,
    loyalty_enabled: bool = True,
    stock: dict[UUID, int] | None = None,
) -> CheckoutQuote:
    """Price a merged cart.

    ``products`` maps product id to a Product (or anything with the same
    attributes). Order of reductions: manual discount on the pre-tax
    subtotal (tax engine), then the customer's tier discount, then points.
    """
    product_ids = list(quantities)
    tax_lines = [
        TaxLineInput(
            name=products[pid].name,
            unit_price=products[pid].price,
            quantity=quantities[pid],
            category=products[pid].tax_category,
            is_tax_inclusive=products[pid].is_tax_inclusive,
        )
        for pid in product_ids
    ]
    calc = calculate_tax(
        tax_lines,
        discount_value=discount_value,
        discount_type=discount_type,
        is_export=is_export,
        rounding_step=rounding_step,
    )

    lines = []
    for pid, result in zip(product_ids, calc.items):
        product = products[pid]
        lines.append(
            QuoteLine(
                product_id=pid,
                name=product.name,
                sku=product.sku,
                quantity=quantities[pid],
                unit_price=result.unit_price,
                tax_category=result.category,
                is_tax_inclusive=result.is_tax_inclusive,
                vat_rate=result.vat_rate,
                excise_rate=result.excise_rate,
                subtotal=result.subtotal,
                excise_amount=result.excise_amount,
                vat_amount=result.vat_amount,
                total_amount=result.total_amount,
                available_quantity=stock.get(pid) if stock is not None else None,
            )
        )

    use_loyalty = loyalty_enabled and customer is not None
    tier = customer.loyalty_tier if use_loyalty else None

    tier_discount = ZERO
    if tier is not None:
        tier_discount = min(
            loyalty.tier_discount(calc.subtotal - calc.discount_amount, tier),
            calc.final_amount,
        )
    remaining = calc.final_amount - tier_discount

    points_redeemed = 0
    points_discount = ZERO
    if points_to_redeem:
        if not use_loyalty:
            raise LoyaltyError("Chỉ khách hàng thành viên mới được đổi điểm")
        loyalty.redemption_value(points_to_redeem, customer.loyalty_points)
        # Never redeem more than what is left to pay.
        affordable = int(remaining // settings.LOYALTY_POINT_VALUE)
        points_redeemed = loyalty.redeemable_points(min(points_to_redeem, affordable))
        points_discount = Decimal(points_redeemed * settings.LOYALTY_POINT_VALUE)
        remaining -= points_discount
        if points_redeemed < points_to_redeem:
            logger.info(
                "Redemption capped for customer %s: requested %d, used %d",
                customer.id, points_to_redeem, points_redeemed,
            )

    final_amount = remaining
    if rounds_to_cash(payment_method):
        amount_due = apply_cash_rounding(final_amount, rounding_step)
    else:
        amount_due = final_amount

    change = ZERO
    is_sufficient = True
    if amount_received is not None:
        change = calculate_change(amount_due, amount_received)
        is_sufficient = amount_received >= amount_due

    points_to_earn = loyalty.points_earned(final_amount, tier) if tier is not None else 0

    return CheckoutQuote(
        lines=lines,
        subtotal=calc.subtotal,
        total_excise=calc.total_excise,
        total_vat=calc.total_vat,
        total_tax=calc.total_tax,
        total_amount=calc.total_amount,
        discount_type=calc.discount_type,
        discount_value=calc.discount_value,
        manual_discount=calc.discount_amount,
        tier_discount=tier_discount,
        discount_amount=calc.discount_amount + tier_discount,
        points_redeemed=points_redeemed,
        points_discount=points_discount,
        final_amount=final_amount,
        cash_rounding=amount_due - final_amount,
        amount_due=amount_due,
        amount_received=amount_received,
        change=change,
        is_sufficient=is_sufficient,
        points_to_earn=points_to_earn,
        customer_tier=tier,
        is_export=is_export,
    )
