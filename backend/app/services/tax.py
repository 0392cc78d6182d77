"""Vietnamese tax & pricing engine.

VAT (thuế GTGT) 0/5/8/10% by goods category, excise (thuế TTĐB) for
alcohol, tobacco and luxury goods, tax-inclusive back-calculation,
order-level discount and cash rounding.

Everything here is pure and works on ``Decimal``. Money is quantized to
whole đồng half-up (VND has no minor unit) so that totals sent to payment
gateways are exact. The last component of each line is derived by
subtraction so the parts still add up.
"""

import enum
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.errors import TaxCalculationError

MONEY_QUANT = Decimal("1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class TaxCategory(str, enum.Enum):
    ESSENTIAL_GOODS = "essential_goods"
    SEMI_ESSENTIAL_GOODS = "semi_essential_goods"
    STANDARD_GOODS = "standard_goods"
    EXPORT_GOODS = "export_goods"
    EXEMPT_GOODS = "exempt_goods"
    ALCOHOL = "alcohol"
    TOBACCO = "tobacco"
    LUXURY = "luxury"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


DEFAULT_VAT_RATE = Decimal("0.10")

VAT_RATES: dict[TaxCategory, Decimal] = {
    TaxCategory.ESSENTIAL_GOODS: Decimal("0.05"),
    TaxCategory.SEMI_ESSENTIAL_GOODS: Decimal("0.08"),
    TaxCategory.STANDARD_GOODS: Decimal("0.10"),
    TaxCategory.LUXURY: Decimal("0.10"),
    TaxCategory.ALCOHOL: Decimal("0.10"),
    TaxCategory.TOBACCO: Decimal("0.10"),
    TaxCategory.EXPORT_GOODS: ZERO,
    TaxCategory.EXEMPT_GOODS: ZERO,
}

EXCISE_RATES: dict[TaxCategory, Decimal] = {
    TaxCategory.ALCOHOL: Decimal("0.65"),
    TaxCategory.TOBACCO: Decimal("0.75"),
    TaxCategory.LUXURY: Decimal("0.60"),
}

CATEGORY_LABELS: dict[TaxCategory, str] = {
    TaxCategory.ESSENTIAL_GOODS: "Hàng hóa thiết yếu (5%)",
    TaxCategory.SEMI_ESSENTIAL_GOODS: "Hàng hóa bán thiết yếu (8%)",
    TaxCategory.STANDARD_GOODS: "Hàng hóa thông thường (10%)",
    TaxCategory.EXPORT_GOODS: "Hàng xuất khẩu (0%)",
    TaxCategory.EXEMPT_GOODS: "Hàng miễn thuế",
    TaxCategory.ALCOHOL: "Rượu bia (10% VAT + 65% TTĐB)",
    TaxCategory.TOBACCO: "Thuốc lá (10% VAT + 75% TTĐB)",
    TaxCategory.LUXURY: "Hàng xa xỉ (10% VAT + 60% TTĐB)",
}


# ── Types ──────────────────────────────────────────
class TaxLineInput(BaseModel):
    name: str | None = None
    unit_price: Decimal = Field(..., ge=0)
    quantity: Decimal = Field(..., ge=0)
    category: TaxCategory = TaxCategory.STANDARD_GOODS
    is_tax_inclusive: bool = False


class TaxLineResult(BaseModel):
    name: str | None = None
    category: TaxCategory
    quantity: Decimal
    unit_price: Decimal
    is_tax_inclusive: bool
    subtotal: Decimal
    vat_rate: Decimal  # percent, e.g. 10
    excise_rate: Decimal  # percent, e.g. 65
    excise_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal


class TaxCalculation(BaseModel):
    items: list[TaxLineResult]
    subtotal: Decimal
    total_vat: Decimal
    total_excise: Decimal
    total_tax: Decimal
    total_amount: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    cash_due: Decimal
    cash_rounding: Decimal  # cash_due - final_amount
    is_export: bool = False


# ── Helpers ────────────────────────────────────────
def to_decimal(value) -> Decimal:
    """Coerce int/float/str/Decimal into Decimal; floats go through str to avoid binary noise."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise TaxCalculationError(f"Giá trị số không hợp lệ: {value!r}")
    if not result.is_finite():
        raise TaxCalculationError(f"Giá trị số không hợp lệ: {value!r}")
    return result


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def as_percent(rate: Decimal) -> Decimal:
    pct = rate * HUNDRED
    if pct == pct.to_integral_value():
        return pct.quantize(Decimal("1"))
    return pct


def _as_category(category) -> TaxCategory | None:
    if isinstance(category, TaxCategory):
        return category
    try:
        return TaxCategory(category)
    except ValueError:
        return None


def resolve_vat_rate(category, is_export: bool = False) -> Decimal:
    """VAT rate as a fraction. Export sales are zero-rated; unknown categories fall back to 10%."""
    if is_export:
        return ZERO
    resolved = _as_category(category)
    if resolved is None:
        return DEFAULT_VAT_RATE
    return VAT_RATES[resolved]


def resolve_excise_rate(category) -> Decimal:
    resolved = _as_category(category)
    if resolved is None:
        return ZERO
    return EXCISE_RATES.get(resolved, ZERO)


# ── Line tax ───────────────────────────────────────
def calculate_item_tax(line: TaxLineInput, is_export: bool = False) -> TaxLineResult:
    """Compute VAT and excise for one line.

    Excise is levied on the net price and VAT on (net + excise). For
    tax-inclusive prices the gross amount is split back into
    net / excise / VAT so that the three parts sum to the gross exactly.
    """
    unit_price = to_decimal(line.unit_price)
    quantity = to_decimal(line.quantity)
    if unit_price < 0:
        raise TaxCalculationError("Đơn giá không được âm")
    if quantity < 0:
        raise TaxCalculationError("Số lượng không được âm")

    vat_rate = resolve_vat_rate(line.category, is_export)
    excise_rate = resolve_excise_rate(line.category)
    gross = unit_price * quantity

    if line.is_tax_inclusive:
        total_amount = quantize_money(gross)
        total_tax_rate = excise_rate + vat_rate + (excise_rate * vat_rate)
        subtotal = quantize_money(total_amount / (1 + total_tax_rate))
        excise_amount = quantize_money(subtotal * excise_rate)
        vat_amount = total_amount - subtotal - excise_amount
    else:
        subtotal = quantize_money(gross)
        excise_amount = quantize_money(subtotal * excise_rate)
        vat_amount = quantize_money((subtotal + excise_amount) * vat_rate)
        total_amount = subtotal + excise_amount + vat_amount

    return TaxLineResult(
        name=line.name,
        category=line.category,
        quantity=quantity,
        unit_price=unit_price,
        is_tax_inclusive=line.is_tax_inclusive,
        subtotal=subtotal,
        vat_rate=as_percent(vat_rate),
        excise_rate=as_percent(excise_rate),
        excise_amount=excise_amount,
        vat_amount=vat_amount,
        total_amount=total_amount,
    )


# ── Discount & rounding ────────────────────────────
def calculate_discount(
    subtotal,
    discount_value,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
) -> Decimal:
    """Discount amount, never more than the subtotal."""
    subtotal = to_decimal(subtotal)
    value = to_decimal(discount_value)
    if value < 0:
        raise TaxCalculationError("Giá trị giảm giá không được âm")
    if subtotal <= 0:
        return ZERO

    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        amount = quantize_money(subtotal * value / HUNDRED)
    else:
        amount = quantize_money(value)
    return min(amount, subtotal)


def round_to_step(amount, step: int) -> Decimal:
    """Round half-up to the nearest multiple of step."""
    amount = to_decimal(amount)
    if amount < 0:
        raise TaxCalculationError("Số tiền làm tròn không được âm")
    if step <= 0:
        raise TaxCalculationError("Bước làm tròn phải lớn hơn 0")
    step_dec = Decimal(step)
    return (amount / step_dec).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * step_dec


def apply_cash_rounding(amount, step: int = 500) -> Decimal:
    """Cash payments round to the nearest 500đ; smaller coins are not in circulation."""
    return round_to_step(amount, step)


def round_vnd(amount, step: int | None = None) -> Decimal:
    """Display rounding, to DISPLAY_ROUNDING_STEP (1 000đ) unless a step is given."""
    return round_to_step(amount, settings.DISPLAY_ROUNDING_STEP if step is None else step)


# ── Order-level calculation ────────────────────────
def calculate_tax(
    items: list[TaxLineInput],
    discount_value=ZERO,
    discount_type: DiscountType = DiscountType.PERCENTAGE,
    is_export: bool = False,
    rounding_step: int = 500,
) -> TaxCalculation:
    """Aggregate line taxes, then apply the order discount and cash rounding."""
    lines = [calculate_item_tax(item, is_export=is_export) for item in items]

    subtotal = sum((line.subtotal for line in lines), ZERO)
    total_vat = sum((line.vat_amount for line in lines), ZERO)
    total_excise = sum((line.excise_amount for line in lines), ZERO)
    total_tax = total_vat + total_excise
    total_amount = subtotal + total_tax

    discount_value = to_decimal(discount_value)
    discount_amount = calculate_discount(subtotal, discount_value, discount_type)
    final_amount = total_amount - discount_amount
    cash_due = apply_cash_rounding(final_amount, rounding_step)

    return TaxCalculation(
        items=lines,
        subtotal=subtotal,
        total_vat=total_vat,
        total_excise=total_excise,
        total_tax=total_tax,
        total_amount=total_amount,
        discount_type=DiscountType(discount_type),
        discount_value=discount_value,
        discount_amount=discount_amount,
        final_amount=final_amount,
        cash_due=cash_due,
        cash_rounding=cash_due - final_amount,
        is_export=is_export,
    )


def list_tax_categories() -> list[dict]:
    return [
        {
            "value": category.value,
            "label": CATEGORY_LABELS[category],
            "vat_rate": as_percent(VAT_RATES[category]),
            "excise_rate": as_percent(EXCISE_RATES.get(category, ZERO)),
        }
        for category in TaxCategory
    ]
