"""Unit tests for the VAT / excise engine."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from app.core.errors import TaxCalculationError
from app.services.tax import (
    DiscountType,
    TaxCategory,
    TaxLineInput,
    apply_cash_rounding,
    calculate_discount,
    calculate_item_tax,
    calculate_tax,
    list_tax_categories,
    resolve_excise_rate,
    resolve_vat_rate,
    round_vnd,
    to_decimal,
)


# ── Rates ──────────────────────────────────────────

@pytest.mark.parametrize(
    "category, expected",
    [
        (TaxCategory.ESSENTIAL_GOODS, Decimal("0.05")),
        (TaxCategory.SEMI_ESSENTIAL_GOODS, Decimal("0.08")),
        (TaxCategory.STANDARD_GOODS, Decimal("0.10")),
        (TaxCategory.EXPORT_GOODS, Decimal("0")),
        (TaxCategory.EXEMPT_GOODS, Decimal("0")),
        (TaxCategory.ALCOHOL, Decimal("0.10")),
    ],
)
def test_vat_rates(category, expected):
    assert resolve_vat_rate(category) == expected


def test_unknown_category_falls_back_to_standard():
    assert resolve_vat_rate("something_new") == Decimal("0.10")
    assert resolve_excise_rate("something_new") == Decimal("0")


def test_export_is_zero_rated():
    assert resolve_vat_rate(TaxCategory.STANDARD_GOODS, is_export=True) == 0


def test_excise_rates():
    assert resolve_excise_rate(TaxCategory.ALCOHOL) == Decimal("0.65")
    assert resolve_excise_rate(TaxCategory.TOBACCO) == Decimal("0.75")
    assert resolve_excise_rate(TaxCategory.LUXURY) == Decimal("0.60")
    assert resolve_excise_rate(TaxCategory.STANDARD_GOODS) == 0


# ── Line tax ───────────────────────────────────────

def test_alcohol_exclusive_price():
    """Excise on net, VAT on net + excise."""
    line = calculate_item_tax(
        TaxLineInput(unit_price=Decimal("50000"), quantity=1, category=TaxCategory.ALCOHOL)
    )
    assert line.subtotal == Decimal("50000.00")
    assert line.excise_amount == Decimal("32500.00")
    assert line.vat_amount == Decimal("8250.00")
    assert line.total_amount == Decimal("90750.00")
    assert line.vat_rate == Decimal("10")
    assert line.excise_rate == Decimal("65")


def test_standard_goods_quantity():
    line = calculate_item_tax(
        TaxLineInput(unit_price=Decimal("15000"), quantity=3, category=TaxCategory.STANDARD_GOODS)
    )
    assert line.subtotal == Decimal("45000.00")
    assert line.vat_amount == Decimal("4500.00")
    assert line.total_amount == Decimal("49500.00")


@pytest.mark.parametrize(
    "price, category",
    [
        (Decimal("10000"), TaxCategory.ESSENTIAL_GOODS),
        (Decimal("33333"), TaxCategory.SEMI_ESSENTIAL_GOODS),
        (Decimal("99999"), TaxCategory.ALCOHOL),
        (Decimal("27500"), TaxCategory.TOBACCO),
    ],
)
def test_inclusive_parts_sum_to_gross(price, category):
    line = calculate_item_tax(
        TaxLineInput(unit_price=price, quantity=1, category=category, is_tax_inclusive=True)
    )
    assert line.total_amount == price
    assert line.subtotal + line.excise_amount + line.vat_amount == price


def test_inclusive_standard_back_calculation():
    line = calculate_item_tax(
        TaxLineInput(unit_price=Decimal("110000"), quantity=1, is_tax_inclusive=True)
    )
    assert line.subtotal == Decimal("100000.00")
    assert line.vat_amount == Decimal("10000.00")


def test_line_amounts_are_whole_dong():
    line = calculate_item_tax(TaxLineInput(unit_price=Decimal("12345"), quantity=1))
    assert line.vat_amount == Decimal("1235")
    assert line.total_amount == Decimal("13580")
    assert line.total_amount == line.total_amount.to_integral_value()


def test_inclusive_split_is_whole_dong():
    line = calculate_item_tax(
        TaxLineInput(unit_price=Decimal("33333"), quantity=1, category=TaxCategory.ALCOHOL, is_tax_inclusive=True)
    )
    for part in (line.subtotal, line.excise_amount, line.vat_amount):
        assert part == part.to_integral_value()


def test_zero_quantity_line():
    line = calculate_item_tax(TaxLineInput(unit_price=Decimal("10000"), quantity=0))
    assert line.total_amount == 0


def test_float_inputs_are_coerced_through_str():
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", None])
def test_invalid_numbers_rejected(value):
    with pytest.raises(TaxCalculationError):
        to_decimal(value)


# ── Discount & rounding ────────────────────────────

def test_percentage_discount():
    assert calculate_discount(Decimal("200000"), Decimal("10")) == Decimal("20000.00")


def test_fixed_discount_capped_at_subtotal():
    assert calculate_discount(Decimal("30000"), Decimal("50000"), DiscountType.FIXED) == Decimal("30000")


def test_percentage_over_100_capped():
    assert calculate_discount(Decimal("30000"), Decimal("150")) == Decimal("30000")


def test_negative_discount_rejected():
    with pytest.raises(TaxCalculationError):
        calculate_discount(Decimal("30000"), Decimal("-1"))


def test_discount_on_empty_subtotal():
    assert calculate_discount(Decimal("0"), Decimal("10")) == 0


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("90750"), Decimal("91000")),
        (Decimal("90749"), Decimal("90500")),
        (Decimal("90250"), Decimal("90500")),
        (Decimal("90000"), Decimal("90000")),
        (Decimal("0"), Decimal("0")),
    ],
)
def test_cash_rounding_to_500(amount, expected):
    assert apply_cash_rounding(amount) == expected


def test_round_vnd_to_thousand():
    assert round_vnd(Decimal("12500")) == Decimal("13000")


def test_round_vnd_uses_configured_step():
    with patch("app.services.tax.settings") as mock_settings:
        mock_settings.DISPLAY_ROUNDING_STEP = 500
        assert round_vnd(Decimal("12600")) == Decimal("12500")
    assert round_vnd(Decimal("12600"), step=100) == Decimal("12600")


def test_rounding_rejects_bad_step():
    with pytest.raises(TaxCalculationError):
        apply_cash_rounding(Decimal("1000"), step=0)


# ── Order-level ────────────────────────────────────

def test_calculate_tax_mixed_cart():
    calc = calculate_tax(
        [
            TaxLineInput(unit_price=Decimal("50000"), quantity=1, category=TaxCategory.ALCOHOL),
            TaxLineInput(unit_price=Decimal("20000"), quantity=2, category=TaxCategory.ESSENTIAL_GOODS),
        ],
        discount_value=Decimal("10"),
    )
    assert calc.subtotal == Decimal("90000.00")
    assert calc.total_excise == Decimal("32500.00")
    assert calc.total_vat == Decimal("10250.00")
    assert calc.total_amount == Decimal("132750.00")
    # 10% of the pre-tax subtotal
    assert calc.discount_amount == Decimal("9000.00")
    assert calc.final_amount == Decimal("123750.00")
    assert calc.cash_due == Decimal("124000")
    assert calc.cash_rounding == Decimal("250.00")


def test_calculate_tax_export_order():
    calc = calculate_tax(
        [TaxLineInput(unit_price=Decimal("100000"), quantity=1)],
        is_export=True,
    )
    assert calc.total_vat == 0
    assert calc.final_amount == Decimal("100000.00")
    assert calc.is_export


def test_calculate_tax_empty_cart():
    calc = calculate_tax([])
    assert calc.items == []
    assert calc.final_amount == 0
    assert calc.cash_due == 0


def test_list_tax_categories():
    categories = {c["value"]: c for c in list_tax_categories()}
    assert len(categories) == len(TaxCategory)
    assert categories["alcohol"]["excise_rate"] == Decimal("65")
    assert categories["semi_essential_goods"]["vat_rate"] == Decimal("8")


# ── Calculator endpoint ────────────────────────────

def _calculator_user():
    import uuid

    from app.schemas.auth import CurrentUser

    return CurrentUser(
        id=uuid.uuid4(), email="", full_name="", role="cashier",
        store_id=uuid.uuid4(), permissions=["tax:calculate"], is_active=True,
    )


@pytest.mark.asyncio
async def test_calculate_endpoint_falls_back_to_store_rounding_step():
    from types import SimpleNamespace
    from unittest.mock import AsyncMock

    from app.api.tax import calculate
    from app.schemas.tax import TaxCalculateRequest

    body = TaxCalculateRequest(items=[TaxLineInput(unit_price=Decimal("12345"), quantity=1)])
    store_settings = SimpleNamespace(cash_rounding_step=1000)
    with patch("app.api.tax.get_store_settings", new=AsyncMock(return_value=store_settings)) as mock_get:
        calc = await calculate(body, _calculator_user(), AsyncMock())

    mock_get.assert_awaited_once()
    assert calc.final_amount == Decimal("13580")
    assert calc.cash_due == Decimal("14000")


@pytest.mark.asyncio
async def test_calculate_endpoint_explicit_step_and_discount():
    from unittest.mock import AsyncMock

    from app.api.tax import calculate
    from app.schemas.tax import TaxCalculateRequest

    body = TaxCalculateRequest(
        items=[TaxLineInput(unit_price=Decimal("25000"), quantity=2, category=TaxCategory.ALCOHOL)],
        discount_type=DiscountType.FIXED,
        discount_value=Decimal("750"),
        rounding_step=500,
    )
    with patch("app.api.tax.get_store_settings", new=AsyncMock()) as mock_get:
        calc = await calculate(body, _calculator_user(), AsyncMock())

    mock_get.assert_not_awaited()
    assert calc.total_amount == Decimal("90750")
    assert calc.final_amount == Decimal("90000")
    assert calc.cash_due == Decimal("90000")


@pytest.mark.asyncio
async def test_tax_categories_endpoint():
    from app.api.tax import get_tax_categories

    categories = await get_tax_categories(_calculator_user())
    tobacco = next(c for c in categories if c.value == "tobacco")
    assert tobacco.excise_rate == Decimal("75")
    assert "Thuốc lá" in tobacco.label
