"""Unit tests for phone / MST / barcode validators."""

import pytest

from app.services.validation import format_phone, normalize_phone, validate_barcode, validate_tax_code


@pytest.mark.parametrize(
    "raw",
    ["0901234567", "+84901234567", "84901234567", "090 123 4567", "090-123-4567"],
)
def test_normalize_phone(raw):
    assert normalize_phone(raw) == "+84901234567"


@pytest.mark.parametrize("raw", ["", "12345", "0201234567", "+8490123456"])
def test_invalid_phone(raw):
    with pytest.raises(ValueError):
        normalize_phone(raw)


def test_format_phone():
    assert format_phone("+84901234567") == "0901 234 567"
    assert format_phone("hotline") == "hotline"


def test_tax_code():
    assert validate_tax_code(" 0312345678 ") == "0312345678"
    assert validate_tax_code("0312345678-001") == "0312345678-001"
    with pytest.raises(ValueError):
        validate_tax_code("031234567")


def test_barcode():
    assert validate_barcode("8934563138165") == "8934563138165"
    with pytest.raises(ValueError):
        validate_barcode("12AB5678")
