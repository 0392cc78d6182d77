"""Vietnamese business-field validators (phone, MST, barcode).

They raise ``ValueError`` so they can be used directly from pydantic
``field_validator`` hooks.
"""

import re

_PHONE_RE = re.compile(r"^(\+84|84|0)([35789]\d{8})$")
_TAX_CODE_RE = re.compile(r"^\d{10}(-\d{3})?$")
_BARCODE_RE = re.compile(r"^\d{8,13}$")


def normalize_phone(phone: str) -> str:
    """Accept 0xx / 84xx / +84xx mobile numbers and normalize to ``+84`` form."""
    compact = re.sub(r"[\s.\-()]", "", phone or "")
    match = _PHONE_RE.match(compact)
    if not match:
        raise ValueError("Số điện thoại không hợp lệ")
    return "+84" + match.group(2)


def format_phone(phone: str) -> str:
    """``+84901234567`` -> ``0901 234 567``; anything unrecognized is returned as is."""
    try:
        local = "0" + normalize_phone(phone)[3:]
    except ValueError:
        return phone
    return f"{local[:4]} {local[4:7]} {local[7:]}"


def validate_tax_code(tax_code: str) -> str:
    """Mã số thuế: 10 digits, or 10-3 for a branch unit."""
    tax_code = tax_code.strip()
    if not _TAX_CODE_RE.match(tax_code):
        raise ValueError("Mã số thuế không hợp lệ (10 số hoặc 10-3 số)")
    return tax_code


def validate_barcode(barcode: str) -> str:
    barcode = barcode.strip()
    if not _BARCODE_RE.match(barcode):
        raise ValueError("Mã vạch phải có 8-13 chữ số")
    return barcode
