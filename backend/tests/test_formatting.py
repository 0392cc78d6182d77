"""Unit tests for VND / Vietnamese formatting helpers."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.services.formatting import (
    amount_in_words,
    calculate_change,
    format_date,
    format_datetime,
    format_relative_time,
    format_vnd,
    format_vnd_compact,
    parse_vnd,
    slugify,
)


def test_format_vnd():
    assert format_vnd(1234567) == "1.234.567 ₫"
    assert format_vnd(Decimal("90750.00")) == "90.750 ₫"
    assert format_vnd(0) == "0 ₫"
    assert format_vnd(-5000) == "-5.000 ₫"


def test_format_vnd_compact():
    assert format_vnd_compact(1500000) == "1.5M ₫"
    assert format_vnd_compact(2000) == "2.0K ₫"
    assert format_vnd_compact(500) == "500 ₫"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.234.567 ₫", Decimal("1234567")),
        ("50,000đ", Decimal("50000")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
    ],
)
def test_parse_vnd(text, expected):
    assert parse_vnd(text) == expected


def test_calculate_change():
    assert calculate_change(Decimal("91000"), Decimal("100000")) == Decimal("9000")
    assert calculate_change(Decimal("91000"), Decimal("50000")) == 0


@pytest.mark.parametrize(
    "amount, words",
    [
        (0, "không đồng"),
        (15, "mười lăm đồng"),
        (21, "hai mươi mốt đồng"),
        (105, "một trăm linh năm đồng"),
        (1005, "một nghìn không trăm linh năm đồng"),
        (100000, "một trăm nghìn đồng"),
        (1500000, "một triệu năm trăm nghìn đồng"),
        (90750, "chín mươi nghìn bảy trăm năm mươi đồng"),
        (2000000000, "hai tỷ đồng"),
    ],
)
def test_amount_in_words(amount, words):
    assert amount_in_words(amount) == words


def test_dates():
    moment = datetime(2024, 3, 5, 8, 7)
    assert format_date(moment) == "05/03/2024"
    assert format_datetime(moment) == "05/03/2024 08:07"


def test_relative_time():
    now = datetime(2024, 3, 5, 12, 0)
    assert format_relative_time(now - timedelta(seconds=20), now) == "Vừa xong"
    assert format_relative_time(now - timedelta(minutes=5), now) == "5 phút trước"
    assert format_relative_time(now - timedelta(hours=3), now) == "3 giờ trước"
    assert format_relative_time(now - timedelta(days=2), now) == "2 ngày trước"
    assert format_relative_time(now - timedelta(days=10), now) == "24/02/2024"


def test_slugify():
    assert slugify("Đồ uống có cồn") == "do-uong-co-con"
    assert slugify("  Bánh kẹo & Snack ") == "banh-keo-snack"
