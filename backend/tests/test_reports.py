"""Unit tests for report helpers."""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from app.api.reports import day_window, percent_change
from app.services.scheduling import VN_TZ


def test_day_window_covers_whole_local_days():
    start, end = day_window(date(2024, 6, 1), date(2024, 6, 3))
    assert start == datetime(2024, 6, 1, tzinfo=VN_TZ)
    assert end == datetime(2024, 6, 4, tzinfo=VN_TZ)
    # 00:00 in Hanoi is 17:00 UTC the day before
    assert start.utcoffset().total_seconds() == 7 * 3600


@pytest.mark.parametrize(
    "current,previous,expected",
    [
        ("150000", "100000", Decimal("50.00")),
        ("50000", "100000", Decimal("-50.00")),
        ("100000", "300000", Decimal("-66.67")),
        ("100000", "0", None),
    ],
)
def test_percent_change(current, previous, expected):
    assert percent_change(Decimal(current), Decimal(previous)) == expected


@pytest.mark.asyncio
async def test_reversed_range_rejected():
    from app.api.reports import get_daily_sales_report

    mock_db = AsyncMock()
    with pytest.raises(HTTPException) as exc_info:
        await get_daily_sales_report(date(2024, 6, 3), date(2024, 6, 1), MagicMock(), mock_db)
    assert exc_info.value.status_code == 400
    mock_db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_daily_sales_totals():
    from app.api.reports import get_daily_sales_report

    rows = [
        MagicMock(date=date(2024, 6, 1), order_count=3, revenue=Decimal("300000"),
                  tax=Decimal("27000"), discount=Decimal("0"), average_order_value=Decimal("100000")),
        MagicMock(date=date(2024, 6, 2), order_count=2, revenue=Decimal("150500"),
                  tax=Decimal("13500"), discount=None, average_order_value=Decimal("75250")),
    ]
    result = MagicMock()
    result.all.return_value = rows
    mock_db = AsyncMock()
    mock_db.execute.return_value = result

    report = await get_daily_sales_report(date(2024, 6, 1), date(2024, 6, 2), MagicMock(), mock_db)

    assert report.total_orders == 5
    assert report.total_revenue == Decimal("450500.00")
    assert report.days[1].discount == Decimal("0.00")
