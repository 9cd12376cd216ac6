from datetime import timedelta

import pytest

from stockroom.schemas import StockLevel
from stockroom.services.stats_service import calculate_stats, get_stock_level

from conftest import FIXED_NOW


def test_totals_and_thresholds(make_product):
    products = [
        make_product(id="a", current_stock=10, min_stock=5, unit_price=2.5),   # high
        make_product(id="b", current_stock=5, min_stock=5, unit_price=10),     # low (== min)
        make_product(id="c", current_stock=0, min_stock=5, unit_price=99),     # out, not low
    ]

    stats = calculate_stats(products, [], now=FIXED_NOW)

    assert stats.total_products == 3
    assert stats.total_value == pytest.approx(10 * 2.5 + 5 * 10)
    assert stats.low_stock_items == 1
    assert stats.out_of_stock_items == 1
    assert stats.recent_movements == 0


def test_recent_movements_use_trailing_seven_days(make_movement):
    movements = [
        make_movement(id="today", created_at=FIXED_NOW),
        make_movement(id="edge", created_at=FIXED_NOW - timedelta(days=7)),
        make_movement(id="old", created_at=FIXED_NOW - timedelta(days=7, seconds=1)),
    ]

    stats = calculate_stats([], movements, now=FIXED_NOW)

    assert stats.recent_movements == 2


def test_empty_snapshot():
    stats = calculate_stats([], [], now=FIXED_NOW)
    assert stats.total_products == 0
    assert stats.total_value == 0


@pytest.mark.parametrize(
    "stock, min_stock, expected",
    [
        (0, 10, StockLevel.OUT),
        (1, 10, StockLevel.LOW),
        (10, 10, StockLevel.LOW),
        (11, 10, StockLevel.MEDIUM),
        (20, 10, StockLevel.MEDIUM),
        (21, 10, StockLevel.HIGH),
        (0, 0, StockLevel.OUT),
        (3, 0, StockLevel.HIGH),
    ],
)
def test_stock_level_buckets(make_product, stock, min_stock, expected):
    assert get_stock_level(make_product(current_stock=stock, min_stock=min_stock)) == expected
