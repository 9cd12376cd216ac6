"""Aggregate figures for the dashboard, derived from the in-memory snapshot."""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from stockroom.schemas import Product, StockLevel, StockMovement, StockStats

RECENT_WINDOW = timedelta(days=7)


def get_stock_level(product: Product) -> StockLevel:
    """out at 0, low up to min_stock, medium up to twice min_stock, else high."""
    stock = product.current_stock
    if stock == 0:
        return StockLevel.OUT
    if stock <= product.min_stock:
        return StockLevel.LOW
    if stock <= product.min_stock * 2:
        return StockLevel.MEDIUM
    return StockLevel.HIGH


def is_low_stock(product: Product) -> bool:
    return 0 < product.current_stock <= product.min_stock


def calculate_stats(
    products: Sequence[Product],
    movements: Iterable[StockMovement],
    now: Optional[datetime] = None,
    window: timedelta = RECENT_WINDOW,
) -> StockStats:
    """
    Pure aggregate over the given lists.

    `now` defaults to the wall clock at call time, so the recent-movement
    count drifts between calls; pass a fixed value for reproducible results.
    """
    now = now or datetime.now(timezone.utc)
    since = now - window

    return StockStats(
        total_products=len(products),
        total_value=sum(p.current_stock * p.unit_price for p in products),
        low_stock_items=sum(1 for p in products if is_low_stock(p)),
        out_of_stock_items=sum(1 for p in products if p.current_stock == 0),
        recent_movements=sum(1 for m in movements if m.created_at >= since),
    )
