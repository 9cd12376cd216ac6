from typing import List

from fastapi import APIRouter, Depends

from stockroom.api.deps import get_stock_store
from stockroom.schemas import Product, StockStats
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.get("", response_model=StockStats)
def get_stats(store: StockStore = Depends(get_stock_store)):
    """Dashboard numbers. Recomputed so the 7-day movement window is current."""
    return store.recalculate_stats().stats


@router.get("/low-stock", response_model=List[Product])
def low_stock(store: StockStore = Depends(get_stock_store)):
    return store.low_stock_products()
