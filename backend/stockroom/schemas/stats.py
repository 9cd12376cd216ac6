from pydantic import BaseModel


class StockStats(BaseModel):
    """Derived from the snapshot, never stored."""
    total_products: int = 0
    total_value: float = 0.0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    recent_movements: int = 0
