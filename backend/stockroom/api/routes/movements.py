"""Stock movements: history (newest first) and recording stock in/out."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockroom.api.deps import get_stock_store
from stockroom.schemas import MovementType, StockMovement, StockMovementCreate
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.get("", response_model=List[StockMovement])
def list_movements(
    product_id: Optional[str] = Query(None),
    type: Optional[MovementType] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    store: StockStore = Depends(get_stock_store),
):
    movements = store.state.movements
    if product_id:
        movements = [m for m in movements if m.product_id == product_id]
    if type:
        movements = [m for m in movements if m.type == type]
    return movements[:limit]


@router.post("", response_model=StockMovement, status_code=201)
def record_movement(movement: StockMovementCreate, store: StockStore = Depends(get_stock_store)):
    """Stock out beyond what is on hand is accepted; the product clamps at zero."""
    return store.add_stock_movement(movement)
