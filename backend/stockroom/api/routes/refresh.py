from fastapi import APIRouter, Depends

from stockroom.api.deps import get_stock_store
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.post("", response_model=dict)
def refresh(store: StockStore = Depends(get_stock_store)):
    """Rebuild the snapshot from the data store."""
    state = store.refresh_data()
    return {
        "products": len(state.products),
        "categories": len(state.categories),
        "suppliers": len(state.suppliers),
        "movements": len(state.movements),
        "stats": state.stats.model_dump(),
    }
