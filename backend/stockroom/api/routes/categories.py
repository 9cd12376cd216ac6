"""Categories with product counts; delete is refused while products reference one."""
from typing import List

from fastapi import APIRouter, Depends

from stockroom.api.deps import get_stock_store
from stockroom.schemas import Category, CategoryCreate, CategoryUpdate
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.get("", response_model=List[dict])
def list_categories(store: StockStore = Depends(get_stock_store)):
    counts = store.product_counts_by_category()
    return [
        {**c.model_dump(mode="json"), "product_count": counts.get(c.id, 0)}
        for c in store.state.categories
    ]


@router.post("", response_model=Category, status_code=201)
def create_category(item: CategoryCreate, store: StockStore = Depends(get_stock_store)):
    return store.add_category(item)


@router.patch("/{category_id}", response_model=Category)
def update_category(category_id: str, updates: CategoryUpdate, store: StockStore = Depends(get_stock_store)):
    return store.update_category(category_id, updates)


@router.delete("/{category_id}", response_model=dict)
def delete_category(category_id: str, store: StockStore = Depends(get_stock_store)):
    store.delete_category(category_id)
    return {"message": "Category deleted", "id": category_id}
