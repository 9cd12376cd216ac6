from typing import List

from fastapi import APIRouter, Depends

from stockroom.api.deps import get_stock_store
from stockroom.schemas import Supplier, SupplierCreate, SupplierUpdate
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.get("", response_model=List[Supplier])
def list_suppliers(store: StockStore = Depends(get_stock_store)):
    return store.state.suppliers


@router.post("", response_model=Supplier, status_code=201)
def create_supplier(item: SupplierCreate, store: StockStore = Depends(get_stock_store)):
    return store.add_supplier(item)


@router.patch("/{supplier_id}", response_model=Supplier)
def update_supplier(supplier_id: str, updates: SupplierUpdate, store: StockStore = Depends(get_stock_store)):
    return store.update_supplier(supplier_id, updates)


@router.delete("/{supplier_id}", response_model=dict)
def delete_supplier(supplier_id: str, store: StockStore = Depends(get_stock_store)):
    store.delete_supplier(supplier_id)
    return {"message": "Supplier deleted", "id": supplier_id}
