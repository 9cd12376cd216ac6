"""Products: list/filter, barcode lookup and CRUD against the stock store."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from stockroom.api.deps import get_stock_store
from stockroom.core.exceptions import BusinessError
from stockroom.schemas import Product, ProductCreate, ProductUpdate, StockFilter, StockLevel
from stockroom.store.stock_store import StockStore

router = APIRouter()


@router.get("", response_model=List[Product])
def list_products(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    supplier: Optional[str] = Query(None),
    stock_level: Optional[StockLevel] = Query(None),
    store: StockStore = Depends(get_stock_store),
):
    """
    Products matching every given query parameter. Without any parameters,
    the session filter (PUT /products/filter) applies.
    """
    if any(v is not None for v in (search, category, supplier, stock_level)):
        return store.get_filtered_products(
            StockFilter(search_term=search, category=category, supplier=supplier, stock_level=stock_level)
        )
    return store.get_filtered_products()


@router.get("/filter", response_model=StockFilter)
def get_filter(store: StockStore = Depends(get_stock_store)):
    return store.state.filter


@router.put("/filter", response_model=StockFilter)
def set_filter(stock_filter: StockFilter, store: StockStore = Depends(get_stock_store)):
    return store.set_filter(stock_filter)


@router.get("/barcode/{code}", response_model=Product)
def find_by_barcode(code: str, store: StockStore = Depends(get_stock_store)):
    """Resolve a scanned code (barcode, then SKU) to a product."""
    product = store.find_by_barcode(code)
    if product is None:
        raise BusinessError.not_found("Product", reason=f"no barcode or SKU {code}")
    return product


@router.get("/{product_id}", response_model=dict)
def get_product(product_id: str, store: StockStore = Depends(get_stock_store)):
    for product in store.state.products:
        if product.id == product_id:
            return {**product.model_dump(mode="json"), "stock_level": store.get_stock_level(product).value}
    raise BusinessError.not_found("Product")


@router.post("", response_model=Product, status_code=201)
def create_product(item: ProductCreate, store: StockStore = Depends(get_stock_store)):
    return store.add_product(item)


@router.patch("/{product_id}", response_model=Product)
def update_product(product_id: str, updates: ProductUpdate, store: StockStore = Depends(get_stock_store)):
    if updates.name is not None and not updates.name.strip():
        raise BusinessError.bad_request("Product name cannot be empty")
    if updates.sku is not None and not updates.sku.strip():
        raise BusinessError.bad_request("SKU cannot be empty")
    return store.update_product(product_id, updates)


@router.delete("/{product_id}", response_model=dict)
def delete_product(product_id: str, store: StockStore = Depends(get_stock_store)):
    store.delete_product(product_id)
    return {"message": "Product deleted", "id": product_id}
