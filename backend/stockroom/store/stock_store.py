"""
Session-scoped stock store.

Bridges the reducer to the external data store. Every mutating operation
issues exactly one write, then dispatches the row the store returned (so
generated ids and timestamps are what the cache holds). A failed call raises
DataStoreError and leaves the snapshot untouched.

Writes from concurrent requests land in the snapshot in the order their
external calls complete; the last one to resolve wins.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from stockroom.core.audit import AuditLog
from stockroom.core.exceptions import (
    DataStoreError,
    NotFoundError,
    ReferentialGuardError,
    StockroomError,
    ValidationFailed,
)
from stockroom.datastore.base import DataStore
from stockroom.datastore.repositories import (
    CategoryRepository,
    MovementRepository,
    ProductRepository,
    SupplierRepository,
)
from stockroom.schemas import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
    StockFilter,
    StockLevel,
    StockMovement,
    StockMovementCreate,
    Supplier,
    SupplierCreate,
    SupplierUpdate,
)
from stockroom.services.stats_service import get_stock_level
from stockroom.store.reducer import STATS_INPUTS, Action, ActionType, StockState, stock_reducer

logger = logging.getLogger(__name__)

# Columns a partial update may change but never null out
_PRODUCT_REQUIRED = ("name", "sku", "category_id", "current_stock", "min_stock", "unit_price")

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ImportReport:
    entity: str
    created: int = 0
    errors: List[Tuple[int, str]] = field(default_factory=list)  # (row number, message)

    @property
    def failed(self) -> int:
        return len(self.errors)


class StockStore:
    def __init__(self, datastore: DataStore, clock: Optional[Clock] = None, movement_limit: int = 100):
        self._datastore = datastore
        self._clock = clock or _utc_now
        self._movement_limit = movement_limit
        self._lock = threading.RLock()
        self._state = StockState()
        self._opened = False

    # -- lifecycle ------------------------------------------------------

    def open(self, load: bool = True) -> None:
        """Connect to the store and, unless load=False, build the snapshot."""
        self._datastore.open()
        self.products = ProductRepository(self._datastore)
        self.categories = CategoryRepository(self._datastore)
        self.suppliers = SupplierRepository(self._datastore)
        self.movements = MovementRepository(self._datastore)
        self._opened = True
        if load:
            self.refresh_data()

    def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        with self._lock:
            self._state = StockState()
        self._datastore.close()

    @property
    def datastore(self) -> DataStore:
        return self._datastore

    @property
    def state(self) -> StockState:
        return self._state

    def _dispatch(self, action: Action) -> StockState:
        with self._lock:
            state = stock_reducer(self._state, action)
            if action.type in STATS_INPUTS:
                state = stock_reducer(state, Action(ActionType.CALCULATE_STATS, self._clock()))
            self._state = state
            return state

    def recalculate_stats(self) -> StockState:
        return self._dispatch(Action(ActionType.CALCULATE_STATS, self._clock()))

    # -- fetches (idempotent, replace a slice wholesale) -----------------

    def fetch_products(self) -> List[Product]:
        products = self.products.list(order_by="name")
        self._dispatch(Action(ActionType.SET_PRODUCTS, products))
        return products

    def fetch_movements(self) -> List[StockMovement]:
        movements = self.movements.list(order_by="created_at", descending=True, limit=self._movement_limit)
        self._dispatch(Action(ActionType.SET_MOVEMENTS, movements))
        return movements

    def fetch_categories(self) -> List[Category]:
        categories = self.categories.list(order_by="name")
        self._dispatch(Action(ActionType.SET_CATEGORIES, categories))
        return categories

    def fetch_suppliers(self) -> List[Supplier]:
        suppliers = self.suppliers.list(order_by="name")
        self._dispatch(Action(ActionType.SET_SUPPLIERS, suppliers))
        return suppliers

    def refresh_data(self) -> StockState:
        """Reload every slice. All four reads must succeed before any slice is replaced."""
        self._dispatch(Action(ActionType.SET_LOADING, True))
        try:
            products = self.products.list(order_by="name")
            movements = self.movements.list(order_by="created_at", descending=True, limit=self._movement_limit)
            categories = self.categories.list(order_by="name")
            suppliers = self.suppliers.list(order_by="name")
        except DataStoreError:
            logger.error("Error fetching data; keeping the previous snapshot")
            raise
        finally:
            self._dispatch(Action(ActionType.SET_LOADING, False))

        self._dispatch(Action(ActionType.SET_PRODUCTS, products))
        self._dispatch(Action(ActionType.SET_MOVEMENTS, movements))
        self._dispatch(Action(ActionType.SET_CATEGORIES, categories))
        self._dispatch(Action(ActionType.SET_SUPPLIERS, suppliers))
        logger.info(
            f"Snapshot loaded: {len(products)} products, {len(movements)} movements, "
            f"{len(categories)} categories, {len(suppliers)} suppliers"
        )
        return self._state

    # -- products -------------------------------------------------------

    def add_product(self, data: ProductCreate) -> Product:
        product = self.products.create(data)
        self._dispatch(Action(ActionType.ADD_PRODUCT, product))
        AuditLog.log_action("create", "product", product.id, changes={"sku": product.sku})
        return product

    def update_product(self, product_id: str, changes: ProductUpdate) -> Product:
        nulled = [f for f in _PRODUCT_REQUIRED if f in changes.model_fields_set and getattr(changes, f) is None]
        if nulled:
            raise ValidationFailed(f"Required product fields cannot be cleared: {', '.join(nulled)}", fields=nulled)
        product = self.products.update(product_id, changes)
        if product is None:
            raise NotFoundError("Product not found")
        self._dispatch(Action(ActionType.UPDATE_PRODUCT, product))
        AuditLog.log_action("update", "product", product.id, changes=changes.model_dump(mode="json", exclude_unset=True))
        return product

    def delete_product(self, product_id: str) -> None:
        self.products.delete(product_id)
        self._dispatch(Action(ActionType.DELETE_PRODUCT, product_id))
        AuditLog.log_action("delete", "product", product_id)

    # -- movements ------------------------------------------------------

    def add_stock_movement(self, data: StockMovementCreate) -> StockMovement:
        """
        Record a stock in/out. The store applies the delta to the product
        row; the reducer mirrors it on the cached product (out clamps at 0).
        """
        movement = self.movements.create(data)
        self._dispatch(Action(ActionType.ADD_MOVEMENT, movement))
        AuditLog.log_action(
            "create", "movement", movement.id, actor=movement.created_by,
            changes={"product_id": movement.product_id, "type": movement.type.value, "quantity": movement.quantity},
        )
        return movement

    # -- categories -----------------------------------------------------

    def add_category(self, data: CategoryCreate) -> Category:
        category = self.categories.create(data)
        self._dispatch(Action(ActionType.ADD_CATEGORY, category))
        AuditLog.log_action("create", "category", category.id, changes={"name": category.name})
        return category

    def update_category(self, category_id: str, changes: CategoryUpdate) -> Category:
        category = self.categories.update(category_id, changes)
        if category is None:
            raise NotFoundError("Category not found")
        self._dispatch(Action(ActionType.UPDATE_CATEGORY, category))
        AuditLog.log_action("update", "category", category.id, changes=changes.model_dump(exclude_unset=True))
        return category

    def delete_category(self, category_id: str) -> None:
        """Refused while any product references the category."""
        blocking = self.products.count({"category_id": category_id})
        if blocking > 0:
            AuditLog.log_refused("delete", "category", category_id, f"{blocking} products reference it")
            raise ReferentialGuardError(
                f"This category has {blocking} products. Move them to another category first.",
                blocking_count=blocking,
            )
        self.categories.delete(category_id)
        self._dispatch(Action(ActionType.DELETE_CATEGORY, category_id))
        AuditLog.log_action("delete", "category", category_id)

    def product_counts_by_category(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for product in self._state.products:
            counts[product.category_id] = counts.get(product.category_id, 0) + 1
        return counts

    # -- suppliers ------------------------------------------------------

    def add_supplier(self, data: SupplierCreate) -> Supplier:
        supplier = self.suppliers.create(data)
        self._dispatch(Action(ActionType.ADD_SUPPLIER, supplier))
        AuditLog.log_action("create", "supplier", supplier.id, changes={"name": supplier.name})
        return supplier

    def update_supplier(self, supplier_id: str, changes: SupplierUpdate) -> Supplier:
        supplier = self.suppliers.update(supplier_id, changes)
        if supplier is None:
            raise NotFoundError("Supplier not found")
        self._dispatch(Action(ActionType.UPDATE_SUPPLIER, supplier))
        AuditLog.log_action("update", "supplier", supplier.id, changes=changes.model_dump(exclude_unset=True))
        return supplier

    def delete_supplier(self, supplier_id: str) -> None:
        # Supplier references are advisory: cached products keep the old id until the next refresh
        self.suppliers.delete(supplier_id)
        self._dispatch(Action(ActionType.DELETE_SUPPLIER, supplier_id))
        AuditLog.log_action("delete", "supplier", supplier_id)

    # -- views ----------------------------------------------------------

    def set_filter(self, stock_filter: Optional[StockFilter]) -> StockFilter:
        return self._dispatch(Action(ActionType.SET_FILTER, stock_filter)).filter

    def get_stock_level(self, product: Product) -> StockLevel:
        return get_stock_level(product)

    def get_filtered_products(self, stock_filter: Optional[StockFilter] = None) -> List[Product]:
        """Products matching every set predicate of the given (or the current) filter."""
        state = self._state
        f = stock_filter if stock_filter is not None else state.filter
        term = (f.search_term or "").strip().lower()

        def matches(product: Product) -> bool:
            if term and not (
                term in product.name.lower()
                or term in product.sku.lower()
                or term in (product.description or "").lower()
            ):
                return False
            if f.category and product.category_id != f.category:
                return False
            if f.supplier and product.supplier_id != f.supplier:
                return False
            if f.stock_level and get_stock_level(product) != f.stock_level:
                return False
            return True

        return [p for p in state.products if matches(p)]

    def find_by_barcode(self, code: str) -> Optional[Product]:
        """Scanner lookup: exact barcode first, then SKU (case-insensitive)."""
        code = code.strip()
        if not code:
            return None
        products = self._state.products
        for product in products:
            if product.barcode and product.barcode == code:
                return product
        lowered = code.lower()
        for product in products:
            if product.sku.lower() == lowered:
                return product
        return None

    def low_stock_products(self) -> List[Product]:
        """Out-of-stock and low items, emptiest first."""
        flagged = [
            p for p in self._state.products
            if get_stock_level(p) in (StockLevel.OUT, StockLevel.LOW)
        ]
        return sorted(flagged, key=lambda p: (p.current_stock, p.name))

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        state = self._state
        return {
            "products": [p.model_dump(mode="json") for p in state.products],
            "categories": [c.model_dump(mode="json") for c in state.categories],
            "suppliers": [s.model_dump(mode="json") for s in state.suppliers],
            "movements": [m.model_dump(mode="json") for m in state.movements],
        }

    # -- bulk import ----------------------------------------------------

    def import_rows(self, entity: str, rows: List[Dict[str, Any]]) -> ImportReport:
        """
        Create one row per record. Bad rows are reported and skipped; rows
        before and after them are still imported.
        """
        targets: Dict[str, Tuple[type, Callable[[Any], BaseModel]]] = {
            "products": (ProductCreate, self.add_product),
            "categories": (CategoryCreate, self.add_category),
            "suppliers": (SupplierCreate, self.add_supplier),
        }
        if entity not in targets:
            raise NotFoundError(f"Cannot import {entity}")
        schema, create = targets[entity]

        report = ImportReport(entity=entity)
        for number, raw in enumerate(rows, start=1):
            # CSV cells are strings; an empty cell means "not provided"
            cleaned = {k: v for k, v in raw.items() if v not in ("", None)}
            try:
                create(schema.model_validate(cleaned))
                report.created += 1
            except ValidationError as e:
                message = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
                report.errors.append((number, message))
            except StockroomError as e:
                report.errors.append((number, e.detail))

        if report.errors:
            logger.warning(f"Import of {entity}: {report.created} created, {report.failed} rejected")
        else:
            logger.info(f"Import of {entity}: {report.created} created")
        AuditLog.log_action("import", entity.rstrip("s"), None, changes={"created": report.created, "failed": report.failed})
        return report
