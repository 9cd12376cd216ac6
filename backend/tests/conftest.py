"""
Pytest configuration and fixtures for Stockroom tests.
Every fixture gets its own in-memory SQLite database.
"""
import os
from concurrent.futures import Future
from datetime import datetime, timezone

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATA_BACKEND"] = "sql"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAILJS_SERVICE_ID"] = ""
os.environ["EMAILJS_TEMPLATE_ID"] = ""
os.environ["EMAILJS_PUBLIC_KEY"] = ""
os.environ["APPROVER_NAME"] = "Somchai"
os.environ["APPROVER_EMAIL"] = "approver@example.com"
os.environ["APPROVAL_CC_EMAILS"] = "finance@example.com"
os.environ["APPROVAL_BASE_URL"] = "https://stock.example.com"

from stockroom.core.config import settings  # noqa: E402
from stockroom.datastore.repositories import AccountCodeRepository  # noqa: E402
from stockroom.datastore.sql import SqlDataStore  # noqa: E402
from stockroom.db.session import create_db_engine  # noqa: E402
from stockroom.schemas import (  # noqa: E402
    CategoryCreate,
    MovementType,
    Product,
    ProductCreate,
    StockMovement,
    SupplierCreate,
)
from stockroom.services.budget_service import BudgetService  # noqa: E402
from stockroom.services.email_service import DeliveryResult  # noqa: E402
from stockroom.store.stock_store import StockStore  # noqa: E402

FIXED_NOW = datetime(2025, 8, 8, 12, 0, tzinfo=timezone.utc)


class StubNotifier:
    """Records dispatched emails instead of sending them."""

    def __init__(self, result: DeliveryResult = DeliveryResult(ok=True, status_code=200, detail="OK")):
        self.result = result
        self.calls = []
        self.shut_down = False

    def dispatch(self, request_id, template_params):
        self.calls.append((request_id, template_params))
        future = Future()
        future.set_result(self.result)
        return future

    def shutdown(self, wait=True):
        self.shut_down = True


@pytest.fixture
def make_product():
    def _make(**overrides) -> Product:
        fields = {
            "id": "p1",
            "name": "Paracetamol 500mg",
            "sku": "MED-001",
            "category_id": "c1",
            "current_stock": 10,
            "min_stock": 5,
            "unit_price": 2.5,
        }
        fields.update(overrides)
        return Product(**fields)
    return _make


@pytest.fixture
def make_movement():
    def _make(**overrides) -> StockMovement:
        fields = {
            "id": "m1",
            "product_id": "p1",
            "type": MovementType.IN,
            "quantity": 5,
            "reason": "Purchase",
            "created_at": FIXED_NOW,
        }
        fields.update(overrides)
        return StockMovement(**fields)
    return _make


@pytest.fixture
def datastore():
    store = SqlDataStore(create_db_engine("sqlite://"))
    yield store
    store.close()


@pytest.fixture
def store(datastore):
    """Stock store over an empty in-memory database, stats measured with the wall clock."""
    stock_store = StockStore(datastore)
    stock_store.open()
    yield stock_store
    stock_store.close()


@pytest.fixture
def seeded(store):
    """Two categories, one supplier and three products added through the store."""
    medicines = store.add_category(CategoryCreate(name="Medicines", is_medicine=True))
    office = store.add_category(CategoryCreate(name="Office Supplies"))
    supplier = store.add_supplier(SupplierCreate(name="Siam Pharma", email="orders@siampharma.example"))
    paracetamol = store.add_product(ProductCreate(
        name="Paracetamol 500mg", sku="MED-PARA", description="Fever and pain relief",
        category_id=medicines.id, supplier_id=supplier.id,
        current_stock=100, min_stock=20, unit_price=2.5, barcode="8850000000011",
    ))
    cetirizine = store.add_product(ProductCreate(
        name="Cetirizine 10mg", sku="MED-CETI", description="Allergy tablets",
        category_id=medicines.id, supplier_id=supplier.id,
        current_stock=15, min_stock=20, unit_price=1.5,
    ))
    paper = store.add_product(ProductCreate(
        name="A4 Paper", sku="OFF-A4", category_id=office.id,
        current_stock=0, min_stock=10, unit_price=115,
    ))
    return {
        "medicines": medicines,
        "office": office,
        "supplier": supplier,
        "paracetamol": paracetamol,
        "cetirizine": cetirizine,
        "paper": paper,
    }


@pytest.fixture
def notifier():
    return StubNotifier()


@pytest.fixture
def budget_service(store, notifier):
    """Budget workflow over the same database as `store`, with two account codes."""
    accounts = AccountCodeRepository(store.datastore)
    accounts.create({"code": "5101", "name": "Medical supplies"})
    accounts.create({"code": "5102", "name": "Office supplies"})
    return BudgetService(store.datastore, notifier, settings)
