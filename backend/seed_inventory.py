"""Seed categories, suppliers, products and account codes through the stock store."""
import logging

from stockroom.core.config import settings
from stockroom.core.exceptions import DataStoreError
from stockroom.datastore import create_datastore
from stockroom.datastore.repositories import AccountCodeRepository
from stockroom.schemas import CategoryCreate, ProductCreate, SupplierCreate
from stockroom.store.stock_store import StockStore

logger = logging.getLogger("seed")

CATEGORIES = [
    {"name": "Medicines", "description": "Over-the-counter and prescription drugs", "is_medicine": True},
    {"name": "Medical Supplies", "description": "Gloves, gauze, syringes", "is_medicine": False},
    {"name": "Office Supplies", "description": "Paper, toner, stationery", "is_medicine": False},
]

SUPPLIERS = [
    {"name": "Siam Pharma Co.", "email": "orders@siampharma.example", "phone": "+66 2 123 4567",
     "address": "99 Rama IV Road, Bangkok"},
    {"name": "Office Depot Partner", "email": "sales@officepartner.example", "phone": "+66 2 765 4321",
     "address": "12 Sukhumvit Soi 21, Bangkok"},
]

# (category, supplier index, fields)
PRODUCTS = [
    ("Medicines", 0, {"name": "Paracetamol 500mg", "sku": "MED-PARA-500", "unit": "tablet",
                      "current_stock": 200, "min_stock": 50, "max_stock": 500, "unit_price": 2.5,
                      "barcode": "8850000000011", "location": "A1-01"}),
    ("Medicines", 0, {"name": "Cetirizine 10mg", "sku": "MED-CETI-10", "unit": "tablet",
                      "current_stock": 40, "min_stock": 50, "max_stock": 300, "unit_price": 1.5,
                      "barcode": "8850000000028", "location": "A1-02"}),
    ("Medicines", 0, {"name": "ORS Sachet", "sku": "MED-ORS", "unit": "sachet",
                      "current_stock": 0, "min_stock": 20, "unit_price": 5.0, "location": "A1-03"}),
    ("Medical Supplies", 0, {"name": "Nitrile Gloves (M)", "sku": "SUP-GLV-M", "unit": "box",
                             "current_stock": 35, "min_stock": 10, "max_stock": 60, "unit_price": 180.0,
                             "location": "B2-01"}),
    ("Office Supplies", 1, {"name": "A4 Paper 80gsm", "sku": "OFF-A4-80", "unit": "ream",
                            "current_stock": 12, "min_stock": 10, "max_stock": 50, "unit_price": 115.0,
                            "location": "C1-01"}),
]

ACCOUNT_CODES = [
    {"code": "5101", "name": "Medical supplies"},
    {"code": "5102", "name": "Office supplies"},
    {"code": "5201", "name": "Maintenance and repairs"},
    {"code": "5301", "name": "Training and seminars"},
]


def seed_inventory():
    store = StockStore(create_datastore(settings))
    store.open()
    try:
        if store.state.categories:
            logger.info(f"Store already has {len(store.state.categories)} categories; skipping seed")
            return

        categories = {c["name"]: store.add_category(CategoryCreate(**c)) for c in CATEGORIES}
        suppliers = [store.add_supplier(SupplierCreate(**s)) for s in SUPPLIERS]
        for category_name, supplier_index, fields in PRODUCTS:
            store.add_product(ProductCreate(
                category_id=categories[category_name].id,
                supplier_id=suppliers[supplier_index].id,
                **fields,
            ))

        accounts = AccountCodeRepository(store.datastore)
        for account in ACCOUNT_CODES:
            if accounts.get(account["code"]) is None:
                accounts.create(account)

        stats = store.state.stats
        logger.info(
            f"Seeded {len(categories)} categories, {len(suppliers)} suppliers, {stats.total_products} products "
            f"(value {stats.total_value:,.2f}, {stats.low_stock_items} low, {stats.out_of_stock_items} out)"
        )
    except DataStoreError as e:
        logger.error(f"Seeding stopped: {e.detail} ({e.cause})")
        raise
    finally:
        store.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    seed_inventory()
