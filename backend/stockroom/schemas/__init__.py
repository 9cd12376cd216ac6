from stockroom.schemas.budget import (
    AccountCode,
    Approval,
    BudgetRequest,
    BudgetRequestCreate,
    BudgetRequestUpdate,
    BudgetStatus,
    Decision,
    MaterialItem,
)
from stockroom.schemas.category import Category, CategoryCreate, CategoryUpdate
from stockroom.schemas.movement import MovementType, StockMovement, StockMovementCreate
from stockroom.schemas.product import Product, ProductCreate, ProductUpdate, StockFilter, StockLevel
from stockroom.schemas.stats import StockStats
from stockroom.schemas.supplier import Supplier, SupplierCreate, SupplierUpdate

__all__ = [
    "AccountCode", "Approval", "BudgetRequest", "BudgetRequestCreate", "BudgetRequestUpdate",
    "BudgetStatus", "Decision", "MaterialItem",
    "Category", "CategoryCreate", "CategoryUpdate",
    "MovementType", "StockMovement", "StockMovementCreate",
    "Product", "ProductCreate", "ProductUpdate", "StockFilter", "StockLevel",
    "StockStats",
    "Supplier", "SupplierCreate", "SupplierUpdate",
]
