from stockroom.models.category import Category
from stockroom.models.supplier import Supplier
from stockroom.models.product import Product
from stockroom.models.movement import Movement
from stockroom.models.budget import AccountCode, BudgetRequest, Approval

__all__ = ["Category", "Supplier", "Product", "Movement", "AccountCode", "BudgetRequest", "Approval"]
