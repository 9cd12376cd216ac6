"""FastAPI dependencies: the stock store and budget service built in the app lifespan."""
from fastapi import Request

from stockroom.services.budget_service import BudgetService
from stockroom.store.stock_store import StockStore


def get_stock_store(request: Request) -> StockStore:
    return request.app.state.stock_store


def get_budget_service(request: Request) -> BudgetService:
    return request.app.state.budget_service
