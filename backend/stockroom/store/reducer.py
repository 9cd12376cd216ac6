"""
Snapshot state and the reducer that is the only way to change it.

stock_reducer(state, action) is pure: it builds a new StockState and never touches
the network or the clock. Every action replaces or appends one slice of the
state, with one exception: ADD_MOVEMENT both prepends the movement to the
history and applies its stock delta to the matching product.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, Field

from stockroom.schemas import Category, MovementType, Product, StockFilter, StockMovement, StockStats, Supplier
from stockroom.services.stats_service import calculate_stats


class ActionType(str, Enum):
    SET_PRODUCTS = "SET_PRODUCTS"
    SET_CATEGORIES = "SET_CATEGORIES"
    SET_SUPPLIERS = "SET_SUPPLIERS"
    SET_MOVEMENTS = "SET_MOVEMENTS"
    ADD_PRODUCT = "ADD_PRODUCT"
    UPDATE_PRODUCT = "UPDATE_PRODUCT"
    DELETE_PRODUCT = "DELETE_PRODUCT"
    ADD_MOVEMENT = "ADD_MOVEMENT"
    ADD_CATEGORY = "ADD_CATEGORY"
    UPDATE_CATEGORY = "UPDATE_CATEGORY"
    DELETE_CATEGORY = "DELETE_CATEGORY"
    ADD_SUPPLIER = "ADD_SUPPLIER"
    UPDATE_SUPPLIER = "UPDATE_SUPPLIER"
    DELETE_SUPPLIER = "DELETE_SUPPLIER"
    SET_FILTER = "SET_FILTER"
    SET_LOADING = "SET_LOADING"
    CALCULATE_STATS = "CALCULATE_STATS"


# Actions after which the derived stats are stale
STATS_INPUTS = frozenset({
    ActionType.SET_PRODUCTS,
    ActionType.SET_MOVEMENTS,
    ActionType.ADD_PRODUCT,
    ActionType.UPDATE_PRODUCT,
    ActionType.DELETE_PRODUCT,
    ActionType.ADD_MOVEMENT,
})


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Any = None


class StockState(BaseModel):
    products: List[Product] = Field(default_factory=list)
    movements: List[StockMovement] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    suppliers: List[Supplier] = Field(default_factory=list)
    stats: StockStats = Field(default_factory=StockStats)
    filter: StockFilter = Field(default_factory=StockFilter)
    loading: bool = False


def apply_movement(product: Product, movement: StockMovement) -> Product:
    if movement.type == MovementType.IN:
        new_stock = product.current_stock + movement.quantity
    else:
        new_stock = max(0, product.current_stock - movement.quantity)
    return product.model_copy(update={"current_stock": new_stock})


def _replace(items: list, updated) -> list:
    return [updated if item.id == updated.id else item for item in items]


def _without(items: list, item_id: str) -> list:
    return [item for item in items if item.id != item_id]


def stock_reducer(state: StockState, action: Action) -> StockState:
    t, payload = action.type, action.payload

    if t == ActionType.SET_PRODUCTS:
        return state.model_copy(update={"products": list(payload)})
    if t == ActionType.SET_CATEGORIES:
        return state.model_copy(update={"categories": list(payload)})
    if t == ActionType.SET_SUPPLIERS:
        return state.model_copy(update={"suppliers": list(payload)})
    if t == ActionType.SET_MOVEMENTS:
        return state.model_copy(update={"movements": list(payload)})

    if t == ActionType.ADD_PRODUCT:
        return state.model_copy(update={"products": [*state.products, payload]})
    if t == ActionType.UPDATE_PRODUCT:
        return state.model_copy(update={"products": _replace(state.products, payload)})
    if t == ActionType.DELETE_PRODUCT:
        return state.model_copy(update={"products": _without(state.products, payload)})

    if t == ActionType.ADD_MOVEMENT:
        products = [
            apply_movement(p, payload) if p.id == payload.product_id else p
            for p in state.products
        ]
        return state.model_copy(update={"movements": [payload, *state.movements], "products": products})

    if t == ActionType.ADD_CATEGORY:
        return state.model_copy(update={"categories": [*state.categories, payload]})
    if t == ActionType.UPDATE_CATEGORY:
        return state.model_copy(update={"categories": _replace(state.categories, payload)})
    if t == ActionType.DELETE_CATEGORY:
        return state.model_copy(update={"categories": _without(state.categories, payload)})

    if t == ActionType.ADD_SUPPLIER:
        return state.model_copy(update={"suppliers": [*state.suppliers, payload]})
    if t == ActionType.UPDATE_SUPPLIER:
        return state.model_copy(update={"suppliers": _replace(state.suppliers, payload)})
    if t == ActionType.DELETE_SUPPLIER:
        return state.model_copy(update={"suppliers": _without(state.suppliers, payload)})

    if t == ActionType.SET_FILTER:
        return state.model_copy(update={"filter": payload or StockFilter()})
    if t == ActionType.SET_LOADING:
        return state.model_copy(update={"loading": bool(payload)})

    if t == ActionType.CALCULATE_STATS:
        # payload: the "now" the recent-movement window is measured against
        return state.model_copy(update={"stats": calculate_stats(state.products, state.movements, now=payload)})

    raise ValueError(f"Unknown action type: {t!r}")
