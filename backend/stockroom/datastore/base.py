"""
Contract with the external data store.

Every table exposes the same four operations. None of them raise on a
store-side failure: they return a StoreResponse whose `error` is set, so
callers always see a distinguishable success/failure plus the error payload.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]

TABLES = (
    "categories",
    "suppliers",
    "products",
    "movements",
    "account_codes",
    "budget_requests",
    "approvals",
)


@dataclass(frozen=True)
class StoreError:
    message: str
    code: str = ""  # e.g. "unique_violation", "foreign_key_violation", "http_503"
    details: str = ""


@dataclass
class StoreResponse:
    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> "StoreResponse":
        return cls(data=data)

    @classmethod
    def failure(cls, message: str, code: str = "", details: str = "") -> "StoreResponse":
        return cls(error=StoreError(message=message, code=code, details=details))


class TableGateway(ABC):
    """Row-level access to one table. Rows are plain dicts."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def select(
        self,
        filters: Optional[Row] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> StoreResponse:
        """Rows matching every equality in `filters`. data: list of rows."""

    @abstractmethod
    def insert(self, row: Row) -> StoreResponse:
        """data: the stored row including generated fields (id, timestamps, ...)."""

    @abstractmethod
    def update(self, row_id: Any, partial: Row, match: Optional[Row] = None) -> StoreResponse:
        """
        data: the updated row, or None when no row has `row_id` and also
        satisfies every equality in `match` (conditional update).
        """

    @abstractmethod
    def delete(self, row_id: Any) -> StoreResponse:
        """data: None on success."""


class DataStore(ABC):
    """Session-scoped handle on the external store."""

    @abstractmethod
    def table(self, name: str) -> TableGateway:
        ...

    def open(self) -> None:
        """Acquire connections/resources. Default: nothing to do."""

    def close(self) -> None:
        """Release connections/resources. Default: nothing to do."""

    def _check_table(self, name: str) -> None:
        if name not in TABLES:
            raise KeyError(f"Unknown table: {name}")
