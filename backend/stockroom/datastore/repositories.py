"""
Typed access to the external store, one repository per entity.

Rows coming back from the store are validated against the entity schema
before anything else sees them; a failed response or a malformed row both
surface as DataStoreError.
"""
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from stockroom.core.exceptions import DataStoreError
from stockroom.datastore.base import DataStore, StoreResponse
from stockroom.schemas import AccountCode, Approval, BudgetRequest, Category, Product, StockMovement, Supplier

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Payload = Union[BaseModel, Dict[str, Any]]


class Repository(Generic[ModelT]):
    table_name: str = ""
    label: str = ""
    model: Type[BaseModel] = BaseModel
    primary_key: str = "id"

    def __init__(self, store: DataStore):
        self._table = store.table(self.table_name)

    def _unwrap(self, response: StoreResponse, operation: str) -> Any:
        if not response.ok:
            err = response.error
            raise DataStoreError(
                f"Could not {operation} {self.label}",
                operation=operation,
                table=self.table_name,
                cause=f"[{err.code}] {err.message} {err.details}".strip(),
            )
        return response.data

    def _validate(self, row: Dict[str, Any]) -> ModelT:
        try:
            return self.model.model_validate(row)
        except ValidationError as e:
            logger.error(f"Malformed {self.table_name} row from data store: {e}")
            raise DataStoreError(
                f"Received invalid {self.label} data",
                operation="validate",
                table=self.table_name,
                cause=str(e),
            )

    @staticmethod
    def _dump(payload: Payload, partial: bool = False) -> Dict[str, Any]:
        if isinstance(payload, BaseModel):
            return payload.model_dump(mode="json", exclude_unset=partial)
        return dict(payload)

    def list(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[ModelT]:
        rows = self._unwrap(self._table.select(filters, order_by, descending, limit), "load")
        return [self._validate(row) for row in rows or []]

    def get(self, row_id: Any) -> Optional[ModelT]:
        rows = self._unwrap(self._table.select({self.primary_key: row_id}, limit=1), "load")
        return self._validate(rows[0]) if rows else None

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        rows = self._unwrap(self._table.select(filters), "count")
        return len(rows or [])

    def create(self, payload: Payload) -> ModelT:
        row = self._unwrap(self._table.insert(self._dump(payload)), "save")
        if row is None:
            raise DataStoreError(f"Could not save {self.label}", operation="save", table=self.table_name,
                                 cause="insert returned no row")
        return self._validate(row)

    def update(self, row_id: Any, changes: Payload, match: Optional[Dict[str, Any]] = None) -> Optional[ModelT]:
        """None when no row matched `row_id` (and `match`)."""
        row = self._unwrap(self._table.update(row_id, self._dump(changes, partial=True), match), "update")
        return self._validate(row) if row is not None else None

    def delete(self, row_id: Any) -> None:
        self._unwrap(self._table.delete(row_id), "delete")


class ProductRepository(Repository[Product]):
    table_name, label, model = "products", "product", Product


class CategoryRepository(Repository[Category]):
    table_name, label, model = "categories", "category", Category


class SupplierRepository(Repository[Supplier]):
    table_name, label, model = "suppliers", "supplier", Supplier


class MovementRepository(Repository[StockMovement]):
    table_name, label, model = "movements", "stock movement", StockMovement


class AccountCodeRepository(Repository[AccountCode]):
    table_name, label, model = "account_codes", "account code", AccountCode
    primary_key = "code"


class BudgetRequestRepository(Repository[BudgetRequest]):
    table_name, label, model = "budget_requests", "budget request", BudgetRequest


class ApprovalRepository(Repository[Approval]):
    table_name, label, model = "approvals", "approval", Approval
