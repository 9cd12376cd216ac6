"""
SQLAlchemy-backed data store.

Used for self-hosted deployments and for tests. Besides plain CRUD it
reproduces what the hosted platform computes server-side, so rows returned
from insert/update look the same whichever backend is configured:

- generated identities and created_at/updated_at timestamps
- joined display names (category/supplier on products, product on movements)
- stock delta applied to the product when a movement is inserted, clamped at zero
- sequential budget request numbers (BR-YYYYMM-NNNN)
"""
import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Type

from sqlalchemy import Date, DateTime, Numeric, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.datastore.base import DataStore, Row, StoreResponse, TableGateway
from stockroom.db.init_db import init_db
from stockroom.db.session import create_session_factory
from stockroom.models import AccountCode, Approval, BudgetRequest, Category, Movement, Product, Supplier
from stockroom.models._columns import utcnow

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type] = {
    "categories": Category,
    "suppliers": Supplier,
    "products": Product,
    "movements": Movement,
    "account_codes": AccountCode,
    "budget_requests": BudgetRequest,
    "approvals": Approval,
}


def _integrity_code(error: IntegrityError) -> str:
    message = str(error.orig).lower()
    if "unique" in message or "duplicate" in message:
        return "unique_violation"
    if "foreign key" in message:
        return "foreign_key_violation"
    if "check" in message:
        return "check_violation"
    if "not null" in message:
        return "not_null_violation"
    return "integrity_error"


class SqlTableGateway(TableGateway):
    def __init__(self, name: str, model: Type, session_factory: Callable[[], Session], write_lock: threading.Lock):
        super().__init__(name)
        self.model = model
        self._session_factory = session_factory
        self._write_lock = write_lock
        mapper = inspect(model)
        self._columns = {attr.key: attr.columns[0] for attr in mapper.column_attrs}
        self._pk = mapper.primary_key[0].key

    # -- row conversion -------------------------------------------------

    def _to_row(self, obj: Any) -> Row:
        return {key: getattr(obj, key) for key in self._columns}

    def _coerce(self, key: str, value: Any) -> Any:
        """JSON-mode payloads carry dates and decimals as strings/floats."""
        if value is None:
            return None
        column_type = self._columns[key].type
        if isinstance(column_type, DateTime) and isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(column_type, Date) and not isinstance(column_type, DateTime) and isinstance(value, str):
            return date.fromisoformat(value)
        if isinstance(column_type, Numeric) and not isinstance(value, Decimal):
            return Decimal(str(value))
        return value

    def _clean(self, row: Row) -> Row:
        # Joined/read-only keys are not columns and are dropped
        return {key: self._coerce(key, value) for key, value in row.items() if key in self._columns}

    # -- hooks ----------------------------------------------------------

    def _before_insert(self, db: Session, values: Row) -> Optional[StoreResponse]:
        return None

    def _after_insert(self, db: Session, obj: Any) -> None:
        pass

    # -- operations -----------------------------------------------------

    def select(self, filters=None, order_by=None, descending=False, limit=None) -> StoreResponse:
        db = self._session_factory()
        try:
            q = db.query(self.model)
            for key, value in (filters or {}).items():
                if key not in self._columns:
                    return StoreResponse.failure(f"Unknown column {key!r} on {self.name}", code="undefined_column")
                q = q.filter(getattr(self.model, key) == self._coerce(key, value))
            if order_by:
                column = getattr(self.model, order_by)
                q = q.order_by(column.desc() if descending else column.asc())
            if limit:
                q = q.limit(limit)
            return StoreResponse.success([self._to_row(obj) for obj in q.all()])
        except SQLAlchemyError as e:
            logger.error(f"select on {self.name} failed: {e}")
            return StoreResponse.failure(f"Could not read {self.name}", code="query_error", details=str(e))
        finally:
            db.close()

    def insert(self, row: Row) -> StoreResponse:
        with self._write_lock:
            db = self._session_factory()
            try:
                values = self._clean(row)
                refused = self._before_insert(db, values)
                if refused is not None:
                    db.rollback()
                    return refused
                obj = self.model(**values)
                db.add(obj)
                db.flush()
                self._after_insert(db, obj)
                db.commit()
                db.refresh(obj)
                return StoreResponse.success(self._to_row(obj))
            except IntegrityError as e:
                db.rollback()
                return StoreResponse.failure(
                    f"Insert into {self.name} violates a constraint", code=_integrity_code(e), details=str(e.orig)
                )
            except (SQLAlchemyError, ValueError) as e:
                db.rollback()
                logger.error(f"insert into {self.name} failed: {e}")
                return StoreResponse.failure(f"Could not write {self.name}", code="write_error", details=str(e))
            finally:
                db.close()

    def update(self, row_id, partial: Row, match: Optional[Row] = None) -> StoreResponse:
        with self._write_lock:
            db = self._session_factory()
            try:
                q = db.query(self.model).filter(getattr(self.model, self._pk) == row_id)
                for key, value in (match or {}).items():
                    q = q.filter(getattr(self.model, key) == value)
                obj = q.first()
                if obj is None:
                    return StoreResponse.success(None)
                for key, value in self._clean(partial).items():
                    if key != self._pk:
                        setattr(obj, key, value)
                db.commit()
                db.refresh(obj)
                return StoreResponse.success(self._to_row(obj))
            except IntegrityError as e:
                db.rollback()
                return StoreResponse.failure(
                    f"Update of {self.name} violates a constraint", code=_integrity_code(e), details=str(e.orig)
                )
            except (SQLAlchemyError, ValueError) as e:
                db.rollback()
                logger.error(f"update of {self.name} failed: {e}")
                return StoreResponse.failure(f"Could not write {self.name}", code="write_error", details=str(e))
            finally:
                db.close()

    def delete(self, row_id) -> StoreResponse:
        with self._write_lock:
            db = self._session_factory()
            try:
                # Bulk delete: let the database enforce RESTRICT / CASCADE / SET NULL
                db.query(self.model).filter(getattr(self.model, self._pk) == row_id).delete(synchronize_session=False)
                db.commit()
                return StoreResponse.success(None)
            except IntegrityError as e:
                db.rollback()
                return StoreResponse.failure(
                    f"Row in {self.name} is still referenced", code=_integrity_code(e), details=str(e.orig)
                )
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"delete from {self.name} failed: {e}")
                return StoreResponse.failure(f"Could not delete from {self.name}", code="write_error", details=str(e))
            finally:
                db.close()


class ProductGateway(SqlTableGateway):
    def _to_row(self, obj: Product) -> Row:
        row = super()._to_row(obj)
        row["category_name"] = obj.category.name if obj.category else None
        row["supplier_name"] = obj.supplier.name if obj.supplier else None
        return row


class MovementGateway(SqlTableGateway):
    def _to_row(self, obj: Movement) -> Row:
        row = super()._to_row(obj)
        row["product_name"] = obj.product.name if obj.product else None
        row["product_sku"] = obj.product.sku if obj.product else None
        return row

    def _before_insert(self, db: Session, values: Row) -> Optional[StoreResponse]:
        if db.get(Product, values.get("product_id")) is None:
            return StoreResponse.failure(
                "Movement references an unknown product", code="foreign_key_violation"
            )
        return None

    def _after_insert(self, db: Session, obj: Movement) -> None:
        product = db.get(Product, obj.product_id)
        if obj.type == "in":
            product.current_stock = product.current_stock + obj.quantity
        else:
            product.current_stock = max(0, product.current_stock - obj.quantity)
        product.updated_at = utcnow()


class BudgetRequestGateway(SqlTableGateway):
    def _before_insert(self, db: Session, values: Row) -> Optional[StoreResponse]:
        if not values.get("request_no"):
            prefix = f"BR-{utcnow():%Y%m}-"
            # Next after the highest suffix issued this month; deletes leave gaps
            issued = db.query(BudgetRequest.request_no).filter(BudgetRequest.request_no.like(f"{prefix}%"))
            last = max((int(no[len(prefix):]) for (no,) in issued if no[len(prefix):].isdigit()), default=0)
            values["request_no"] = f"{prefix}{last + 1:04d}"
        if not values.get("account_name") and values.get("account_code"):
            account = db.get(AccountCode, values["account_code"])
            if account is not None:
                values["account_name"] = account.name
        values.setdefault("status", "PENDING")
        return None


_GATEWAYS = {
    "products": ProductGateway,
    "movements": MovementGateway,
    "budget_requests": BudgetRequestGateway,
}


class SqlDataStore(DataStore):
    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)
        self._write_lock = threading.Lock()
        self._tables: Dict[str, SqlTableGateway] = {}

    def open(self) -> None:
        init_db(self.engine)
        logger.info(f"SQL data store ready ({self.engine.url.drivername})")

    def close(self) -> None:
        self.engine.dispose()

    def table(self, name: str) -> TableGateway:
        self._check_table(name)
        if name not in self._tables:
            gateway_cls = _GATEWAYS.get(name, SqlTableGateway)
            self._tables[name] = gateway_cls(name, MODELS[name], self._session_factory, self._write_lock)
        return self._tables[name]
