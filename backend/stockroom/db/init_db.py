"""Create all tables. Run on app startup when the SQL backend is selected."""
from sqlalchemy.engine import Engine

from stockroom.db.base import Base
from stockroom.models import category, supplier, product, movement, budget  # noqa: F401 - register models


def init_db(db_engine: Engine) -> None:
    Base.metadata.create_all(bind=db_engine)
