"""Database engine and session factory. SQLite compatible with connection pooling."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from stockroom.core.config import settings


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory: one shared connection, otherwise every session sees an empty database
            db_engine = create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        else:
            # SQLite: Use NullPool for thread-safety
            db_engine = create_engine(database_url, connect_args=connect_args, poolclass=NullPool)

        @event.listens_for(db_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return db_engine

    # PostgreSQL/MySQL: Use QueuePool with sensible defaults
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


def create_session_factory(db_engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


engine = create_db_engine(settings.DATABASE_URL)
