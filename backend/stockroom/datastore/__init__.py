"""Adapters for the external data store and a factory picking one from settings."""
from stockroom.datastore.base import DataStore, StoreError, StoreResponse, TableGateway


def create_datastore(settings) -> DataStore:
    if settings.DATA_BACKEND == "supabase":
        from stockroom.datastore.supabase import SupabaseDataStore

        return SupabaseDataStore(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, settings.SUPABASE_TIMEOUT_SECONDS)

    from stockroom.datastore.sql import SqlDataStore
    from stockroom.db.session import engine

    return SqlDataStore(engine)


__all__ = ["DataStore", "StoreError", "StoreResponse", "TableGateway", "create_datastore"]
