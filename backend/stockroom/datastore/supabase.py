"""
Hosted backend adapter: Supabase's PostgREST API over `requests`.

Server-side behaviour (generated ids, timestamps, the movement -> stock
trigger, request numbers) lives in the hosted database. Joined display names
are requested through PostgREST embedded resources and flattened here so rows
match what SqlDataStore returns.
"""
import logging
from typing import Any, Dict, Optional

import requests

from stockroom.datastore.base import DataStore, Row, StoreResponse, TableGateway

logger = logging.getLogger(__name__)

# Embedded resources per table: select clause and how to flatten it
_EMBEDS: Dict[str, tuple] = {
    "products": (
        "*,categories(name),suppliers(name)",
        {"categories": {"name": "category_name"}, "suppliers": {"name": "supplier_name"}},
    ),
    "movements": (
        "*,products(name,sku)",
        {"products": {"name": "product_name", "sku": "product_sku"}},
    ),
}

_PRIMARY_KEYS = {"account_codes": "code"}

# Keys the API computes; never sent back on insert/update
_READ_ONLY = {"category_name", "supplier_name", "product_name", "product_sku"}


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class SupabaseTableGateway(TableGateway):
    def __init__(self, name: str, http: requests.Session, base_url: str, timeout: float):
        super().__init__(name)
        self._http = http
        self._url = f"{base_url.rstrip('/')}/rest/v1/{name}"
        self._timeout = timeout
        self._select, self._flatten = _EMBEDS.get(name, ("*", {}))
        self._pk = _PRIMARY_KEYS.get(name, "id")

    def _flatten_row(self, row: Row) -> Row:
        for embed, mapping in self._flatten.items():
            nested = row.pop(embed, None) or {}
            for source, target in mapping.items():
                row[target] = nested.get(source)
        return row

    def _payload(self, row: Row) -> Row:
        return {k: v for k, v in row.items() if k not in _READ_ONLY}

    def _request(self, method: str, params: Dict[str, str], json_body: Optional[Row] = None) -> StoreResponse:
        headers = {"Prefer": "return=representation"} if method in ("POST", "PATCH") else {}
        try:
            resp = self._http.request(
                method, self._url, params=params, json=json_body, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {self.name} failed: {e}")
            return StoreResponse.failure(f"Data store unreachable ({self.name})", code="network_error", details=str(e))

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {"message": resp.text}
            if not isinstance(body, dict):
                body = {"message": str(body)}
            logger.warning(f"{method} {self.name} -> {resp.status_code}: {body}")
            return StoreResponse.failure(
                body.get("message") or f"Data store error ({resp.status_code})",
                code=str(body.get("code") or f"http_{resp.status_code}"),
                details=str(body.get("details") or ""),
            )

        if resp.status_code == 204 or not resp.content:
            return StoreResponse.success(None)
        return StoreResponse.success(resp.json())

    def select(self, filters=None, order_by=None, descending=False, limit=None) -> StoreResponse:
        params = {"select": self._select}
        for key, value in (filters or {}).items():
            params[key] = _eq(value)
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit:
            params["limit"] = str(limit)
        result = self._request("GET", params)
        if result.ok:
            result.data = [self._flatten_row(row) for row in result.data or []]
        return result

    def insert(self, row: Row) -> StoreResponse:
        result = self._request("POST", {"select": self._select}, [self._payload(row)])
        if result.ok:
            rows = result.data or []
            result.data = self._flatten_row(rows[0]) if rows else None
        return result

    def update(self, row_id, partial: Row, match: Optional[Row] = None) -> StoreResponse:
        params = {"select": self._select, self._pk: _eq(row_id)}
        for key, value in (match or {}).items():
            params[key] = _eq(value)
        result = self._request("PATCH", params, self._payload(partial))
        if result.ok:
            rows = result.data or []
            result.data = self._flatten_row(rows[0]) if rows else None
        return result

    def delete(self, row_id) -> StoreResponse:
        result = self._request("DELETE", {self._pk: _eq(row_id)})
        if result.ok:
            result.data = None
        return result


class SupabaseDataStore(DataStore):
    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0, http: Optional[requests.Session] = None):
        self.base_url = base_url
        self._api_key = api_key
        self._timeout = timeout
        self._http = http
        self._tables: Dict[str, SupabaseTableGateway] = {}

    def open(self) -> None:
        if self._http is None:
            self._http = requests.Session()
        self._http.headers.update({
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        })
        logger.info(f"Supabase data store ready ({self.base_url})")

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None
        self._tables.clear()

    def table(self, name: str) -> TableGateway:
        self._check_table(name)
        if self._http is None:
            raise RuntimeError("SupabaseDataStore.open() must be called first")
        if name not in self._tables:
            self._tables[name] = SupabaseTableGateway(name, self._http, self.base_url, self._timeout)
        return self._tables[name]
