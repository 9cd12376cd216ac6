from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from stockroom import main
from stockroom.datastore.repositories import AccountCodeRepository
from stockroom.datastore.sql import SqlDataStore
from stockroom.db.session import create_db_engine


@pytest.fixture
def client(monkeypatch, notifier):
    monkeypatch.setattr(main, "create_datastore", lambda settings: SqlDataStore(create_db_engine("sqlite://")))
    monkeypatch.setattr(main, "NotificationDispatcher", SimpleNamespace(from_settings=lambda settings: notifier))
    with TestClient(main.app) as test_client:
        yield test_client
    assert notifier.shut_down


@pytest.fixture
def catalog(client):
    category = client.post("/categories", json={"name": "Medicines", "is_medicine": True}).json()
    supplier = client.post("/suppliers", json={"name": "Siam Pharma"}).json()
    product = client.post("/products", json={
        "name": "Paracetamol 500mg", "sku": "MED-PARA", "category_id": category["id"],
        "supplier_id": supplier["id"], "current_stock": 10, "min_stock": 5, "unit_price": 2.5,
        "barcode": "8850000000011",
    }).json()
    return {"category": category, "supplier": supplier, "product": product}


@pytest.fixture
def account_code(client):
    AccountCodeRepository(main.app.state.stock_store.datastore).create({"code": "5101", "name": "Medical supplies"})
    return "5101"


def test_health_and_security_headers(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_product_lifecycle(client, catalog):
    product = catalog["product"]
    assert product["category_name"] == "Medicines"

    resp = client.post("/movements", json={
        "product_id": product["id"], "type": "out", "quantity": 8, "reason": "Dispensed",
    })
    assert resp.status_code == 201

    detail = client.get(f"/products/{product['id']}").json()
    assert detail["current_stock"] == 2
    assert detail["stock_level"] == "low"

    stats = client.get("/stats").json()
    assert stats["total_products"] == 1
    assert stats["low_stock_items"] == 1
    assert stats["recent_movements"] == 1
    assert stats["total_value"] == pytest.approx(5.0)

    resp = client.patch(f"/products/{product['id']}", json={"min_stock": 1})
    assert resp.json()["min_stock"] == 1

    assert client.delete(f"/products/{product['id']}").status_code == 200
    assert client.get("/products").json() == []


def test_product_filters(client, catalog):
    assert len(client.get("/products", params={"search": "PARA"}).json()) == 1
    assert client.get("/products", params={"stock_level": "out"}).json() == []

    client.put("/products/filter", json={"stock_level": "medium"})
    assert [p["sku"] for p in client.get("/products").json()] == ["MED-PARA"]


def test_barcode_lookup(client, catalog):
    assert client.get("/products/barcode/8850000000011").json()["sku"] == "MED-PARA"
    assert client.get("/products/barcode/MED-PARA").status_code == 200
    assert client.get("/products/barcode/unknown").status_code == 404


def test_invalid_product_payload(client, catalog):
    resp = client.post("/products", json={
        "name": "Bad", "sku": "BAD", "category_id": catalog["category"]["id"], "unit_price": -1,
    })
    assert resp.status_code == 422


def test_duplicate_sku_maps_to_bad_gateway_without_internals(client, catalog):
    resp = client.post("/products", json={
        "name": "Again", "sku": "MED-PARA", "category_id": catalog["category"]["id"],
    })
    assert resp.status_code == 502
    assert resp.json() == {"detail": "Could not save product"}


def test_clearing_product_category_is_a_validation_error(client, catalog):
    product_id = catalog["product"]["id"]
    resp = client.patch(f"/products/{product_id}", json={"category_id": None})
    assert resp.status_code == 422
    assert resp.json()["fields"] == ["category_id"]
    assert client.get(f"/products/{product_id}").json()["category_id"] == catalog["category"]["id"]


def test_category_delete_guard(client, catalog):
    category_id = catalog["category"]["id"]

    resp = client.delete(f"/categories/{category_id}")

    assert resp.status_code == 409
    assert resp.json()["blocking_count"] == 1
    listing = client.get("/categories").json()
    assert listing[0]["product_count"] == 1


def test_budget_request_and_decision_links(client, notifier, account_code):
    resp = client.post("/budget-requests", json={
        "requester": "Nok", "account_code": account_code, "amount": 1500,
        "material_list": [{"item": "Gauze", "quantity": "10"}],
    })
    assert resp.status_code == 201
    request = resp.json()
    assert request["status"] == "PENDING"

    _, params = notifier.calls[0]
    approve_path = params["approve_url"].replace("https://stock.example.com", "")

    decided = client.get(approve_path)
    assert decided.status_code == 200
    assert "Request approved" in decided.text

    again = client.get(approve_path.replace("APPROVE", "REJECT"))
    assert again.status_code == 409
    assert "already APPROVED" in again.text

    detail = client.get(f"/budget-requests/{request['id']}").json()
    assert detail["status"] == "APPROVED"
    assert detail["approval"]["approver_name"] == "Somchai"

    assert client.delete(f"/budget-requests/{request['id']}").status_code == 409

    printed = client.get(f"/budget-requests/{request['id']}/print")
    assert printed.headers["content-type"].startswith("text/html")
    assert request["request_no"] in printed.text

    pdf = client.get(f"/budget-requests/{request['id']}/pdf")
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_budget_request_missing_fields(client, notifier, account_code):
    resp = client.post("/budget-requests", json={"requester": "", "account_code": account_code})
    assert resp.status_code == 422
    assert resp.json()["fields"] == ["requester", "amount"]
    assert notifier.calls == []


def test_bad_decision_link(client):
    resp = client.get("/approval", params={"request_id": "x", "decision": "MAYBE"})
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("text/html")


def test_account_codes(client, account_code):
    assert client.get("/account-codes").json() == [{"code": "5101", "name": "Medical supplies"}]


def test_export_and_templates(client, catalog):
    resp = client.get("/data/export.json")
    assert resp.status_code == 200
    assert "stock-data-" in resp.headers["content-disposition"]
    assert resp.json()["products"][0]["sku"] == "MED-PARA"

    csv_resp = client.get("/data/export/products.csv")
    assert csv_resp.text.splitlines()[0].startswith("id,name,sku")

    template = client.get("/data/templates/categories.csv")
    assert template.text.splitlines()[0] == "name,description,is_medicine"

    assert client.get("/data/export/users.csv").status_code == 404


def test_csv_import(client, catalog):
    body = "name,email,phone,address\nOffice Partner,sales@example.com,,\n,,,\nNo Email,,,\n"

    resp = client.post("/data/import/suppliers", content=body, headers={"Content-Type": "text/csv"})

    assert resp.status_code == 200
    assert resp.json()["created"] == 2
    assert {s["name"] for s in client.get("/suppliers").json()} == {"Siam Pharma", "Office Partner", "No Email"}


def test_json_import_from_export_document(client, catalog):
    body = '{"categories": [{"name": "Cleaning"}, {"name": ""}]}'

    resp = client.post("/data/import/categories", params={"format": "json"}, content=body)

    report = resp.json()
    assert report["created"] == 1
    assert report["errors"][0]["row"] == 2


def test_refresh(client, catalog):
    resp = client.post("/refresh")
    assert resp.json()["products"] == 1
