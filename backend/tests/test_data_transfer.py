import json
from datetime import date

from stockroom.services.data_transfer import (
    category_template,
    export_csv,
    export_filename,
    export_snapshot_json,
    parse_csv,
    parse_json,
    product_template,
    supplier_template,
)


def test_export_csv_uses_first_record_keys():
    rows = [
        {"name": "Paracetamol", "current_stock": 0, "supplier_id": None},
        {"name": "Gauze", "current_stock": 12, "supplier_id": "s1", "extra": "ignored"},
    ]

    lines = export_csv(rows).split("\n")

    assert lines[0] == "name,current_stock,supplier_id"
    assert lines[1] == '"Paracetamol",0,""'
    assert lines[2] == '"Gauze",12,"s1"'


def test_export_empty_list():
    assert export_csv([]) == ""


def test_csv_round_trip_for_plain_values():
    rows = [{"name": "Cleaning", "description": "Mops and buckets", "is_medicine": False}]
    assert parse_csv(export_csv(rows)) == [{"name": "Cleaning", "description": "Mops and buckets", "is_medicine": "false"}]


def test_csv_is_lossy_for_commas():
    rows = [{"name": "Gloves, nitrile", "sku": "SUP-1"}]
    parsed = parse_csv(export_csv(rows))
    assert parsed[0] != {"name": "Gloves, nitrile", "sku": "SUP-1"}


def test_parse_csv_drops_blank_rows_and_pads_short_ones():
    text = "name,sku,unit\r\nGauze,SUP-2\r\n,,\r\n\r\n"
    assert parse_csv(text) == [{"name": "Gauze", "sku": "SUP-2", "unit": ""}]


def test_parse_csv_empty_input():
    assert parse_csv("") == []


def test_json_round_trip_is_lossless():
    snapshot = {
        "products": [{"id": "p1", "name": "Gloves, nitrile \"M\"", "unit_price": 180.0}],
        "categories": [{"id": "c1", "name": "Supplies\nand more"}],
        "suppliers": [],
        "movements": [],
    }
    assert parse_json(export_snapshot_json(snapshot)) == snapshot


def test_snapshot_always_has_all_sections():
    assert set(json.loads(export_snapshot_json({"products": []}))) == {
        "products", "categories", "suppliers", "movements",
    }


def test_templates_have_fixed_headers():
    assert product_template().split("\n")[0] == (
        "name,sku,description,category_id,supplier_id,unit_price,current_stock,"
        "min_stock,max_stock,unit,barcode,location"
    )
    assert category_template().split("\n")[0] == "name,description,is_medicine"
    assert supplier_template().split("\n")[0] == "name,email,phone,address"
    assert len(parse_csv(product_template())) == 1


def test_export_filename():
    today = date(2025, 8, 8)
    assert export_filename("stock-data", "json", today) == "stock-data-2025-08-08.json"
    assert export_filename("products", "csv", today) == "products-2025-08-08.csv"
