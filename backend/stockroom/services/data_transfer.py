"""
Snapshot export and bulk import helpers.

CSV here is deliberately simple: values are written through json.dumps and
read back by splitting on newlines and commas, then stripping double quotes.
A field containing a comma, a double quote or a newline does not survive a
CSV round trip; use the JSON export for anything that must be lossless.
"""
import json
from datetime import date
from typing import Any, Dict, List, Mapping, Sequence

SNAPSHOT_KEYS = ("products", "categories", "suppliers", "movements")

PRODUCT_TEMPLATE_ROW = {
    "name": "Product Name",
    "sku": "SKU001",
    "description": "Product Description",
    "category_id": "category-1",
    "supplier_id": "supplier-1",
    "unit_price": 100,
    "current_stock": 50,
    "min_stock": 10,
    "max_stock": 100,
    "unit": "pcs",
    "barcode": "8850000000001",
    "location": "A1-01",
}

CATEGORY_TEMPLATE_ROW = {
    "name": "Category Name",
    "description": "Category Description",
    "is_medicine": False,
}

SUPPLIER_TEMPLATE_ROW = {
    "name": "Supplier Name",
    "email": "supplier@example.com",
    "phone": "+66 123 456 789",
    "address": "123 Supplier Street, Bangkok, Thailand",
}


def export_filename(prefix: str, ext: str, today: date = None) -> str:
    """`stock-data-2025-08-08.json`, `products-2025-08-08.csv`"""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.{ext}"


def export_snapshot_json(snapshot: Mapping[str, Sequence[Mapping[str, Any]]]) -> str:
    data = {key: list(snapshot.get(key, [])) for key in SNAPSHOT_KEYS}
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def export_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Header from the first record's keys; an empty list exports nothing."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(
            json.dumps("" if row.get(h) is None else row.get(h), ensure_ascii=False, default=str)
            for h in headers
        ))
    return "\n".join(lines)


def parse_json(text: str) -> Any:
    """Raises ValueError (json.JSONDecodeError) on malformed input."""
    return json.loads(text)


def parse_csv(text: str) -> List[Dict[str, str]]:
    lines = text.replace("\r\n", "\n").split("\n")
    if not lines or not lines[0].strip():
        return []
    headers = [h.replace('"', "") for h in lines[0].split(",")]
    records = []
    for line in lines[1:]:
        values = [v.replace('"', "") for v in line.split(",")]
        record = {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}
        if any(v != "" for v in record.values()):
            records.append(record)
    return records


def product_template() -> str:
    return export_csv([PRODUCT_TEMPLATE_ROW])


def category_template() -> str:
    return export_csv([CATEGORY_TEMPLATE_ROW])


def supplier_template() -> str:
    return export_csv([SUPPLIER_TEMPLATE_ROW])


TEMPLATES = {
    "products": product_template,
    "categories": category_template,
    "suppliers": supplier_template,
}
