"""Export (JSON snapshot, CSV per entity), CSV templates and bulk import."""
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from fastapi.concurrency import run_in_threadpool

from stockroom.api.deps import get_stock_store
from stockroom.core.exceptions import BusinessError
from stockroom.services.data_transfer import (
    SNAPSHOT_KEYS,
    TEMPLATES,
    export_csv,
    export_filename,
    export_snapshot_json,
    parse_csv,
    parse_json,
)
from stockroom.store.stock_store import StockStore

logger = logging.getLogger(__name__)

router = APIRouter()

IMPORTABLE = ("products", "categories", "suppliers")


def _download(content: str, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=f"{media_type}; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/export.json")
def export_json(store: StockStore = Depends(get_stock_store)):
    return _download(
        export_snapshot_json(store.snapshot()),
        export_filename("stock-data", "json", date.today()),
        "application/json",
    )


@router.get("/export/{entity}.csv")
def export_entity_csv(entity: str, store: StockStore = Depends(get_stock_store)):
    if entity not in SNAPSHOT_KEYS:
        raise BusinessError.not_found("Export")
    return _download(
        export_csv(store.snapshot()[entity]),
        export_filename(entity, "csv", date.today()),
        "text/csv",
    )


@router.get("/templates/{entity}.csv")
def download_template(entity: str):
    if entity not in TEMPLATES:
        raise BusinessError.not_found("Template")
    return _download(TEMPLATES[entity](), f"{entity}-template.csv", "text/csv")


@router.post("/import/{entity}", response_model=dict)
async def import_entity(
    entity: str,
    request: Request,
    format: str = Query("csv", pattern="^(csv|json)$"),
    store: StockStore = Depends(get_stock_store),
):
    """
    Bulk-create rows from a CSV file (template layout) or JSON. JSON may be
    a list of rows or a full export document, from which `entity` is taken.
    """
    if entity not in IMPORTABLE:
        raise BusinessError.not_found("Import")

    try:
        content = (await request.body()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise BusinessError.bad_request("Import file must be UTF-8 text")

    if format == "json":
        try:
            parsed = parse_json(content)
        except ValueError as e:
            raise BusinessError.bad_request(f"Invalid JSON: {e}")
        rows = parsed.get(entity, []) if isinstance(parsed, dict) else parsed
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise BusinessError.bad_request(f"Expected a list of {entity} records")
    else:
        rows = parse_csv(content)

    report = await run_in_threadpool(store.import_rows, entity, rows)
    return {
        "entity": entity,
        "created": report.created,
        "failed": report.failed,
        "errors": [{"row": n, "error": msg} for n, msg in report.errors],
    }
