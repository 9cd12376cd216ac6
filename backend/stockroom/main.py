"""
Stockroom API: inventory snapshot, stock movements and budget approvals.

ARCHITECTURE:
- Data store: hosted Supabase (PostgREST) or a SQL database via SQLAlchemy
- StockStore: per-process snapshot cache, changed only through the reducer
- BudgetService: PENDING -> APPROVED/REJECTED via emailed decision links
- NotificationDispatcher: EmailJS sends on a worker pool, never blocking requests

Authentication and row-level authorization are handled in front of this service.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockroom.api.routes import approval, budget, categories, data, movements, products, refresh, stats, suppliers
from stockroom.core.config import settings
from stockroom.core.exceptions import BusinessError, DataStoreError, StockroomError
from stockroom.datastore import create_datastore
from stockroom.services.budget_service import BudgetService
from stockroom.services.notification_service import NotificationDispatcher
from stockroom.store.stock_store import StockStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Validate settings
    2. Open the data store and load the snapshot
    3. Start the notification worker pool

    Shutdown:
    1. Drain pending notifications
    2. Close the store
    """
    settings.check()
    store = StockStore(create_datastore(settings), movement_limit=settings.MOVEMENT_FETCH_LIMIT)
    store.open(load=False)
    try:
        store.refresh_data()
    except DataStoreError as e:
        # Serve with an empty snapshot; POST /refresh retries
        logger.error(f"Initial snapshot load failed: {e.detail}")

    notifier = NotificationDispatcher.from_settings(settings)
    app.state.stock_store = store
    app.state.budget_service = BudgetService(store.datastore, notifier, settings)
    logger.info(f"Stockroom started ({settings.ENVIRONMENT}, backend={settings.DATA_BACKEND})")

    yield

    try:
        notifier.shutdown(wait=True)
    finally:
        store.close()
    logger.info("Stockroom stopped")


app = FastAPI(
    title="Stockroom API",
    description="Stock levels, movements and budget request approvals.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


# SECURITY: Add security headers middleware
@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; img-src 'self' data:;"
    )
    return response


@app.exception_handler(StockroomError)
async def stockroom_error_handler(request: Request, exc: StockroomError):
    http_exc = BusinessError.from_domain(exc)
    return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    http_exc = BusinessError.server_error(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(categories.router, prefix="/categories", tags=["categories"])
app.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
app.include_router(movements.router, prefix="/movements", tags=["movements"])
app.include_router(stats.router, prefix="/stats", tags=["stats"])
app.include_router(budget.router, tags=["budget"])
app.include_router(approval.router, prefix="/approval", tags=["approval"])
app.include_router(data.router, prefix="/data", tags=["data"])
app.include_router(refresh.router, prefix="/refresh", tags=["refresh"])


@app.get("/health")
def health(request: Request):
    store = getattr(request.app.state, "stock_store", None)
    return {
        "status": "ok",
        "backend": settings.DATA_BACKEND,
        "products": len(store.state.products) if store else 0,
        "email": "enabled" if settings.email_enabled else "disabled",
    }
