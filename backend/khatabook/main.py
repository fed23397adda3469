"""
Khatabook Backend: digital credit ledger for small merchants.

ARCHITECTURE:
- FastAPI: auth, customers, ledger mutations, reports, exports
- SQLAlchemy: SQLite by default, PostgreSQL via DATABASE_URL
- WebSockets: realtime customer/transaction views fed by the change hub

LEDGER MODEL:
- Every transaction write and the matching change to the customer's
  running totals commit together
- Totals move by SQL-side increments, so concurrent writers don't lose updates
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from khatabook.api.routes import auth, customers, transactions, dashboard, reports, realtime
from khatabook.api.routes import settings as settings_routes
from khatabook.core.config import settings
from khatabook.core.logging_config import configure_logging
from khatabook.core.rate_limiter import RateLimitMiddleware
from khatabook.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging, create tables.
    Shutdown: nothing to release; sessions are per request.
    """
    configure_logging()
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Khatabook API",
    description="Customer credit/debit ledger for small merchants.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

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

app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(settings_routes.router, prefix="/settings", tags=["settings"])
app.include_router(realtime.router, prefix="/ws", tags=["realtime"])


@app.get("/health")
def health():
    return {"status": "ok"}
