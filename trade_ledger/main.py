"""
Trade Ledger FastAPI application.

This is the entry point for the application. The database
is opened in the lifespan handler, all routers are
registered here, and ledger errors are mapped to HTTP
responses in one place.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from trade_ledger.config import get_settings
from trade_ledger.database import Database, atomic
from trade_ledger.exceptions import DuplicateCodeError, LedgerError, StorageFailureError
from trade_ledger.logging_config import configure_logging
from trade_ledger.seed import seed_chart_of_accounts
from trade_ledger.api.health import router as health_router
from trade_ledger.api.accounts import router as accounts_router
from trade_ledger.api.parties import router as parties_router
from trade_ledger.api.payments import router as payments_router
from trade_ledger.api.invoices import router as invoices_router
from trade_ledger.api.ledger import router as ledger_router

logger = logging.getLogger(__name__)

settings = get_settings()

# HTTP status per error kind
STATUS_BY_KIND = {
    "VALIDATION": 400,
    "NOT_FOUND": 404,
    "INVALID_ACCOUNT_STATE": 422,
    "CONSISTENCY_VIOLATION": 409,
    "STORAGE_FAILURE": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    database = Database(settings.DATABASE_URL)
    app.state.database = database
    logger.info("Starting %s %s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)

    if settings.CREATE_TABLES_ON_STARTUP:
        database.create_all()
    if settings.SEED_CHART_ON_STARTUP:
        session = database.session()
        try:
            with atomic(session):
                seed_chart_of_accounts(session)
        finally:
            session.close()

    yield

    database.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry ledger for a produce trading business",
    lifespan=lifespan,
)


@app.exception_handler(LedgerError)
async def handle_ledger_error(request: Request, exc: LedgerError):
    """Render any ledger error as {"success": false, "error", "kind", "message"}."""
    if isinstance(exc, DuplicateCodeError):
        status_code = 409
    else:
        status_code = STATUS_BY_KIND.get(exc.kind, 400)

    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": exc.code,
            "kind": exc.kind,
            "message": str(exc),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    """Database errors outside atomic(...), e.g. on reads, as STORAGE_FAILURE."""
    logger.error("%s %s failed in storage: %s", request.method, request.url.path, exc)
    failure = StorageFailureError()
    return JSONResponse(
        status_code=STATUS_BY_KIND[failure.kind],
        content={
            "success": False,
            "error": failure.code,
            "kind": failure.kind,
            "message": str(failure),
        },
    )


# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(parties_router)
app.include_router(payments_router)
app.include_router(invoices_router)
app.include_router(ledger_router)
