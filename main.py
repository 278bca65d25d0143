# main.py
# Role: Application entry point for the ledger API.
#       Configures logging, creates database tables, maps ledger errors
#       to response envelopes, and registers all route modules.

"""
Main FastAPI app for the personal-finance ledger.

Here we only:
- set up logging
- create the FastAPI app
- create DB tables
- register error handlers
- include route modules
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.config import get_settings
from app.errors import (
    DayCountError,
    InsufficientBalanceError,
    LedgerValidationError,
    PersistenceError,
    UnknownUserError,
)
from app.responses import error
from app.routes_reports import router as reports_router
from app.routes_root import router as root_router
from app.routes_transactions import router as transactions_router
from db import Base, engine

# -------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("ledger")

# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
Base.metadata.create_all(bind=engine)

# FastAPI application instance
app = FastAPI(title="Ledger API")


# -------------------------------------------------------------------
# Error handlers (one response shape per error kind)
# -------------------------------------------------------------------

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error("The request is invalid.", {"errors": exc.errors()}, status_code=422)


@app.exception_handler(LedgerValidationError)
async def ledger_validation_handler(request: Request, exc: LedgerValidationError):
    return error(str(exc), status_code=422)


@app.exception_handler(InsufficientBalanceError)
async def insufficient_balance_handler(request: Request, exc: InsufficientBalanceError):
    return error(str(exc), exc.context(), status_code=400)


@app.exception_handler(DayCountError)
async def day_count_handler(request: Request, exc: DayCountError):
    return error(str(exc), {exc.name: exc.value}, status_code=422)


@app.exception_handler(UnknownUserError)
async def unknown_user_handler(request: Request, exc: UnknownUserError):
    return error("Unauthenticated.", status_code=401)


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    logger.error("persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return error("The ledger is temporarily unavailable.", status_code=500)


# -------------------------------------------------------------------
# Include routers
# -------------------------------------------------------------------

# Root / health routes
app.include_router(root_router)

# Recording transactions, profile
app.include_router(transactions_router)

# Balance reports (closing series, averages, income and debit aggregates)
app.include_router(reports_router)
