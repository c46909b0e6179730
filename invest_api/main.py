"""
FastAPI application entry point.

Run with: uvicorn invest_api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from invest_api._version import VERSION
from invest_api.database import init_db, utcnow

# Import models to ensure they're registered with SQLAlchemy
from invest_api.models import Notification, Trade, Transaction, User  # noqa: F401
from invest_api.routers import admin_router, auth_router, trading_router
from invest_api import telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Startup: Create database tables if they don't exist, initialize telemetry.
    Shutdown: (nothing to clean up for now)
    """
    # Startup
    await init_db()
    print("Database initialized")

    if telemetry.setup_telemetry():
        # Attach OTLP handler to root logger for log export
        handler = telemetry.get_log_handler()
        if handler:
            logging.getLogger().addHandler(handler)
            logging.getLogger().setLevel(logging.INFO)
        print("Telemetry initialized (OTLP metrics + logs enabled)")
    else:
        print("Telemetry disabled")

    yield

    # Shutdown
    print("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title="Investment Platform API",
    description="Accounts, plan trades, deposits and withdrawals for an investment platform",
    version=VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with one entry per offending field."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Register routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(trading_router, prefix="/api/trading", tags=["trading"])
app.include_router(admin_router, prefix="/api/admin", tags=["admin"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "OK",
        "message": "Investment platform API is running",
        "timestamp": utcnow().isoformat(),
    }


@app.get("/api/version")
async def get_version():
    """Get API version information."""
    return {"version": VERSION}
