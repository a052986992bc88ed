"""
Landbook - Land Sales Back-Office

Main FastAPI application with:
- Tenant-scoped projects, plots, clients and payments
- Cancelled-sale reconciliation (cancel, transfer, refund updates)
- Cancelled-sales reporting
- Payroll calculator, employees and monthly payroll runs
- Notification outbox and daily payment reminders on APScheduler
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from landbook.api import api_router
from landbook.config import settings
from landbook.scheduler import scheduler, setup_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Starts the notification outbox scheduler

    Shutdown:
    - Stops the scheduler
    """
    logger.info("Starting Landbook...")

    setup_scheduler()
    scheduler.start()
    if not settings.email_function_url:
        logger.warning("EMAIL_FUNCTION_URL not set: notifications will be skipped")

    logger.info("Landbook started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down Landbook...")
    scheduler.shutdown(wait=False)


# Create FastAPI application
app = FastAPI(
    title="Landbook",
    description="Land sales back-office with cancelled-sale reconciliation",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Unexpected datastore failure; the request transaction was rolled back."""
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "DATABASE_ERROR", "message": "Failed to process request"}},
    )


# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "landbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
