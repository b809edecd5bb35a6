"""
Trackport FastAPI Application.

API for importing exported conversation trackers and back-filling the NLU
activity log.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trackport import __version__
from trackport.api.routes import conversations, trackers
from trackport.exceptions import ImportRequestError, TrackerConflictError
from trackport.logging_config import setup_logging
from trackport.startup import run_all_startup_checks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Runs startup checks before the application starts serving requests.
    """
    setup_logging(context="api")

    logger.info("Running startup checks...")
    run_all_startup_checks()
    logger.info("Startup checks passed")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    lifespan=lifespan,
    title="Trackport API",
    description="API for importing conversation trackers and NLU activity",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(ImportRequestError)
async def import_request_error_handler(
    request: Request, exc: ImportRequestError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(TrackerConflictError)
async def tracker_conflict_handler(
    request: Request, exc: TrackerConflictError
) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - API health check."""
    return {
        "status": "ok",
        "message": "Trackport API is running",
        "version": __version__,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    from trackport.db.connection import check_connection

    db_status = "healthy" if check_connection() else "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
    }


app.include_router(
    conversations.router, prefix="/conversations", tags=["conversations"]
)
app.include_router(trackers.router, prefix="/projects", tags=["trackers"])
