"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import plans, sessions
from .. import __version__
from ..errors import (
    CatalogUnavailable,
    InvalidTransition,
    MigrationEngineError,
    SessionBusy,
    UnresolvableDependency,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = (
    (CatalogUnavailable, 503),
    (UnresolvableDependency, 422),
    (SessionBusy, 409),
    (InvalidTransition, 409),
)

app = FastAPI(
    title="docshift API",
    description="API for planning and running phased relational to document migrations",
    version=__version__,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(plans.router, prefix="/api", tags=["plans"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])


def status_code_for(error: MigrationEngineError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 400


@app.exception_handler(MigrationEngineError)
async def engine_error_handler(request: Request, exc: MigrationEngineError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
