# src/roadwatch/main.py
"""Main entry point for the RoadWatch application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from roadwatch.api.v1 import accounts_router, hazards_router, store_router
from roadwatch.core.logging import configure_logging
from roadwatch.core.settings import settings
from roadwatch.services.classification import get_classifier_client
from roadwatch.services.errors import (
    EngineError,
    InsufficientBalance,
    InvalidTransition,
    NotAuthorized,
    NotFound,
    StorageError,
)

configure_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[EngineError], int] = {
    InsufficientBalance: status.HTTP_409_CONFLICT,
    InvalidTransition: status.HTTP_409_CONFLICT,
    NotAuthorized: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

# Initialize FastAPI app
app = FastAPI(
    title="RoadWatch API",
    description="Community hazard reporting with a token rewards store",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(accounts_router, prefix="/api/v1")
app.include_router(hazards_router, prefix="/api/v1")
app.include_router(store_router, prefix="/api/v1")


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    """Render token economy failures as typed JSON errors."""
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.kind},
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_classifier_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "RoadWatch API",
        "version": settings.app_version,
        "description": "Community hazard reporting with a token rewards store",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("roadwatch.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
