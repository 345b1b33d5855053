# src/rallyrank/main.py

"""Main FastAPI application for RallyRank.

Domain errors map to 404 (unknown player, set or match rating), 422 (bad
prediction request) and 500 (engine failure). Per-player failures inside a
set recalculation never reach these handlers; they are reported in the
response body instead.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import rating
from .db.session import engine
from .exceptions import (
    RatingEngineError,
    ResourceNotFoundError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Dispose of database connections on shutdown."""
    yield
    await engine.dispose()


app = FastAPI(title="RallyRank API", lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle all resource not found errors -> 404."""
    logger.warning("Resource not found: %s", exc.message, extra=exc.details)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle caller contract violations -> 422."""
    logger.warning("Validation error: %s", exc.message, extra=exc.details)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


@app.exception_handler(RatingEngineError)
async def rating_engine_error_handler(
    request: Request, exc: RatingEngineError
) -> JSONResponse:
    """Handle rating engine errors -> 500."""
    logger.error(
        "Rating engine error: %s", exc.message, extra=exc.details, exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Rating calculation failed",
            "error_type": type(exc).__name__,
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Database failures while reading or storing ratings -> 500."""
    logger.error("Database error on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal database error occurred",
            "error_type": type(exc).__name__,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred"},
    )


app.include_router(rating.router)


@app.get("/", tags=["Root"])
async def read_root() -> dict[str, str]:
    """Provides a welcome message."""
    return {"message": "Welcome to the RallyRank API"}


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
