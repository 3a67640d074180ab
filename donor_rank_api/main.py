"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
# noinspection PyProtectedMember
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from donor_rank_api.config import get_settings
from donor_rank_api.dependencies import close_db, init_db
from donor_rank_api.logging_config import configure_logging
from donor_rank_api.rate_limit import limiter
from donor_rank_api.routers import autopayment, leaderboard

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Handles startup and shutdown events.
    """
    # Startup
    app_settings = get_settings()
    configure_logging(app_settings)
    init_db(app_settings)
    logger.info("Starting %s %s", app_settings.app_name, app_settings.app_version)
    yield
    # Shutdown
    close_db()


async def data_store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Answer data-store failures with a neutral message instead of a traceback."""
    logger.exception("Data store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Data is temporarily unavailable"})


# Initialize FastAPI app
settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=settings.app_description,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter  # type: ignore[attr-defined]
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(SQLAlchemyError, data_store_error_handler)  # type: ignore[arg-type]

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Register routers
app.include_router(leaderboard.router)
app.include_router(autopayment.router)


@app.get("/", tags=["health"])
def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": settings.app_description,
        "docs_url": "/docs",
        "openapi_url": "/openapi.json",
    }


@app.get("/health", tags=["health"])
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
