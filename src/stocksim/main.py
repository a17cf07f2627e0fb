"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stocksim.config.settings import get_settings
from stocksim.config.logging_config import setup_logging
from stocksim.repositories.sqlalchemy.database import init_db
from stocksim.api.routers import portfolio_router, market_router
from stocksim.app_context import get_app_context
from stocksim.core.exceptions import (
    AppError,
    ValidationError,
    NotAuthenticatedError,
    NotFoundError,
    UpstreamError,
    RateLimitError,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    yield
    # Shutdown
    get_app_context().close()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Paper-trading portfolio and cached market data",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(portfolio_router)
app.include_router(market_router)


def status_code_for(exc: AppError) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, NotAuthenticatedError):
        return 401
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RateLimitError):
        return 429
    if isinstance(exc, UpstreamError):
        return 502
    return 500


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
