"""
Bookshelf API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .schemas import HealthResponse
from .routes import auth, books, collections
from .middleware import (
    setup_cors,
    setup_logging,
    setup_exception_handlers,
    LoggingConfig,
    TransientStoreError,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    get_session_factory,
    get_service_container,
    init_stores,
    close_stores,
    Settings,
)

VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup opens both stores and creates their tables; shutdown disposes
    the engines.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Bookshelf in {settings.environment} mode")

    try:
        logger.info("Initializing stores...")
        app.state.services = await init_stores(settings)
        logger.info("Bookshelf started successfully")

        yield

    finally:
        logger.info("Shutting down Bookshelf...")
        await close_stores()
        logger.info("Shutdown complete")


# =============================================================================
# Health
# =============================================================================

async def _accounts_health() -> str:
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, RuntimeError) as e:
        logger.warning(f"Accounts store health check failed: {e}")
        return f"unhealthy: {e}"
    return "healthy"


async def _catalogue_health() -> str:
    try:
        async with get_service_container().book_repository.get_session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, TransientStoreError) as e:
        logger.warning(f"Catalogue store health check failed: {e}")
        return f"unhealthy: {e}"
    return "healthy"


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Bookshelf",
        description="Shared book catalogue with per-user collections and reviews.",
        version=VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware (order matters - last added = outermost)
    # ==========================================================================

    # 1. Request logging
    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
        structured=settings.environment != "development",
    )

    # 2. Exception handling
    setup_exception_handlers(app)

    # 3. CORS (outermost - answers preflight requests first)
    setup_cors(app, config=get_cors_config(settings.environment))

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api"

    app.include_router(auth.router, prefix=api_prefix)
    app.include_router(books.router, prefix=api_prefix)
    app.include_router(collections.router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Bookshelf",
            "version": VERSION,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check(request: Request) -> HealthResponse:
        """
        Health check endpoint.

        Returns status of both stores.
        """
        components = {
            "accounts_store": await _accounts_health(),
            "catalogue_store": await _catalogue_health(),
        }
        healthy = all(state == "healthy" for state in components.values())

        return HealthResponse(
            status="healthy" if healthy else "degraded",
            version=VERSION,
            components=components,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookshelf.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        workers=1 if settings.debug else 4,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
