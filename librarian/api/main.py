"""
Librarian API

Application factory and the uvicorn entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from librarian import __version__
from librarian.config import Settings, get_settings
from .dependencies import init_services
from .middleware import AccessLogConfig, setup_exception_handlers, setup_logging
from .routes import auth_router, books_router, orders_router
from .schemas import HealthResponse

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = __version__


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the store on startup and release it on shutdown.

    With ``AUTO_MIGRATE`` on, missing tables and constraints are created
    before the first request is served.
    """
    settings: Settings = app.state.settings
    services = init_services(settings)
    app.state.services = services

    logger.info(f"Starting Librarian {VERSION} ({settings.environment})")
    try:
        if settings.auto_migrate:
            services.repository.create_schema()
            logger.info("Database schema is up to date")
        yield
    finally:
        services.close()
        logger.info("Librarian stopped")


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings. Loaded from the environment if None.
    """
    settings = settings or get_settings()
    docs = settings.debug

    app = FastAPI(
        title="Librarian",
        description="Catalog, borrowing, returns and reviews for a lending library.",
        version=VERSION,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_logging(
        app,
        config=AccessLogConfig(log_request_body=settings.log_request_body),
        structured=settings.environment != "development",
    )
    setup_exception_handlers(app)

    for router in (auth_router, books_router, orders_router):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": "Librarian", "version": VERSION}

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health_check() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(version=VERSION, components={"api": "healthy"})

    return app


app = create_app()


def main(host: str = "0.0.0.0", port: int = 8080):
    """Serve the module-level app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "librarian.api.main:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
