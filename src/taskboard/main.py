"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard import __version__
from taskboard.api import router
from taskboard.api.errors import install_error_handlers
from taskboard.api.rate_limit import limiter
from taskboard.config import get_settings
from taskboard.database import close_db, init_db
from taskboard.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db()
    logger.info("%s started", app.title)

    yield

    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Task management API with categories and a task lifecycle",
        version=__version__,
        lifespan=lifespan,
    )

    # slowapi looks the limiter up on app state
    app.state.limiter = limiter
    install_error_handlers(app)

    if settings.cors_enabled and settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            allow_credentials=settings.cors_allow_credentials,
            max_age=settings.cors_max_age,
        )

    # Include API routes
    app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def run_server():
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    run_server()
