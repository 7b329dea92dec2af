"""FastAPI application factory and lifespan management."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.openapi.routes import health, notifications, storage, uploads
from src.commons.settings.models import Settings
from src.commons.telemetry import configure_logging
from src.commons.telemetry.logger import JsonFormatter, TextFormatter


def _log_level(settings: Settings) -> int:
    level_name = settings.telemetry.log_level or settings.app.log_level
    return int(getattr(logging, level_name.upper()))


def _setup_logging(settings: Settings) -> None:
    """Configure the application logger and the root fallback.

    Runs when the app is created so our formatters are in place before
    uvicorn starts serving.
    """
    configure_logging(
        level=logging.getLevelName(_log_level(settings)),
        format_type=settings.telemetry.log_format,
        logger_name="src",
    )
    logging.getLogger().setLevel(_log_level(settings))


def _configure_uvicorn_logging(settings: Settings) -> None:
    """Put uvicorn's loggers on the same format as ours.

    Called during lifespan when uvicorn handlers are available.
    """
    level = _log_level(settings)
    formatter: logging.Formatter = (
        JsonFormatter() if settings.telemetry.log_format == "json" else TextFormatter()
    )

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(formatter)
            handler.setLevel(level)
            logger.addHandler(handler)
            logger.propagate = False


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown.

    Startup builds the infrastructure clients, prepares the bucket and
    indexes, starts the background runner and re-schedules pending
    uploads. Shutdown cancels in-flight verification and closes clients.
    """
    settings = get_settings()
    _configure_uvicorn_logging(settings)

    await init_services(settings)
    try:
        yield
    finally:
        await shutdown_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Loaded from config and environment if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    _setup_logging(settings)

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description=(
            "Festival video ingestion - stores submitted films and verifies "
            "them for copyright conflicts"
        ),
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    _configure_middleware(app, settings)
    _register_routes(app, settings)

    return app


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # Outermost, so it also formats errors raised inside other middleware
    app.middleware("http")(error_handler_middleware)


def _register_routes(app: FastAPI, settings: Settings) -> None:
    """Register API routes."""
    prefix = settings.server.api_prefix

    # Health routes (no prefix for standard health checks)
    app.include_router(health.router, tags=["Health"])

    app.include_router(uploads.router, prefix=prefix, tags=["Uploads"])
    app.include_router(storage.router, prefix=prefix, tags=["Storage"])
    app.include_router(notifications.router, prefix=prefix, tags=["Notifications"])


def main() -> None:
    """Run the API server with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
        log_config=None,
    )


# Create default app instance
app = create_app()
