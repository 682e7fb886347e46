"""
Trade Journal REST API
======================

FastAPI application exposing the journal stores over HTTP. Every endpoint
answers with the journal's response envelope:

    {"success": bool, "data": ..., "error": str, "code": str, "timestamp": str}

Usage:
    uvicorn tradejournal.api.main:app --port 8765

Environment Variables:
    TRADEJOURNAL_BASE_DIR: Journal directory (platform default otherwise)
    TRADEJOURNAL_CONFIG_FILE: Optional YAML settings file
    TRADEJOURNAL_LOG_LEVEL: Root log level
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from tradejournal.api.dependencies import get_container
from tradejournal.api.routers import register_routers
from tradejournal.config.logging import configure_logging
from tradejournal.config.settings import APP_VERSION, JournalSettings, get_settings
from tradejournal.journal.response import get_timestamp

logger = logging.getLogger(__name__)


def create_app(
    base_dir: Optional[Union[str, Path]] = None,
    settings: Optional[JournalSettings] = None,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Application factory for creating the FastAPI instance.

    Args:
        base_dir: Journal directory, overriding the configured BASE_DIR
        settings: Settings to use instead of the cached global settings
        setup_logging: Configure root logging from the settings

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    if setup_logging:
        configure_logging(
            level=settings.LOG_LEVEL,
            json_format=settings.JSON_LOGS,
            log_file=str(settings.LOG_FILE) if settings.LOG_FILE else None,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Trade journal API starting up...")
        container = get_container()
        container.initialize(base_dir, settings=settings)
        app.state.container = container
        yield
        logger.info("Trade journal API shutting down...")
        container.reset()

    app = FastAPI(
        title="Trade Journal API",
        description="Local trading journal: trades, quarterly theses and performance metrics",
        version=APP_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "System", "description": "Health checks and application info"},
            {"name": "Trades", "description": "Trade records and the filtered trade view"},
            {"name": "Theses", "description": "Quarterly theses and version history"},
            {"name": "Metrics", "description": "Performance metrics"},
        ],
    )

    register_routers(app)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with the envelope format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail, "timestamp": get_timestamp()},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "timestamp": get_timestamp()},
        )

    return app


# Application instance for uvicorn
app = create_app()


def run_dev_server(host: str = "127.0.0.1", port: int = 8765):
    """Run the development server."""
    import uvicorn

    uvicorn.run(
        "tradejournal.api.main:app",
        host=host,
        port=port,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    run_dev_server()
