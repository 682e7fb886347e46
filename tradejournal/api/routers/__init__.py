"""
Trade Journal API Routers

Provides register_routers for attaching every journal router to an app.
"""

import logging

from fastapi import FastAPI

from tradejournal.api.routers.metrics import router as metrics_router
from tradejournal.api.routers.system import router as system_router
from tradejournal.api.routers.theses import router as theses_router
from tradejournal.api.routers.trades import router as trades_router

logger = logging.getLogger(__name__)


def register_routers(app: FastAPI) -> None:
    """Register all journal routers with the FastAPI application."""
    for router in (system_router, trades_router, theses_router, metrics_router):
        app.include_router(router)
    logger.debug(f"Registered {len(app.routes)} routes")
