"""
Trade Journal System Router
===========================

Endpoints:
    GET /api/health     - Health check of the data directory
    GET /api/app/info   - Application and data directory information
    GET /api/integrity  - Files the listings would skip
"""

import logging
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from tradejournal.api.dependencies import get_journal
from tradejournal.api.routers.base import data_response, envelope_response
from tradejournal.config.settings import APP_VERSION
from tradejournal.journal.manager import JournalManager
from tradejournal.journal.response import get_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["System"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy or unhealthy")
    version: str = Field(..., description="Application version")
    components: Dict[str, bool] = Field(..., description="Component health status")
    timestamp: str = Field(..., description="ISO timestamp of the check")


@router.get("/health", response_model=HealthResponse)
def health(journal: JournalManager = Depends(get_journal)) -> HealthResponse:
    data_ok = journal.health_check()
    return HealthResponse(
        status="healthy" if data_ok else "unhealthy",
        version=APP_VERSION,
        components={"dataDirectory": data_ok},
        timestamp=get_timestamp(),
    )


@router.get("/app/info")
def app_info(journal: JournalManager = Depends(get_journal)):
    return data_response(journal.app_info())


@router.get("/integrity")
def integrity(journal: JournalManager = Depends(get_journal)):
    """Trade and thesis files that fail to read, parse or validate."""
    return envelope_response(journal.verify())
