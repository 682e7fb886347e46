"""
Trade Journal Theses Router

CRUD endpoints for quarterly theses and the active-thesis lookup.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from tradejournal.api.dependencies import get_journal
from tradejournal.api.routers.base import envelope_response
from tradejournal.journal.manager import JournalManager
from tradejournal.journal.models import Quarter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/theses", tags=["Theses"])


@router.get("")
def list_theses(journal: JournalManager = Depends(get_journal)):
    """Summaries of all theses with their linked trade counts, newest first."""
    return envelope_response(journal.theses.list())


@router.get("/active")
def get_active_thesis(
    year: int = Query(..., ge=2000, le=2100),
    quarter: Quarter = Query(...),
    journal: JournalManager = Depends(get_journal),
):
    """The active thesis for a quarter; ``data`` is omitted when there is none."""
    return envelope_response(journal.theses.get_active(year, quarter))


@router.get("/{thesis_id}")
def get_thesis(thesis_id: str, journal: JournalManager = Depends(get_journal)):
    return envelope_response(journal.theses.load(thesis_id))


@router.post("")
def save_thesis(
    thesis: Dict[str, Any] = Body(...),
    changes: Optional[str] = Query(default=None, description="Description of this revision"),
    changed_by: Optional[str] = Query(default=None, alias="changedBy"),
    journal: JournalManager = Depends(get_journal),
):
    """
    Create a thesis, or update it when the id already exists.

    Updates append a version to the thesis history.
    """
    return envelope_response(journal.theses.save(thesis, changes=changes, changed_by=changed_by))


@router.delete("/{thesis_id}")
def delete_thesis(thesis_id: str, journal: JournalManager = Depends(get_journal)):
    return envelope_response(journal.theses.delete(thesis_id))
