"""
Trade Journal Metrics Router

Performance metrics per thesis and across the whole journal.
"""

from fastapi import APIRouter, Depends

from tradejournal.api.dependencies import get_journal
from tradejournal.api.routers.base import envelope_response
from tradejournal.journal.manager import JournalManager

router = APIRouter(prefix="/api/metrics", tags=["Metrics"])


@router.get("/portfolio")
def portfolio(journal: JournalManager = Depends(get_journal)):
    return envelope_response(journal.get_portfolio_metrics())


@router.get("/theses/{thesis_id}")
def thesis(thesis_id: str, journal: JournalManager = Depends(get_journal)):
    """Metrics and goal progress for the trades linked to a thesis."""
    return envelope_response(journal.get_thesis_metrics(thesis_id))
