"""
Trade Journal Trades Router

CRUD endpoints for trades plus the filtered, paginated trade view. Writes go
through the journal's trade cache so cached views stay current.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from tradejournal.analytics.filters import SortDirection, SortField, TradeFilters
from tradejournal.api.dependencies import get_journal
from tradejournal.api.routers.base import data_response, envelope_response
from tradejournal.core.errors import InvalidArgumentError
from tradejournal.journal.manager import JournalManager
from tradejournal.journal.models import TradeOutcome, TradeStatus, TradeType
from tradejournal.journal.response import fail

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["Trades"])


@router.get("")
def list_trades(journal: JournalManager = Depends(get_journal)):
    """Summaries of all trades, newest first."""
    return envelope_response(journal.trades.list())


@router.get("/view")
def trade_view(
    ticker: Optional[str] = Query(default=None),
    type: Optional[TradeType] = Query(default=None),
    outcome: Optional[TradeOutcome] = Query(default=None),
    status: Optional[TradeStatus] = Query(default=None),
    date_from: Optional[datetime] = Query(default=None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(default=None, alias="dateTo"),
    thesis_id: Optional[str] = Query(default=None, alias="thesisId"),
    search: Optional[str] = Query(default=None),
    sort_field: SortField = Query(default=SortField.ENTRY_DATE, alias="sortField"),
    sort_direction: SortDirection = Query(default=SortDirection.DESC, alias="sortDirection"),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, alias="pageSize"),
    journal: JournalManager = Depends(get_journal),
):
    """One page of the filtered and sorted trade collection."""
    try:
        engine = journal.filter_engine()
    except InvalidArgumentError as e:
        return envelope_response(fail(e))

    try:
        if page_size is not None:
            engine.set_page_size(page_size)
        engine.set_filters(
            TradeFilters(
                ticker=ticker,
                type=type,
                outcome=outcome,
                status=status,
                date_from=date_from,
                date_to=date_to,
                thesis_id=thesis_id,
                search_query=search,
            )
        )
        engine.set_sorting(sort_field, sort_direction)
        engine.set_page(page)
        snapshot = engine.snapshot()
        snapshot["stats"] = engine.win_loss_stats().to_dict()
    except InvalidArgumentError as e:
        return envelope_response(fail(e))
    finally:
        engine.close()

    return data_response(snapshot)


@router.get("/{trade_id}")
def get_trade(trade_id: str, journal: JournalManager = Depends(get_journal)):
    return envelope_response(journal.trades.load(trade_id))


@router.post("")
def save_trade(
    trade: Dict[str, Any] = Body(...),
    journal: JournalManager = Depends(get_journal),
):
    """Create a trade, or replace it entirely when the id already exists."""
    return envelope_response(journal.cache.save(trade))


@router.delete("/{trade_id}")
def delete_trade(trade_id: str, journal: JournalManager = Depends(get_journal)):
    return envelope_response(journal.cache.delete(trade_id))


@router.post("/{trade_id}/repartition")
def repartition_trade(trade_id: str, journal: JournalManager = Depends(get_journal)):
    """Move a trade file into the year folder of its current entry date."""
    response = journal.trades.repartition(trade_id)
    if response.success:
        journal.cache.invalidate()
    return envelope_response(response)
