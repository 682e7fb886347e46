"""
Journal Module

File-backed persistence for trades and quarterly theses. Each entity is a
single JSON document; ids are resolved from filenames, so no database is
involved.

Example usage:
    from tradejournal.journal.manager import JournalManager

    journal = JournalManager("~/.trading-journal")

    response = journal.trades.save(trade)
    if response.success:
        trade = journal.trades.load(response.data).data

    # Summaries of all theses with their linked trade counts
    theses = journal.theses.list().data
"""

from .cache import TradeCache
from .locator import EntityLocator, GlobLocator, IndexedLocator
from .models import (
    MarketOutlook,
    PostTradeNotes,
    PreTradeNotes,
    Quarter,
    RiskParameters,
    Thesis,
    ThesisGoals,
    ThesisStrategies,
    ThesisSummary,
    ThesisVersion,
    Trade,
    TradeNote,
    TradeOutcome,
    TradeStatus,
    TradeSummary,
    TradeType,
    TradeUpdateType,
    VersionHistory,
)
from .response import ApiResponse
from .storage import DataLayout
from .thesis_store import ThesisStore
from .trade_store import TradeStore

__all__ = [
    # Stores
    "DataLayout",
    "TradeStore",
    "ThesisStore",
    "TradeCache",
    "ApiResponse",
    # Locators
    "EntityLocator",
    "GlobLocator",
    "IndexedLocator",
    # Models
    "Trade",
    "TradeNote",
    "PreTradeNotes",
    "PostTradeNotes",
    "TradeSummary",
    "Thesis",
    "ThesisStrategies",
    "RiskParameters",
    "ThesisGoals",
    "ThesisVersion",
    "ThesisSummary",
    "VersionHistory",
    # Enums
    "TradeType",
    "TradeStatus",
    "TradeOutcome",
    "TradeUpdateType",
    "Quarter",
    "MarketOutlook",
]
