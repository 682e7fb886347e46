"""
Shared test fixtures for the trade journal test suite.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import pytest

from tradejournal.journal.cache import TradeCache
from tradejournal.journal.storage import DataLayout
from tradejournal.journal.thesis_store import ThesisStore
from tradejournal.journal.trade_store import TradeStore


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


@pytest.fixture
def make_trade():
    """Factory for valid trade documents; pass None to drop a key."""

    def factory(**overrides: Any) -> Dict[str, Any]:
        base = {
            "id": str(uuid.uuid4()),
            "ticker": "AAPL",
            "type": "long",
            "status": "open",
            "entryDate": "2024-01-15T14:30:00Z",
            "entryPrice": 150.0,
            "quantity": 10,
            "preTradeNotes": {
                "thesis": "Breakout above resistance on strong volume",
                "riskAssessment": "Stop below the breakout level, risk 1% of capital",
            },
            "tags": ["breakout"],
            "createdAt": "2024-01-15T14:30:00Z",
            "updatedAt": "2024-01-15T14:30:00Z",
        }
        return _merge(base, overrides)

    return factory


@pytest.fixture
def make_closed_trade(make_trade):
    """Factory for closed trades with a given realized P&L per share."""

    def factory(pnl_per_share: float = 10.0, **overrides: Any) -> Dict[str, Any]:
        entry = 100.0
        return make_trade(
            status="closed",
            entryPrice=entry,
            exitPrice=entry + pnl_per_share,
            quantity=1,
            exitDate=overrides.pop("exitDate", "2024-02-01T15:00:00Z"),
            **overrides,
        )

    return factory


@pytest.fixture
def make_thesis():
    """Factory for valid thesis documents; pass None to drop a key."""

    def factory(**overrides: Any) -> Dict[str, Any]:
        base = {
            "id": str(uuid.uuid4()),
            "title": "Tech momentum into earnings",
            "quarter": "Q1",
            "year": 2024,
            "marketOutlook": "bullish",
            "strategies": {
                "focus": ["momentum", "earnings"],
                "avoid": ["biotech"],
                "themes": ["AI"],
                "sectors": ["technology"],
            },
            "riskParameters": {
                "maxPositionSize": 0.1,
                "stopLossRules": ["7% hard stop"],
                "diversificationRules": ["max 3 positions per sector"],
            },
            "goals": {
                "profitTarget": 1000,
                "tradeCount": 4,
                "learningObjectives": ["Size positions by volatility"],
                "winRateTarget": 0.5,
            },
            "isActive": True,
            "createdAt": datetime(2024, 1, 2, tzinfo=timezone.utc).isoformat(),
            "updatedAt": datetime(2024, 1, 2, tzinfo=timezone.utc).isoformat(),
        }
        return _merge(base, overrides)

    return factory


@pytest.fixture
def layout(tmp_path):
    """A fresh journal directory."""
    data_layout = DataLayout(tmp_path / "journal")
    data_layout.ensure_data_directory()
    return data_layout


@pytest.fixture
def trade_store(layout):
    return TradeStore(layout)


@pytest.fixture
def thesis_store(layout, trade_store):
    return ThesisStore(layout, trade_store)


@pytest.fixture
def trade_cache(trade_store):
    return TradeCache(trade_store)
