"""
Trade Cache Module

In-memory mirror of the trade collection. Reads are served from memory;
writes go through to the TradeStore and invalidate the mirror, which
reloads lazily on the next read. Subscribers (such as the filter engine)
are notified whenever the mirror changes.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from tradejournal.journal.models import Trade
from tradejournal.journal.response import ApiResponse
from tradejournal.journal.trade_store import TradeStore

logger = logging.getLogger(__name__)

Listener = Callable[[List[Trade]], None]


class TradeCache:
    """
    Explicit cache object wrapping one TradeStore.

    Each instance is independent, so tests and multiple journals never share
    state.
    """

    def __init__(self, store: TradeStore):
        self.store = store
        self._trades: List[Trade] = []
        self._stale = True
        self._listeners: List[Listener] = []

    @property
    def is_stale(self) -> bool:
        return self._stale

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with the trade list after every change.

        Returns:
            A function that removes the subscription
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        trades = list(self._trades)
        for listener in list(self._listeners):
            listener(trades)

    def invalidate(self) -> None:
        """Mark the mirror stale and notify subscribers with a fresh load."""
        self._stale = True
        if self._listeners:
            self.refresh()

    def refresh(self) -> ApiResponse:
        """Reload every trade from disk."""
        response = self.store.all()
        if response.success:
            self._trades = response.data
            self._stale = False
            logger.debug(f"Trade cache loaded {len(self._trades)} trades")
            self._notify()
        return response

    def trades(self) -> List[Trade]:
        """Current trades, reloading first if the mirror is stale."""
        if self._stale:
            self.refresh().unwrap()
        return list(self._trades)

    def get(self, trade_id: str) -> Optional[Trade]:
        for trade in self.trades():
            if trade.id == trade_id:
                return trade
        return None

    # =========================================================================
    # Write-through operations
    # =========================================================================

    def save(self, trade: Union[Trade, Dict[str, Any]]) -> ApiResponse:
        response = self.store.save(trade)
        if response.success:
            self.invalidate()
        return response

    def delete(self, trade_id: str) -> ApiResponse:
        response = self.store.delete(trade_id)
        if response.success:
            self.invalidate()
        return response

    def __len__(self) -> int:
        return len(self.trades())
