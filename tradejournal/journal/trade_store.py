"""
Trade Store Module

CRUD over trade documents. Each trade is one JSON file inside a year
partition chosen from its entry date when the trade is first saved:

    trades/2024/AAPL_20240115_<id>.json

Public methods return an ApiResponse; the ``iter_trades`` generator is the
raising, skip-on-error scan shared with the thesis store and the cache.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from tradejournal.config.logging import journal_events, log_performance
from tradejournal.core.errors import JournalError, NotFoundError
from tradejournal.journal.locator import EntityLocator, GlobLocator, check_id, sanitize_prefix
from tradejournal.journal.models import Trade, TradeSummary, utcnow
from tradejournal.journal.response import returns_envelope
from tradejournal.journal.storage import DataLayout
from tradejournal.journal.validation import read_entity, serialize_entity, validate_trade

logger = logging.getLogger(__name__)

SLOW_SCAN_MS = 500.0


def trade_prefix(trade: Trade) -> str:
    """Descriptive filename prefix, e.g. ``BRK.B_20240115``."""
    return sanitize_prefix(trade.ticker, trade.entry_date.strftime("%Y%m%d"))


class TradeStore:
    """
    File-backed store of trades.

    Example:
        >>> store = TradeStore(DataLayout("~/journal"))
        >>> response = store.save(trade)
        >>> store.load(response.data).data.ticker
        'AAPL'
    """

    def __init__(self, layout: DataLayout, locator: Optional[EntityLocator] = None):
        self.layout = layout
        self.locator = locator if locator is not None else GlobLocator(layout.trades_dir, recursive=True)

    def _write(self, path: Path, trade: Trade) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize_entity(trade), encoding="utf-8")

    def _require(self, trade_id: str) -> Path:
        path = self.locator.locate(check_id(trade_id))
        if path is None:
            raise NotFoundError(detail=f"trade {trade_id}", context={"trade_id": trade_id})
        return path

    # =========================================================================
    # CRUD
    # =========================================================================

    @returns_envelope
    def save(self, trade: Union[Trade, Dict[str, Any]]) -> str:
        """
        Validate and persist a trade, creating or fully replacing its file.

        An existing trade is rewritten where it lies even if its entry date
        moved to another year; use :meth:`repartition` to move it.

        Returns:
            The trade id
        """
        validated = validate_trade(trade)
        validated = validated.model_copy(update={"updated_at": utcnow()})

        path = self.locator.locate(validated.id)
        created = path is None
        if created:
            path = self.locator.path_for(
                trade_prefix(validated), validated.id, partition=str(validated.partition_year)
            )

        self._write(path, validated)
        self.locator.register(validated.id, path)
        journal_events.log_saved("trade", validated.id, path, created)
        return validated.id

    @returns_envelope
    def load(self, trade_id: str) -> Trade:
        return read_entity(Trade, self._require(trade_id))

    @returns_envelope
    @log_performance(threshold_ms=SLOW_SCAN_MS, log_result=True)
    def list(self) -> List[TradeSummary]:
        """
        Summaries of every readable trade, newest first.

        Files that cannot be read, parsed or validated are skipped and logged.
        """
        summaries = [trade.to_summary() for trade in self.iter_trades()]
        summaries.sort(key=lambda s: s.created_at, reverse=True)
        return summaries

    @returns_envelope
    @log_performance(threshold_ms=SLOW_SCAN_MS, log_result=True)
    def all(self) -> List[Trade]:
        """Full documents of every readable trade, newest first."""
        trades = list(self.iter_trades())
        trades.sort(key=lambda t: t.created_at, reverse=True)
        return trades

    @returns_envelope
    def delete(self, trade_id: str) -> None:
        path = self._require(trade_id)
        path.unlink()
        self.locator.forget(trade_id)
        journal_events.log_deleted("trade", trade_id, path)

    # =========================================================================
    # Maintenance
    # =========================================================================

    @returns_envelope
    def repartition(self, trade_id: str) -> str:
        """
        Move a trade into the partition matching its current entry date.

        Returns:
            Path of the trade file relative to the data directory
        """
        path = self._require(trade_id)
        trade = read_entity(Trade, path)
        partition = self.layout.trade_partition(trade.partition_year)

        if path.parent != partition:
            target = partition / path.name
            path.replace(target)
            self.locator.register(trade_id, target)
            logger.info(f"Moved trade {trade_id} from {path.parent.name} to {partition.name}")
            path = target

        return path.relative_to(self.layout.data_dir).as_posix()

    @returns_envelope
    def verify(self) -> List[Dict[str, str]]:
        """
        Integrity check: every trade file that ``list`` would skip.

        Returns:
            One entry per bad file with its relative path, error code and message
        """
        problems = []
        for path in self.locator.iter_files():
            try:
                read_entity(Trade, path)
            except JournalError as e:
                problems.append(
                    {
                        "path": path.relative_to(self.layout.data_dir).as_posix(),
                        "code": e.code,
                        "error": e.technical_message,
                    }
                )
        return problems

    def iter_trades(self) -> Iterator[Trade]:
        """Yield every trade that reads and validates, skipping the rest."""
        for path in self.locator.iter_files():
            try:
                yield read_entity(Trade, path)
            except JournalError as e:
                journal_events.log_skipped(path, e)
