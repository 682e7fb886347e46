"""
Journal Manager

High-level interface composing the stores, the trade cache, metrics and the
filter engine for one journal directory.
"""

import logging
import platform
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tradejournal.analytics.filters import TradeFilterEngine
from tradejournal.analytics.metrics import goal_progress, portfolio_metrics, thesis_metrics
from tradejournal.config.settings import APP_NAME, APP_VERSION, JournalSettings, get_settings
from tradejournal.journal.cache import TradeCache
from tradejournal.journal.locator import GlobLocator, IndexedLocator
from tradejournal.journal.response import returns_envelope
from tradejournal.journal.storage import DataLayout
from tradejournal.journal.thesis_store import ThesisStore
from tradejournal.journal.trade_store import TradeStore

logger = logging.getLogger(__name__)


class JournalManager:
    """
    One journal rooted at a base directory.

    Args:
        base_dir: Journal directory; defaults to the configured BASE_DIR
        settings: Settings to use instead of the cached global settings
        indexed: Put an in-memory id index in front of the filename scans
    """

    def __init__(
        self,
        base_dir: Optional[Union[str, Path]] = None,
        settings: Optional[JournalSettings] = None,
        indexed: bool = False,
    ):
        self.settings = settings or get_settings()
        root = Path(base_dir).expanduser() if base_dir is not None else self.settings.BASE_DIR

        self.layout = DataLayout(root)
        self.layout.ensure_data_directory()

        trade_locator = GlobLocator(self.layout.trades_dir, recursive=True)
        thesis_locator = GlobLocator(self.layout.theses_dir)
        if indexed:
            trade_locator = IndexedLocator(trade_locator)
            thesis_locator = IndexedLocator(thesis_locator)

        self.trades = TradeStore(self.layout, trade_locator)
        self.theses = ThesisStore(self.layout, self.trades, thesis_locator)
        self.cache = TradeCache(self.trades)

        logger.info(f"Journal initialized at {self.layout.data_dir}")

    def filter_engine(self) -> TradeFilterEngine:
        """A new filtered view following this journal's trade cache."""
        return TradeFilterEngine(
            self.cache,
            page_size=self.settings.PAGE_SIZE,
            max_page_size=self.settings.MAX_PAGE_SIZE,
        )

    # =========================================================================
    # Metrics
    # =========================================================================

    @returns_envelope
    def get_thesis_metrics(self, thesis_id: str) -> Dict[str, Any]:
        """Metrics and goal progress for the trades linked to one thesis."""
        thesis = self.theses.load(thesis_id).unwrap()
        metrics = thesis_metrics(thesis.id, self.cache.trades())
        return {
            "thesisId": thesis.id,
            "metrics": metrics.to_dict(),
            "goalProgress": goal_progress(thesis, metrics).to_dict(),
        }

    @returns_envelope
    def get_portfolio_metrics(self) -> Dict[str, Any]:
        theses = list(self.theses.iter_theses())
        return portfolio_metrics(theses, self.cache.trades()).to_dict()

    # =========================================================================
    # Maintenance
    # =========================================================================

    @returns_envelope
    def verify(self) -> Dict[str, List[Dict[str, str]]]:
        """Files that would be skipped by the trade and thesis listings."""
        return {
            "trades": self.trades.verify().unwrap(),
            "theses": self.theses.verify().unwrap(),
        }

    def entity_files(self) -> List[Path]:
        return self.layout.entity_files()

    @returns_envelope
    def restore(self, source_dir: Union[str, Path]) -> int:
        """Replace all trades and theses with an extracted backup."""
        restored = self.layout.replace_from(source_dir)
        for store in (self.trades, self.theses):
            if isinstance(store.locator, IndexedLocator):
                store.locator = IndexedLocator(store.locator.inner)
        self.cache.invalidate()
        return restored

    def app_info(self) -> Dict[str, Any]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "platform": platform.system().lower(),
            "pythonVersion": platform.python_version(),
            "dataDirectory": str(self.layout.data_dir),
        }

    def health_check(self) -> bool:
        """Check that the data directory is usable."""
        return all(folder.is_dir() for folder in self.layout.folders.values())
