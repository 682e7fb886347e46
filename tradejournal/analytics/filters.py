"""
Trade Filter Engine

Filtered, sorted and paginated projection of the in-memory trade
collection. The engine subscribes to a TradeCache and recomputes the view
eagerly after every change to the trades, the filters or the sort order,
so readers always see a consistent projection.
"""

import logging
from datetime import datetime, time, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradejournal.analytics.metrics import PerformanceMetrics, calculate_metrics
from tradejournal.core.errors import InvalidArgumentError
from tradejournal.journal.cache import TradeCache
from tradejournal.journal.models import (
    STATUS_ORDER,
    Trade,
    TradeOutcome,
    TradeStatus,
    TradeType,
    as_utc,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25


class SortField(str, Enum):
    ENTRY_DATE = "entryDate"
    TICKER = "ticker"
    TYPE = "type"
    STATUS = "status"
    PROFIT_LOSS = "profitLoss"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class TradeFilters(BaseModel):
    """
    Filter criteria; every unset criterion matches all trades.

    ``"all"`` is accepted for the enum criteria and means unset.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    ticker: Optional[str] = None
    type: Optional[TradeType] = None
    outcome: Optional[TradeOutcome] = None
    status: Optional[TradeStatus] = None
    date_from: Optional[datetime] = Field(default=None, alias="dateFrom")
    date_to: Optional[datetime] = Field(default=None, alias="dateTo")
    thesis_id: Optional[str] = Field(default=None, alias="thesisId")
    search_query: Optional[str] = Field(default=None, alias="searchQuery")

    @field_validator("type", "outcome", "status", mode="before")
    @classmethod
    def all_means_unset(cls, v):
        if isinstance(v, str) and v.lower() == "all":
            return None
        return v

    @field_validator("ticker", "thesis_id", "search_query", mode="before")
    @classmethod
    def blank_means_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_active(self) -> bool:
        return any(value is not None for value in self.model_dump().values())

    def matches(self, trade: Trade) -> bool:
        if self.ticker and self.ticker.strip().lower() not in trade.ticker.lower():
            return False
        if self.type is not None and trade.type != self.type:
            return False
        if self.status is not None and trade.status != self.status:
            return False
        if self.outcome is not None and trade.outcome != self.outcome:
            return False
        if self.date_from is not None and trade.entry_date < as_utc(self.date_from):
            return False
        if self.date_to is not None:
            # The end date is inclusive of the whole day
            end_of_day = datetime.combine(as_utc(self.date_to).date(), time.max, tzinfo=timezone.utc)
            if trade.entry_date > end_of_day:
                return False
        if self.thesis_id and trade.linked_thesis_id != self.thesis_id:
            return False
        if self.search_query and self.search_query.strip().lower() not in trade.searchable_text():
            return False
        return True


SORT_KEYS: Dict[SortField, Callable[[Trade], Any]] = {
    SortField.ENTRY_DATE: lambda t: t.entry_date,
    SortField.TICKER: lambda t: t.ticker.lower(),
    SortField.TYPE: lambda t: t.type.value,
    SortField.STATUS: lambda t: STATUS_ORDER[t.status],
    SortField.PROFIT_LOSS: lambda t: t.realized_profit_loss() if t.status == TradeStatus.CLOSED else 0.0,
}


class TradeFilterEngine:
    """
    Owner of the filtered trade view.

    Example:
        >>> engine = TradeFilterEngine(cache)
        >>> engine.set_filters(type="long")
        >>> [t.type.value for t in engine.page_items]
        ['long', 'long']
    """

    def __init__(
        self,
        cache: TradeCache,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = 500,
    ):
        self.cache = cache
        self.max_page_size = max_page_size
        self.filters = TradeFilters()
        self.sort_field = SortField.ENTRY_DATE
        self.sort_direction = SortDirection.DESC
        self.page = 1
        self.page_size = self._check_page_size(page_size)

        self._trades: List[Trade] = []
        self._filtered: List[Trade] = []
        self._unsubscribe = cache.subscribe(self._on_trades_changed)
        self._on_trades_changed(cache.trades())

    def close(self) -> None:
        """Stop following the cache."""
        self._unsubscribe()

    def _check_page_size(self, page_size: int) -> int:
        if not 1 <= page_size <= self.max_page_size:
            raise InvalidArgumentError(
                detail=f"page size must be between 1 and {self.max_page_size}, got {page_size}"
            )
        return page_size

    def _on_trades_changed(self, trades: List[Trade]) -> None:
        self._trades = list(trades)
        self._recompute()
        self.page = min(self.page, self.total_pages)

    def _recompute(self) -> None:
        matching = [trade for trade in self._trades if self.filters.matches(trade)]
        matching.sort(
            key=SORT_KEYS[self.sort_field],
            reverse=self.sort_direction == SortDirection.DESC,
        )
        self._filtered = matching
        logger.debug(
            f"Filtered view: {len(matching)}/{len(self._trades)} trades, "
            f"sorted by {self.sort_field.value} {self.sort_direction.value}"
        )

    # =========================================================================
    # State changes
    # =========================================================================

    def set_filters(self, filters: Optional[TradeFilters] = None, **changes: Any) -> None:
        """
        Replace the filters, or update some criteria keeping the rest.

        Args:
            filters: Complete replacement filter set
            **changes: Individual criteria, by field name or camelCase alias
        """
        if filters is None:
            merged = self.filters.model_dump(by_alias=True)
            for key, value in changes.items():
                info = TradeFilters.model_fields.get(key)
                merged[info.alias if info is not None and info.alias else key] = value
            filters = TradeFilters.model_validate(merged)
        self.filters = filters
        self.page = 1
        self._recompute()

    def clear_filters(self) -> None:
        self.set_filters(TradeFilters())

    def set_sorting(self, field: SortField, direction: Optional[SortDirection] = None) -> None:
        """
        Sort by ``field``. Without a direction, choosing the current field
        again flips the direction; a new field sorts descending.
        """
        field = SortField(field)
        if direction is None:
            if field == self.sort_field:
                direction = (
                    SortDirection.ASC if self.sort_direction == SortDirection.DESC else SortDirection.DESC
                )
            else:
                direction = SortDirection.DESC
        self.sort_field = field
        self.sort_direction = SortDirection(direction)
        self.page = 1
        self._recompute()

    def set_page(self, page: int) -> None:
        self.page = max(1, min(int(page), self.total_pages))

    def set_page_size(self, page_size: int) -> None:
        self.page_size = self._check_page_size(int(page_size))
        self.page = 1

    # =========================================================================
    # Derived view
    # =========================================================================

    @property
    def all_trades(self) -> List[Trade]:
        return list(self._trades)

    @property
    def filtered_trades(self) -> List[Trade]:
        return list(self._filtered)

    @property
    def total_items(self) -> int:
        return len(self._filtered)

    @property
    def total_pages(self) -> int:
        return max(1, -(-len(self._filtered) // self.page_size))

    @property
    def page_items(self) -> List[Trade]:
        start = (self.page - 1) * self.page_size
        return self._filtered[start : start + self.page_size]

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    @property
    def has_active_filters(self) -> bool:
        return self.filters.is_active

    def win_loss_stats(self) -> PerformanceMetrics:
        """Metrics over the filtered trades."""
        return calculate_metrics(self._filtered)

    def snapshot(self) -> Dict[str, Any]:
        """Serializable view of the current page and pagination state."""
        return {
            "items": [trade.to_summary().to_document() for trade in self.page_items],
            "page": self.page,
            "pageSize": self.page_size,
            "totalItems": self.total_items,
            "totalPages": self.total_pages,
            "hasNext": self.has_next_page,
            "hasPrev": self.has_prev_page,
            "sortField": self.sort_field.value,
            "sortDirection": self.sort_direction.value,
            "filters": self.filters.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
