# Trade Journal Analytics

from tradejournal.analytics.filters import (
    SortDirection,
    SortField,
    TradeFilterEngine,
    TradeFilters,
)
from tradejournal.analytics.metrics import (
    UNBOUNDED,
    GoalProgress,
    PerformanceMetrics,
    PortfolioMetrics,
    calculate_metrics,
    goal_progress,
    portfolio_metrics,
    profit_factor,
    summarize_pnl,
    thesis_metrics,
)

__all__ = [
    "SortDirection",
    "SortField",
    "TradeFilterEngine",
    "TradeFilters",
    "UNBOUNDED",
    "GoalProgress",
    "PerformanceMetrics",
    "PortfolioMetrics",
    "calculate_metrics",
    "goal_progress",
    "portfolio_metrics",
    "profit_factor",
    "summarize_pnl",
    "thesis_metrics",
]
