"""
Performance Metrics Module

Win rate, profit factor, net P&L and drawdown statistics derived from
closed trades, for the whole journal or for the trades linked to a single
thesis. Theses are ranked by net P&L at portfolio level.

Only completed trades count: status closed with both entry and exit price
recorded.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

import numpy as np
import pandas as pd

from tradejournal.journal.models import BREAKEVEN_TOLERANCE, Thesis, Trade

logger = logging.getLogger(__name__)

UNBOUNDED = "unbounded"

# A ratio, or the "unbounded" tag when there were profits but no losses.
ProfitFactor = Union[float, Literal["unbounded"]]


def profit_factor(total_profit: float, total_loss: float) -> ProfitFactor:
    """
    Ratio of gross profit to gross loss.

    Never NaN and never raises: no losses with some profit is unbounded, and
    no profit with no loss is 0.
    """
    if total_loss > 0:
        return total_profit / total_loss
    if total_profit > 0:
        return UNBOUNDED
    return 0.0


@dataclass
class PerformanceMetrics:
    """Aggregate statistics over a set of trades."""

    total_trades: int = 0
    completed_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    net_profit_loss: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: ProfitFactor = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    expectancy: float = 0.0
    max_drawdown: float = 0.0
    max_consecutive_losses: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "totalTrades": self.total_trades,
            "completedTrades": self.completed_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "breakevenTrades": self.breakeven_trades,
            "winRate": self.win_rate,
            "totalProfit": self.total_profit,
            "totalLoss": self.total_loss,
            "netProfitLoss": self.net_profit_loss,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "profitFactor": self.profit_factor,
            "largestWin": self.largest_win,
            "largestLoss": self.largest_loss,
            "expectancy": self.expectancy,
            "maxDrawdown": self.max_drawdown,
            "maxConsecutiveLosses": self.max_consecutive_losses,
        }


def summarize_pnl(values: Sequence[float], total_trades: Optional[int] = None) -> PerformanceMetrics:
    """
    Metrics for a sequence of realized P&L values in chronological order.

    Args:
        values: Realized P&L of each completed trade, oldest first
        total_trades: Size of the collection the values came from; defaults
            to the number of values

    Returns:
        PerformanceMetrics
    """
    pnl = pd.Series(list(values), dtype=float)
    total = len(pnl) if total_trades is None else total_trades

    if pnl.empty:
        return PerformanceMetrics(total_trades=total)

    is_win = pnl >= BREAKEVEN_TOLERANCE
    is_loss = pnl <= -BREAKEVEN_TOLERANCE
    wins = pnl[is_win]
    losses = pnl[is_loss]

    total_profit = float(pnl[pnl > 0].sum())
    total_loss = float(-pnl[pnl < 0].sum())
    completed = len(pnl)

    # Drawdown measured from the running peak of cumulative P&L, starting flat
    cumulative = pnl.cumsum()
    running_peak = cumulative.cummax().clip(lower=0.0)
    max_drawdown = float((running_peak - cumulative).max())

    loss_streaks = is_loss.groupby((~is_loss).cumsum()).sum()

    return PerformanceMetrics(
        total_trades=total,
        completed_trades=completed,
        winning_trades=int(is_win.sum()),
        losing_trades=int(is_loss.sum()),
        breakeven_trades=int(completed - is_win.sum() - is_loss.sum()),
        win_rate=float(is_win.sum()) / completed,
        total_profit=total_profit,
        total_loss=total_loss,
        net_profit_loss=total_profit - total_loss,
        average_win=float(wins.mean()) if not wins.empty else 0.0,
        average_loss=float(np.abs(losses.mean())) if not losses.empty else 0.0,
        profit_factor=profit_factor(total_profit, total_loss),
        largest_win=float(wins.max()) if not wins.empty else 0.0,
        largest_loss=float(np.abs(losses.min())) if not losses.empty else 0.0,
        expectancy=(total_profit - total_loss) / completed,
        max_drawdown=max(max_drawdown, 0.0),
        max_consecutive_losses=int(loss_streaks.max()) if not loss_streaks.empty else 0,
    )


def calculate_metrics(trades: Sequence[Trade]) -> PerformanceMetrics:
    """Metrics over a trade collection; only completed trades contribute P&L."""
    completed = sorted(
        (trade for trade in trades if trade.is_completed),
        key=lambda t: (t.exit_date, t.entry_date),
    )
    return summarize_pnl([trade.realized_profit_loss() for trade in completed], total_trades=len(trades))


def linked_trades(thesis_id: str, trades: Sequence[Trade]) -> List[Trade]:
    return [trade for trade in trades if trade.linked_thesis_id == thesis_id]


def thesis_metrics(thesis_id: str, trades: Sequence[Trade]) -> PerformanceMetrics:
    """Metrics over the trades linked to one thesis."""
    return calculate_metrics(linked_trades(thesis_id, trades))


# =============================================================================
# Goal Progress
# =============================================================================


def _percent(current: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return float(np.clip(current / target * 100.0, 0.0, 100.0))


@dataclass
class GoalProgress:
    """How far a thesis is towards its goals."""

    trade_count: int
    trade_count_target: int
    trade_count_progress: float
    net_profit: float
    profit_target: float
    profit_progress: float
    win_rate: float
    win_rate_target: Optional[float] = None
    win_rate_met: Optional[bool] = None

    @property
    def achieved(self) -> bool:
        return (
            self.trade_count_progress >= 100.0
            and self.profit_progress >= 100.0
            and self.win_rate_met is not False
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tradeCount": self.trade_count,
            "tradeCountTarget": self.trade_count_target,
            "tradeCountProgress": self.trade_count_progress,
            "netProfit": self.net_profit,
            "profitTarget": self.profit_target,
            "profitProgress": self.profit_progress,
            "winRate": self.win_rate,
            "winRateTarget": self.win_rate_target,
            "winRateMet": self.win_rate_met,
            "achieved": self.achieved,
        }


def goal_progress(thesis: Thesis, metrics: PerformanceMetrics) -> GoalProgress:
    """Compare a thesis's metrics against its goals; progress is capped at 100%."""
    goals = thesis.goals
    win_rate_met = None
    if goals.win_rate_target is not None:
        win_rate_met = metrics.completed_trades > 0 and metrics.win_rate >= goals.win_rate_target

    return GoalProgress(
        trade_count=metrics.total_trades,
        trade_count_target=goals.trade_count,
        trade_count_progress=_percent(metrics.total_trades, goals.trade_count),
        net_profit=metrics.net_profit_loss,
        profit_target=goals.profit_target,
        profit_progress=_percent(metrics.net_profit_loss, goals.profit_target),
        win_rate=metrics.win_rate,
        win_rate_target=goals.win_rate_target,
        win_rate_met=win_rate_met,
    )


# =============================================================================
# Portfolio
# =============================================================================


@dataclass
class PortfolioMetrics:
    """Journal-wide metrics plus a per-thesis breakdown."""

    overall: PerformanceMetrics
    by_thesis: Dict[str, PerformanceMetrics] = field(default_factory=dict)
    total_theses: int = 0
    unlinked_trades: int = 0
    best_thesis_id: Optional[str] = None
    worst_thesis_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall.to_dict(),
            "byThesis": {k: v.to_dict() for k, v in self.by_thesis.items()},
            "totalTheses": self.total_theses,
            "unlinkedTrades": self.unlinked_trades,
            "bestThesisId": self.best_thesis_id,
            "worstThesisId": self.worst_thesis_id,
        }


def portfolio_metrics(theses: Sequence[Thesis], trades: Sequence[Trade]) -> PortfolioMetrics:
    """
    Overall metrics, metrics per thesis, and the best and worst thesis.

    Ranking is by net P&L and only considers theses with at least one
    completed trade; ties keep the earlier thesis in ``theses``.
    """
    by_thesis = {thesis.id: thesis_metrics(thesis.id, trades) for thesis in theses}
    known_ids = set(by_thesis)

    ranked = pd.Series(
        {tid: m.net_profit_loss for tid, m in by_thesis.items() if m.completed_trades > 0},
        dtype=float,
    )

    best = worst = None
    if not ranked.empty:
        best = str(ranked.idxmax())
        worst = str(ranked.idxmin())

    result = PortfolioMetrics(
        overall=calculate_metrics(trades),
        by_thesis=by_thesis,
        total_theses=len(theses),
        unlinked_trades=sum(1 for t in trades if t.linked_thesis_id not in known_ids),
        best_thesis_id=best,
        worst_thesis_id=worst,
    )
    logger.debug(
        f"Portfolio metrics over {len(trades)} trades and {len(theses)} theses "
        f"(best={best}, worst={worst})"
    )
    return result
