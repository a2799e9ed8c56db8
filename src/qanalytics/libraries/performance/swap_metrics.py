"""Swap-based trading metrics.

Flat performance block computed from trade events, where each trade pairs an
entry swap and an exit swap. Unlike the trade metrics calculator this block
also totals execution costs (fees and slippage) carried on the swaps.
"""

from typing import Sequence

from qanalytics.libraries.performance.metrics import (
    DEFAULT_RISK_FREE_RATE,
    TRADING_DAYS_PER_YEAR,
    aggregate_to_daily_returns,
    calculate_calmar_ratio_from_equity,
    calculate_profit_factor,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
)
from qanalytics.libraries.performance.models import (
    EquityPoint,
    SwapEvent,
    SwapMetrics,
    SwapVolumeStats,
    TradeEvent,
)
from qanalytics.libraries.performance.stats import mean, sum_values

QUOTE_ASSET = "USD"


def _max_drawdown_usd(equity_curve: Sequence[EquityPoint]) -> float:
    """Largest gap between the running equity peak and equity, first point excluded."""
    if not equity_curve:
        return 0.0

    max_dd = 0.0
    peak = equity_curve[0].equity
    for point in equity_curve[1:]:
        if point.equity > peak:
            peak = point.equity
        gap = peak - point.equity
        if gap > max_dd:
            max_dd = gap
    return max_dd


def calculate_swap_metrics(
    trades: Sequence[TradeEvent],
    equity_curve: Sequence[EquityPoint],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
    target_return: float = 0.0,
) -> SwapMetrics:
    """
    Calculate swap-based metrics from trade events.

    Args:
        trades: Completed trade events (entry + exit swap each)
        equity_curve: Equity curve for ratio and drawdown calculations
        risk_free_rate: Annual risk-free rate (default 0)
        trading_days_per_year: Annualization base for Sharpe and Sortino (default 365)
        target_return: Annual Sortino target rate (default 0)

    Returns:
        SwapMetrics; all zeros when ``trades`` is empty
    """
    if not trades:
        return SwapMetrics()

    winners = [t for t in trades if t.pnl_usd > 0]
    losers = [t for t in trades if t.pnl_usd < 0]
    longs = [t for t in trades if t.direction == "LONG"]
    shorts = [t for t in trades if t.direction == "SHORT"]
    long_winners = [t for t in longs if t.pnl_usd > 0]
    short_winners = [t for t in shorts if t.pnl_usd > 0]

    gross_profit = sum_values(t.pnl_usd for t in winners)
    gross_loss = abs(sum_values(t.pnl_usd for t in losers))

    daily_returns = aggregate_to_daily_returns(equity_curve)
    max_drawdown_pct = max(p.drawdown_pct for p in equity_curve) if equity_curve else 0.0

    swaps = [swap for t in trades for swap in (t.entry_swap, t.exit_swap)]

    return SwapMetrics(
        total_trades=len(trades),
        winning_trades=len(winners),
        losing_trades=len(losers),
        win_rate=len(winners) / len(trades),
        total_pnl_usd=sum_values(t.pnl_usd for t in trades),
        gross_profit_usd=gross_profit,
        gross_loss_usd=gross_loss,
        avg_pnl_usd=mean([t.pnl_usd for t in trades]),
        avg_win_usd=mean([t.pnl_usd for t in winners]),
        avg_loss_usd=abs(mean([t.pnl_usd for t in losers])),
        largest_win_usd=max(t.pnl_usd for t in winners) if winners else 0.0,
        largest_loss_usd=abs(min(t.pnl_usd for t in losers)) if losers else 0.0,
        profit_factor=calculate_profit_factor(gross_profit, gross_loss),
        sharpe_ratio=calculate_sharpe_ratio(daily_returns, risk_free_rate, trading_days_per_year=trading_days_per_year),
        sortino_ratio=calculate_sortino_ratio(
            daily_returns, risk_free_rate, target_return, trading_days_per_year=trading_days_per_year
        ),
        max_drawdown_pct=max_drawdown_pct,
        max_drawdown_usd=_max_drawdown_usd(equity_curve),
        calmar_ratio=calculate_calmar_ratio_from_equity(equity_curve, max_drawdown_pct),
        long_trades=len(longs),
        short_trades=len(shorts),
        long_win_rate=len(long_winners) / len(longs) if longs else 0.0,
        short_win_rate=len(short_winners) / len(shorts) if shorts else 0.0,
        long_pnl_usd=sum_values(t.pnl_usd for t in longs),
        short_pnl_usd=sum_values(t.pnl_usd for t in shorts),
        avg_trade_duration_bars=mean([float(t.duration_bars) for t in trades]),
        avg_trade_duration_seconds=mean([float(t.duration_seconds) for t in trades]),
        avg_win_duration_bars=mean([float(t.duration_bars) for t in winners]),
        avg_loss_duration_bars=mean([float(t.duration_bars) for t in losers]),
        total_fees_usd=calculate_total_fees(swaps),
        total_slippage_usd=calculate_total_slippage(swaps),
    )


def calculate_total_fees(swaps: Sequence[SwapEvent]) -> float:
    """Total fees paid across swaps, in USD."""
    return sum_values(s.fee_usd for s in swaps)


def calculate_total_slippage(swaps: Sequence[SwapEvent]) -> float:
    """Total slippage incurred across swaps, in USD."""
    return sum_values(s.slippage_usd for s in swaps)


def get_swap_volume_stats(swaps: Sequence[SwapEvent]) -> SwapVolumeStats:
    """
    Volume statistics over swaps.

    Each swap's volume is its USD leg: ``from_amount`` when spending USD,
    otherwise ``to_amount``.
    """
    volumes = [s.from_amount if s.from_asset == QUOTE_ASSET else s.to_amount for s in swaps]
    return SwapVolumeStats(
        total_volume_usd=sum_values(volumes),
        avg_swap_size_usd=mean(volumes),
        swap_count=len(swaps),
    )
