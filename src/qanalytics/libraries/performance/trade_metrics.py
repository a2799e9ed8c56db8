"""Trade metrics calculator.

Pure functions that turn a finite list of closed trades plus an equity curve
into the report families consumed downstream:

1. Summary: total P&L, win rate, largest win/loss, max drawdown/run-up,
   Sharpe/Sortino from daily equity returns
2. Performance: net profit, gross profit, gross loss by direction
3. Trades analysis: counts, P&L averages/extremes, durations by direction
4. Additional: profit factor, expectancy, volatility, drawdown currency and
   duration, CAGR, Calmar, activity, exit reasons

Edge Cases:
    - Empty trade list: every figure is 0 (no exception)
    - Zero-P&L trades count as neither winners nor losers
    - A direction with no trades reports 0, never NaN
    - Drawdown/run-up fractions are read from the supplied curve, never
      recomputed

Usage:
    >>> from qanalytics.libraries.performance.trade_metrics import calculate_all_metrics
    >>> result = calculate_all_metrics(trades, equity_curve, start_time, end_time, 10000.0)
    >>> result.summary.win_rate
    0.5
"""

from typing import Callable, Sequence

from qanalytics.libraries.performance.calculators import SECONDS_PER_DAY, DrawdownDurationCalculator
from qanalytics.libraries.performance.metrics import (
    DEFAULT_RISK_FREE_RATE,
    TRADING_DAYS_PER_YEAR,
    aggregate_to_daily_returns,
    calculate_cagr,
    calculate_calmar_ratio,
    calculate_expectancy,
    calculate_profit_factor,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_volatility,
)
from qanalytics.libraries.performance.models import (
    AdditionalMetrics,
    AllMetrics,
    ByDirection,
    DurationAnalysis,
    EquityPoint,
    ExitReason,
    LongShortBreakdown,
    PerformanceMetrics,
    PnLAnalysis,
    SummaryMetrics,
    TradeRecord,
    TradesAnalysis,
    TradeStatistics,
)
from qanalytics.libraries.performance.stats import mean, sum_values
from qanalytics.system import LoggerFactory

logger = LoggerFactory.get_logger()


# ============================================
# Helpers
# ============================================


def _split_by_direction(trades: Sequence[TradeRecord]) -> tuple[list[TradeRecord], list[TradeRecord]]:
    """Partition trades into (long, short), preserving order."""
    longs = [t for t in trades if t.direction == "LONG"]
    shorts = [t for t in trades if t.direction == "SHORT"]
    return longs, shorts


def _winners(trades: Sequence[TradeRecord]) -> list[TradeRecord]:
    return [t for t in trades if t.is_winner]


def _losers(trades: Sequence[TradeRecord]) -> list[TradeRecord]:
    return [t for t in trades if t.is_loser]


def _total_pnl(trades: Sequence[TradeRecord]) -> float:
    return sum_values(t.pnl_usd for t in trades)


def _largest_win(trades: Sequence[TradeRecord]) -> float:
    """Largest strictly positive P&L, 0 if there are no winners."""
    winners = _winners(trades)
    return max(t.pnl_usd for t in winners) if winners else 0.0


def _largest_loss(trades: Sequence[TradeRecord]) -> float:
    """Largest loss as a positive magnitude, 0 if there are no losers."""
    losers = _losers(trades)
    return abs(min(t.pnl_usd for t in losers)) if losers else 0.0


def _by_long_short(
    longs: Sequence[TradeRecord],
    shorts: Sequence[TradeRecord],
    fn: Callable[[Sequence[TradeRecord]], float],
) -> LongShortBreakdown:
    return LongShortBreakdown(long=fn(longs), short=fn(shorts))


def _max_drawdown_pct(equity_curve: Sequence[EquityPoint]) -> float:
    return max(p.drawdown_pct for p in equity_curve) if equity_curve else 0.0


def _max_runup_pct(equity_curve: Sequence[EquityPoint]) -> float:
    return max(p.runup_pct for p in equity_curve) if equity_curve else 0.0


# ============================================
# Summary
# ============================================


def calculate_summary_metrics(
    trades: Sequence[TradeRecord],
    equity_curve: Sequence[EquityPoint],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
    target_return: float = 0.0,
) -> SummaryMetrics:
    """
    Calculate headline metrics for the backtest.

    Args:
        trades: Completed trades
        equity_curve: Equity curve points (drawdown/run-up precomputed)
        risk_free_rate: Annual risk-free rate (default 0)
        trading_days_per_year: Annualization base (default 365)
        target_return: Annual Sortino target rate (default 0)

    Returns:
        SummaryMetrics; all zeros when ``trades`` is empty

    Example:
        >>> # trades with P&L [+100, -30, +50, -20]
        >>> summary = calculate_summary_metrics(trades, [])
        >>> summary.win_rate, summary.total_pnl_usd
        (0.5, 100.0)
    """
    if not trades:
        return SummaryMetrics()

    winners = _winners(trades)

    # Sharpe/Sortino use periodic equity returns, not per-trade returns
    daily_returns = aggregate_to_daily_returns(equity_curve)

    return SummaryMetrics(
        total_pnl_usd=_total_pnl(trades),
        max_equity_drawdown_pct=_max_drawdown_pct(equity_curve),
        max_equity_runup_pct=_max_runup_pct(equity_curve),
        number_of_trades=len(trades),
        win_rate=len(winners) / len(trades),
        sharpe_ratio=calculate_sharpe_ratio(
            daily_returns, risk_free_rate, trading_days_per_year=trading_days_per_year
        ),
        sortino_ratio=calculate_sortino_ratio(
            daily_returns, risk_free_rate, target_return, trading_days_per_year=trading_days_per_year
        ),
        largest_win_usd=_largest_win(trades),
        largest_loss_usd=_largest_loss(trades),
    )


# ============================================
# Performance by direction
# ============================================


def calculate_performance_metrics(trades: Sequence[TradeRecord]) -> PerformanceMetrics:
    """
    Calculate net profit, gross profit and gross loss split by direction.

    Gross loss is reported as a positive magnitude.
    """
    longs, shorts = _split_by_direction(trades)

    def gross_profit(subset: Sequence[TradeRecord]) -> float:
        return _total_pnl(_winners(subset))

    def gross_loss(subset: Sequence[TradeRecord]) -> float:
        return abs(_total_pnl(_losers(subset)))

    return PerformanceMetrics(
        net_profit=ByDirection(total=_total_pnl(trades), long=_total_pnl(longs), short=_total_pnl(shorts)),
        gross_profit=ByDirection(total=gross_profit(trades), long=gross_profit(longs), short=gross_profit(shorts)),
        gross_loss=ByDirection(total=gross_loss(trades), long=gross_loss(longs), short=gross_loss(shorts)),
    )


# ============================================
# Trades analysis
# ============================================


def calculate_trade_statistics(trades: Sequence[TradeRecord]) -> TradeStatistics:
    """Calculate winner/loser counts and win fraction by direction."""
    longs, shorts = _split_by_direction(trades)

    def win_fraction(subset: Sequence[TradeRecord]) -> float:
        return len(_winners(subset)) / len(subset) if subset else 0.0

    return TradeStatistics(
        total_trades=len(trades),
        winning_trades_count=_by_long_short(longs, shorts, lambda s: len(_winners(s))),
        losing_trades_count=_by_long_short(longs, shorts, lambda s: len(_losers(s))),
        percent_profitable=_by_long_short(longs, shorts, win_fraction),
    )


def calculate_pnl_analysis(trades: Sequence[TradeRecord]) -> PnLAnalysis:
    """
    Calculate P&L averages and extremes by direction.

    Losing figures are positive magnitudes. Empty subsets yield 0.
    """
    longs, shorts = _split_by_direction(trades)

    return PnLAnalysis(
        avg_pnl=_by_long_short(longs, shorts, lambda s: mean([t.pnl_usd for t in s])),
        avg_winning_trade=_by_long_short(longs, shorts, lambda s: mean([t.pnl_usd for t in _winners(s)])),
        avg_losing_trade=_by_long_short(longs, shorts, lambda s: abs(mean([t.pnl_usd for t in _losers(s)]))),
        largest_winning_trade=_by_long_short(longs, shorts, _largest_win),
        largest_losing_trade=_by_long_short(longs, shorts, _largest_loss),
    )


def calculate_duration_analysis(trades: Sequence[TradeRecord]) -> DurationAnalysis:
    """Calculate average holding time in bars for all/winning/losing trades by direction."""
    longs, shorts = _split_by_direction(trades)

    def avg_bars(subset: Sequence[TradeRecord]) -> float:
        return mean([float(t.duration_bars) for t in subset])

    return DurationAnalysis(
        avg_trade_duration_bars=_by_long_short(longs, shorts, avg_bars),
        avg_winning_trade_duration_bars=_by_long_short(longs, shorts, lambda s: avg_bars(_winners(s))),
        avg_losing_trade_duration_bars=_by_long_short(longs, shorts, lambda s: avg_bars(_losers(s))),
    )


def calculate_trades_analysis(trades: Sequence[TradeRecord]) -> TradesAnalysis:
    """Calculate statistics, P&L and duration analyses together."""
    return TradesAnalysis(
        statistics=calculate_trade_statistics(trades),
        profit_loss=calculate_pnl_analysis(trades),
        duration=calculate_duration_analysis(trades),
    )


# ============================================
# Additional metrics
# ============================================


def count_exits_by_reason(trades: Sequence[TradeRecord]) -> dict[ExitReason, int]:
    """
    Count trades per exit reason.

    Every ExitReason has a bucket, initialized to 0.
    """
    counts = {reason: 0 for reason in ExitReason}
    for trade in trades:
        counts[trade.exit_reason] += 1
    return counts


def calculate_max_drawdown_duration(equity_curve: Sequence[EquityPoint]) -> int:
    """
    Longest contiguous span with drawdown above 0.

    Measured from the point preceding the drawdown's start to the point where
    drawdown returns to 0, in the curve's time units (seconds).
    """
    calc = DrawdownDurationCalculator()
    for point in equity_curve:
        calc.update(point)
    return calc.max_duration


def calculate_additional_metrics(
    trades: Sequence[TradeRecord],
    equity_curve: Sequence[EquityPoint],
    start_time: int,
    end_time: int,
    initial_capital: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> AdditionalMetrics:
    """
    Calculate risk and activity metrics.

    Args:
        trades: Completed trades
        equity_curve: Equity curve points
        start_time: Backtest start (Unix seconds)
        end_time: Backtest end (Unix seconds)
        initial_capital: Starting capital
        risk_free_rate: Accepted for signature symmetry; Calmar uses CAGR only
        trading_days_per_year: Annualization base (default 365)

    Returns:
        AdditionalMetrics. ``profit_factor`` is ``inf`` when there are no
        losses but some profit; ``calmar_ratio`` is ``inf`` with positive CAGR
        and no drawdown.
    """
    total_days = (end_time - start_time) / SECONDS_PER_DAY
    total_pnl = _total_pnl(trades)
    final_equity = initial_capital + total_pnl

    performance = calculate_performance_metrics(trades)
    profit_factor = calculate_profit_factor(performance.gross_profit.total, performance.gross_loss.total)

    daily_returns = aggregate_to_daily_returns(equity_curve)
    daily_volatility = calculate_volatility(daily_returns, annualize=False)
    annualized_volatility = calculate_volatility(
        daily_returns, annualize=True, trading_days_per_year=trading_days_per_year
    )

    max_drawdown_pct = _max_drawdown_pct(equity_curve)

    cagr = calculate_cagr(initial_capital, final_equity, total_days)

    # Simple (non-compounded) annualization
    total_return_pct = total_pnl / initial_capital if initial_capital > 0 else 0.0
    annualized_return_pct = total_return_pct * (365 / total_days) if total_days > 0 else 0.0

    return AdditionalMetrics(
        calmar_ratio=calculate_calmar_ratio(cagr, max_drawdown_pct),
        profit_factor=profit_factor,
        expectancy=calculate_expectancy(total_pnl, len(trades)),
        daily_volatility=daily_volatility,
        annualized_volatility=annualized_volatility,
        max_drawdown_usd=max_drawdown_pct * initial_capital,
        max_drawdown_duration_seconds=calculate_max_drawdown_duration(equity_curve),
        trades_per_day=len(trades) / total_days if total_days > 0 else 0.0,
        cagr=cagr,
        annualized_return_pct=annualized_return_pct,
        exits_by_reason=count_exits_by_reason(trades),
    )


# ============================================
# All metrics
# ============================================


def calculate_all_metrics(
    trades: Sequence[TradeRecord],
    equity_curve: Sequence[EquityPoint],
    start_time: int,
    end_time: int,
    initial_capital: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
    target_return: float = 0.0,
) -> AllMetrics:
    """
    Calculate summary, performance, trades analysis and additional metrics.

    Args:
        trades: Completed trades
        equity_curve: Full (not downsampled) equity curve
        start_time: Backtest start (Unix seconds)
        end_time: Backtest end (Unix seconds)
        initial_capital: Starting capital
        risk_free_rate: Annual risk-free rate (default 0)
        trading_days_per_year: Annualization base (default 365)
        target_return: Annual Sortino target rate (default 0)

    Returns:
        AllMetrics bundle
    """
    logger.debug(
        "performance.metrics.calculating",
        trades=len(trades),
        equity_points=len(equity_curve),
        risk_free_rate=risk_free_rate,
    )

    return AllMetrics(
        summary=calculate_summary_metrics(
            trades, equity_curve, risk_free_rate, trading_days_per_year, target_return
        ),
        performance=calculate_performance_metrics(trades),
        analysis=calculate_trades_analysis(trades),
        additional=calculate_additional_metrics(
            trades,
            equity_curve,
            start_time,
            end_time,
            initial_capital,
            risk_free_rate,
            trading_days_per_year,
        ),
    )
