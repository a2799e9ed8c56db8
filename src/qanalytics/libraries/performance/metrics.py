"""Financial ratio calculation functions.

Pure functions for annualization, daily-return aggregation and risk-adjusted
ratios. All functions are stateless and testable.

Philosophy:
- Pure functions: same inputs always produce same outputs (bit-identical)
- No side effects: don't modify inputs or global state
- Conventions as parameters: risk-free rate and days-per-year are explicit
  keyword arguments with documented defaults
- Sentinels, not errors: zero-denominator ratios with a favorable numerator
  return ``math.inf``

Conventions:
    - 365 trading days per year (24/7 crypto markets). Do not substitute 252.
    - Default annual risk-free rate is 0 (report convention).
    - Returns and drawdowns are fractions (0.02 = 2%).

Usage:
    >>> from qanalytics.libraries.performance import metrics
    >>>
    >>> returns = metrics.aggregate_to_daily_returns(equity_curve)
    >>> sharpe = metrics.calculate_sharpe_ratio(returns)
    >>> sortino = metrics.calculate_sortino_ratio(returns, risk_free_rate=0.02)
"""

import math
from typing import Sequence

from qanalytics.libraries.performance.calculators import SECONDS_PER_DAY, DailyReturnsCalculator
from qanalytics.libraries.performance.models import EquityPoint
from qanalytics.libraries.performance.stats import mean, stddev_population

TRADING_DAYS_PER_YEAR = 365
DEFAULT_RISK_FREE_RATE = 0.0

__all__ = [
    "SECONDS_PER_DAY",
    "TRADING_DAYS_PER_YEAR",
    "DEFAULT_RISK_FREE_RATE",
    "annual_to_period_rate",
    "aggregate_to_daily_returns",
    "calculate_sharpe_ratio",
    "calculate_sortino_ratio",
    "calculate_cagr",
    "calculate_calmar_ratio",
    "calculate_calmar_ratio_from_equity",
    "calculate_volatility",
    "calculate_profit_factor",
    "calculate_expectancy",
]


def annual_to_period_rate(annual_rate: float, periods_per_year: float) -> float:
    """
    Convert an annual rate to a per-period rate geometrically.

    ``period_rate = (1 + annual_rate) ** (1 / periods_per_year) - 1``

    Args:
        annual_rate: Annual rate as fraction (0.02 = 2%)
        periods_per_year: Number of periods in a year (365 for daily)

    Returns:
        Per-period rate, or 0 if ``periods_per_year <= 0``

    Example:
        >>> annual_to_period_rate(0.0, 365)
        0.0
    """
    if periods_per_year <= 0:
        return 0.0
    return math.pow(1 + annual_rate, 1 / periods_per_year) - 1


def aggregate_to_daily_returns(equity_curve: Sequence[EquityPoint]) -> list[float]:
    """
    Aggregate an equity curve into daily returns.

    Points are bucketed by ``floor(timestamp / 86400)``. Each day boundary
    crossed emits ``(equity_at_day_end - equity_at_day_start) / equity_at_day_start``
    where day-start equity is the last equity of the previous day (the first
    point's equity for day 0). The final partial day contributes only if its
    equity moved.

    Args:
        equity_curve: Time-ordered equity points (sub-daily allowed)

    Returns:
        Daily returns as fractions; empty if fewer than 2 points

    Example:
        >>> # One point per day: 10000, 10100, 10000
        >>> aggregate_to_daily_returns(curve)
        [0.0, 0.01, -0.0099...]
    """
    if len(equity_curve) < 2:
        return []

    calc = DailyReturnsCalculator()
    for point in equity_curve:
        calc.update(point.effective_time, point.equity)

    return calc.finalize()


def calculate_sharpe_ratio(
    daily_returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    annualize: bool = True,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Calculate Sharpe ratio on daily returns.

    Sharpe = mean(excess) / population_stddev(excess), where
    excess = daily_return - daily risk-free rate.

    Args:
        daily_returns: Daily returns as fractions
        risk_free_rate: Annual risk-free rate (default 0)
        annualize: Multiply by sqrt(trading_days_per_year) (default True)
        trading_days_per_year: Annualization base (default 365)

    Returns:
        Sharpe ratio; 0 with fewer than 2 returns; ``inf`` for zero
        volatility with positive mean excess return, else 0 in that case

    Example:
        >>> calculate_sharpe_ratio([0.01, -0.005, 0.02])
        15.49...
    """
    if len(daily_returns) < 2:
        return 0.0

    rfr = annual_to_period_rate(risk_free_rate, trading_days_per_year)
    excess_returns = [r - rfr for r in daily_returns]

    m = mean(excess_returns)
    sd = stddev_population(excess_returns)

    if sd == 0:
        return math.inf if m > 0 else 0.0

    sr = m / sd
    return sr * math.sqrt(trading_days_per_year) if annualize else sr


def calculate_sortino_ratio(
    daily_returns: Sequence[float],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    target_return: float = 0.0,
    annualize: bool = True,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Calculate Sortino ratio on daily returns.

    Numerator is the mean excess return over the risk-free rate (as Sharpe).
    Denominator is downside deviation ``sqrt(sum(min(0, r - T) ** 2) / N)``
    over ALL N returns; non-negative shortfalls contribute 0.

    Args:
        daily_returns: Daily returns as fractions
        risk_free_rate: Annual risk-free rate (default 0)
        target_return: Annual target/MAR rate, converted to daily (default 0)
        annualize: Multiply by sqrt(trading_days_per_year) (default True)
        trading_days_per_year: Annualization base (default 365)

    Returns:
        Sortino ratio; 0 with fewer than 2 returns; ``inf`` when there is no
        downside and the mean excess return is positive
    """
    if len(daily_returns) < 2:
        return 0.0

    rfr = annual_to_period_rate(risk_free_rate, trading_days_per_year)
    target = annual_to_period_rate(target_return, trading_days_per_year)

    excess_returns = [r - rfr for r in daily_returns]
    m = mean(excess_returns)

    sum_sq = 0.0
    for r in daily_returns:
        shortfall = min(0.0, r - target)
        sum_sq += shortfall * shortfall
    downside_deviation = math.sqrt(sum_sq / len(daily_returns))

    if downside_deviation == 0:
        return math.inf if m > 0 else 0.0

    sr = m / downside_deviation
    return sr * math.sqrt(trading_days_per_year) if annualize else sr


def calculate_cagr(
    start_equity: float,
    end_equity: float,
    total_days: float,
    days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Calculate Compound Annual Growth Rate.

    ``CAGR = (end / start) ** (1 / years) - 1`` with ``years = total_days / 365``.

    Args:
        start_equity: Starting equity
        end_equity: Ending equity
        total_days: Elapsed days (fractional allowed)
        days_per_year: Days in a year (default 365)

    Returns:
        CAGR as fraction; 0 if years <= 0 or either equity <= 0

    Example:
        >>> calculate_cagr(10000.0, 12100.0, 730)
        0.1000...
    """
    total_years = total_days / days_per_year
    if total_years <= 0 or start_equity <= 0 or end_equity <= 0:
        return 0.0

    try:
        growth = math.pow(end_equity / start_equity, 1 / total_years)
    except OverflowError:
        # Very short spans overflow the double range; IEEE result is +inf
        growth = math.inf
    return growth - 1


def calculate_calmar_ratio(cagr: float, max_drawdown: float) -> float:
    """
    Calculate Calmar ratio (CAGR / |max drawdown|).

    Args:
        cagr: Compound annual growth rate as fraction
        max_drawdown: Maximum drawdown as fraction (sign ignored)

    Returns:
        Calmar ratio; ``inf`` if drawdown is 0 and CAGR > 0; 0 if drawdown is
        0 otherwise
    """
    mdd = abs(max_drawdown)
    if mdd == 0:
        return math.inf if cagr > 0 else 0.0
    return cagr / mdd


def calculate_calmar_ratio_from_equity(equity_curve: Sequence[EquityPoint], max_drawdown_pct: float) -> float:
    """
    Calmar ratio using the curve's own first/last equity and elapsed time.

    Args:
        equity_curve: Time-ordered equity points
        max_drawdown_pct: Maximum drawdown as fraction

    Returns:
        Calmar ratio; 0 with fewer than 2 points
    """
    if len(equity_curve) < 2:
        return 0.0

    first = equity_curve[0]
    last = equity_curve[-1]
    total_days = (last.effective_time - first.effective_time) / SECONDS_PER_DAY

    return calculate_calmar_ratio(calculate_cagr(first.equity, last.equity, total_days), max_drawdown_pct)


def calculate_volatility(
    daily_returns: Sequence[float],
    annualize: bool = True,
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """
    Volatility as population standard deviation of daily returns.

    Args:
        daily_returns: Daily returns as fractions
        annualize: Multiply by sqrt(trading_days_per_year) (default True)
        trading_days_per_year: Annualization base (default 365)

    Returns:
        Volatility as fraction; 0 for empty input
    """
    daily = stddev_population(daily_returns)
    return daily * math.sqrt(trading_days_per_year) if annualize else daily


def calculate_profit_factor(gross_profit: float, gross_loss: float) -> float:
    """
    Calculate profit factor (gross profit / gross loss).

    Args:
        gross_profit: Sum of winning P&L
        gross_loss: Absolute sum of losing P&L

    Returns:
        Profit factor; ``inf`` when there are no losses but some profit; 0 when
        both are 0
    """
    if gross_loss > 0:
        return gross_profit / gross_loss
    return math.inf if gross_profit > 0 else 0.0


def calculate_expectancy(total_pnl: float, trade_count: int) -> float:
    """Average P&L per trade, 0 with no trades."""
    return total_pnl / trade_count if trade_count > 0 else 0.0
