"""Performance metrics library for backtest analysis.

This library turns completed trades and an equity curve into report metrics:

1. **Stats** (`stats.py`): Numeric kernel
   - sum_values, mean, stddev_population (empty input is 0, divisor N)

2. **Models** (`models.py`): Pydantic data structures
   - TradeRecord / EquityPoint / SwapEvent / TradeEvent: simulation inputs
   - SummaryMetrics, PerformanceMetrics, TradesAnalysis, AdditionalMetrics:
     report families, bundled in AllMetrics
   - SwapMetrics: flat metrics including execution costs

3. **Metrics** (`metrics.py`): Pure ratio functions
   - Daily-return aggregation, Sharpe, Sortino, CAGR, Calmar, volatility
   - Profit factor, expectancy

4. **Calculators** (`calculators.py`): Stateful single-pass folds
   - DailyReturnsCalculator: day-bucketed equity returns
   - DrawdownDurationCalculator: longest underwater span

5. **Trade / swap metrics** (`trade_metrics.py`, `swap_metrics.py`)

6. **Downsampling** (`downsampling.py`): LTTB, drawdown-peak and uniform
   reduction of equity curves

Usage:
    >>> from qanalytics.libraries.performance import calculate_all_metrics
    >>> metrics = calculate_all_metrics(trades, equity_curve, start, end, 10000.0)
    >>> metrics.summary.sharpe_ratio

Design Principles:
    - 365 trading days per year, risk-free rate 0 unless told otherwise
    - Infinity sentinels (``math.inf``) instead of errors for zero denominators
    - Degenerate inputs (no trades, flat curve) produce zeros, never exceptions
"""

# Stateful calculators
from qanalytics.libraries.performance.calculators import (
    SECONDS_PER_DAY,
    DailyReturnsCalculator,
    DrawdownDurationCalculator,
)

# Downsampling
from qanalytics.libraries.performance.downsampling import (
    downsample,
    downsample_equity_curve,
    downsample_preserve_drawdown_peaks,
    downsample_to_count,
    downsample_with_peaks,
)

# Pure calculation functions
from qanalytics.libraries.performance.metrics import (
    DEFAULT_RISK_FREE_RATE,
    TRADING_DAYS_PER_YEAR,
    aggregate_to_daily_returns,
    annual_to_period_rate,
    calculate_cagr,
    calculate_calmar_ratio,
    calculate_calmar_ratio_from_equity,
    calculate_expectancy,
    calculate_profit_factor,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_volatility,
)

# Models
from qanalytics.libraries.performance.models import (
    AdditionalMetrics,
    AllMetrics,
    ByDirection,
    Direction,
    DurationAnalysis,
    EquityPoint,
    ExitReason,
    LongShortBreakdown,
    PerformanceMetrics,
    PnLAnalysis,
    SummaryMetrics,
    SwapEvent,
    SwapMetrics,
    SwapVolumeStats,
    TradeEvent,
    TradeRecord,
    TradesAnalysis,
    TradeStatistics,
)
from qanalytics.libraries.performance.stats import mean, stddev_population, sum_values
from qanalytics.libraries.performance.swap_metrics import (
    calculate_swap_metrics,
    calculate_total_fees,
    calculate_total_slippage,
    get_swap_volume_stats,
)
from qanalytics.libraries.performance.trade_metrics import (
    calculate_additional_metrics,
    calculate_all_metrics,
    calculate_duration_analysis,
    calculate_max_drawdown_duration,
    calculate_performance_metrics,
    calculate_pnl_analysis,
    calculate_summary_metrics,
    calculate_trade_statistics,
    calculate_trades_analysis,
    count_exits_by_reason,
)

__all__ = [
    # Constants
    "SECONDS_PER_DAY",
    "TRADING_DAYS_PER_YEAR",
    "DEFAULT_RISK_FREE_RATE",
    # Models
    "Direction",
    "ExitReason",
    "TradeRecord",
    "EquityPoint",
    "SwapEvent",
    "TradeEvent",
    "ByDirection",
    "LongShortBreakdown",
    "SummaryMetrics",
    "PerformanceMetrics",
    "TradeStatistics",
    "PnLAnalysis",
    "DurationAnalysis",
    "TradesAnalysis",
    "AdditionalMetrics",
    "AllMetrics",
    "SwapMetrics",
    "SwapVolumeStats",
    # Stats
    "sum_values",
    "mean",
    "stddev_population",
    # Metrics (pure functions)
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
    # Calculators (stateful)
    "DailyReturnsCalculator",
    "DrawdownDurationCalculator",
    # Trade metrics
    "calculate_summary_metrics",
    "calculate_performance_metrics",
    "calculate_trade_statistics",
    "calculate_pnl_analysis",
    "calculate_duration_analysis",
    "calculate_trades_analysis",
    "count_exits_by_reason",
    "calculate_max_drawdown_duration",
    "calculate_additional_metrics",
    "calculate_all_metrics",
    # Swap metrics
    "calculate_swap_metrics",
    "calculate_total_fees",
    "calculate_total_slippage",
    "get_swap_volume_stats",
    # Downsampling
    "downsample",
    "downsample_to_count",
    "downsample_with_peaks",
    "downsample_preserve_drawdown_peaks",
    "downsample_equity_curve",
]
