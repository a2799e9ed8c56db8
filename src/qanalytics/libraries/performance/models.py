"""Performance metrics data models.

Pydantic models for simulation inputs (trades, equity points, swaps) and for
the report structures produced by the trade metrics calculator.

Values are plain floats: ratio sentinels are ``float("inf")`` and must survive
validation and serialization unchanged.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Direction = Literal["LONG", "SHORT"]


class ExitReason(str, Enum):
    """Why a position was closed."""

    SIGNAL = "SIGNAL"
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"
    TRAILING_STOP = "TRAILING_STOP"
    END_OF_BACKTEST = "END_OF_BACKTEST"


# ============================================
# Inputs
# ============================================


class TradeRecord(BaseModel):
    """
    Record of one closed position.

    Produced by the simulation's trade recorder; read-only to this library.
    Percentages are fractions (0.02 = 2%).
    """

    trade_id: int
    direction: Direction
    entry_time: int  # Unix seconds
    entry_price: float
    exit_time: int
    exit_price: float
    qty: float
    pnl_usd: float
    pnl_pct: float  # Fraction of position size
    run_up_usd: float = 0.0
    run_up_pct: float = 0.0
    drawdown_usd: float = 0.0
    drawdown_pct: float = 0.0
    duration_seconds: int
    duration_bars: int
    cumulative_pnl_usd: float = 0.0
    equity_after_trade: float = 0.0
    exit_reason: ExitReason
    stop_loss_price: float | None = None
    take_profit_price: float | None = None

    model_config = {"frozen": True}

    @property
    def is_winner(self) -> bool:
        """Trade was strictly profitable."""
        return self.pnl_usd > 0

    @property
    def is_loser(self) -> bool:
        """Trade lost money. Zero-P&L trades are neither winners nor losers."""
        return self.pnl_usd < 0


class EquityPoint(BaseModel):
    """
    Single point on the equity curve.

    Drawdown and run-up fractions are precomputed upstream against the running
    peak/trough and are only consumed here.
    """

    time: int  # Unix seconds
    equity: float
    drawdown_pct: float = 0.0
    runup_pct: float = 0.0
    bar_index: int | None = None
    timestamp: int | None = None

    model_config = {"frozen": True}

    @property
    def effective_time(self) -> int:
        """Timestamp used for day bucketing (``timestamp`` wins over ``time``)."""
        return self.timestamp if self.timestamp is not None else self.time


class SwapEvent(BaseModel):
    """
    A pure wallet conversion (entry USD -> asset, exit asset -> USD).
    """

    id: str
    timestamp: int
    bar_index: int
    from_asset: str
    to_asset: str
    from_amount: float
    to_amount: float
    price: float
    fee_usd: float = 0.0
    slippage_usd: float = 0.0
    is_entry: bool | None = None
    trade_direction: Direction | None = None

    model_config = {"frozen": True}


class TradeEvent(BaseModel):
    """A completed trade built from a paired entry and exit swap."""

    trade_id: int
    direction: Direction
    entry_swap: SwapEvent
    exit_swap: SwapEvent
    pnl_usd: float  # Net of fees
    pnl_pct: float
    duration_bars: int
    duration_seconds: int

    model_config = {"frozen": True}


# ============================================
# Report structures
# ============================================


class ByDirection(BaseModel):
    """A value split into total/long/short."""

    total: float = 0.0
    long: float = 0.0
    short: float = 0.0


class LongShortBreakdown(BaseModel):
    """A value split into long/short."""

    long: float = 0.0
    short: float = 0.0


class SummaryMetrics(BaseModel):
    """Headline numbers for a backtest."""

    total_pnl_usd: float = 0.0
    max_equity_drawdown_pct: float = 0.0
    max_equity_runup_pct: float = 0.0
    number_of_trades: int = 0
    win_rate: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    largest_win_usd: float = 0.0
    largest_loss_usd: float = 0.0  # Positive magnitude


class PerformanceMetrics(BaseModel):
    """Net/gross profit and gross loss by direction."""

    net_profit: ByDirection = Field(default_factory=ByDirection)
    gross_profit: ByDirection = Field(default_factory=ByDirection)
    gross_loss: ByDirection = Field(default_factory=ByDirection)  # Positive magnitude


class TradeStatistics(BaseModel):
    total_trades: int = 0
    winning_trades_count: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    losing_trades_count: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    percent_profitable: LongShortBreakdown = Field(default_factory=LongShortBreakdown)


class PnLAnalysis(BaseModel):
    avg_pnl: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    avg_winning_trade: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    avg_losing_trade: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    largest_winning_trade: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    largest_losing_trade: LongShortBreakdown = Field(default_factory=LongShortBreakdown)


class DurationAnalysis(BaseModel):
    avg_trade_duration_bars: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    avg_winning_trade_duration_bars: LongShortBreakdown = Field(default_factory=LongShortBreakdown)
    avg_losing_trade_duration_bars: LongShortBreakdown = Field(default_factory=LongShortBreakdown)


class TradesAnalysis(BaseModel):
    statistics: TradeStatistics = Field(default_factory=TradeStatistics)
    profit_loss: PnLAnalysis = Field(default_factory=PnLAnalysis)
    duration: DurationAnalysis = Field(default_factory=DurationAnalysis)


class AdditionalMetrics(BaseModel):
    """
    Risk and activity metrics beyond the summary.

    ``profit_factor`` and ``calmar_ratio`` may be ``inf`` (no losses / no drawdown).
    """

    calmar_ratio: float = 0.0
    profit_factor: float = 0.0
    expectancy: float = 0.0
    daily_volatility: float = 0.0
    annualized_volatility: float = 0.0
    max_drawdown_usd: float = 0.0
    max_drawdown_duration_seconds: int = 0
    trades_per_day: float = 0.0
    cagr: float = 0.0
    annualized_return_pct: float = 0.0
    exits_by_reason: dict[ExitReason, int] = Field(default_factory=lambda: {reason: 0 for reason in ExitReason})


class AllMetrics(BaseModel):
    """The four trade-metric report families computed together."""

    summary: SummaryMetrics
    performance: PerformanceMetrics
    analysis: TradesAnalysis
    additional: AdditionalMetrics


class SwapMetrics(BaseModel):
    """
    Flat trading metrics derived from swap-paired trade events.

    Includes execution costs (fees, slippage) that plain trade records omit.
    """

    # Summary
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0

    # P&L
    total_pnl_usd: float = 0.0
    gross_profit_usd: float = 0.0
    gross_loss_usd: float = 0.0
    avg_pnl_usd: float = 0.0
    avg_win_usd: float = 0.0
    avg_loss_usd: float = 0.0
    largest_win_usd: float = 0.0
    largest_loss_usd: float = 0.0

    # Risk
    profit_factor: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown_pct: float = 0.0
    max_drawdown_usd: float = 0.0
    calmar_ratio: float = 0.0

    # By direction
    long_trades: int = 0
    short_trades: int = 0
    long_win_rate: float = 0.0
    short_win_rate: float = 0.0
    long_pnl_usd: float = 0.0
    short_pnl_usd: float = 0.0

    # Duration
    avg_trade_duration_bars: float = 0.0
    avg_trade_duration_seconds: float = 0.0
    avg_win_duration_bars: float = 0.0
    avg_loss_duration_bars: float = 0.0

    # Costs
    total_fees_usd: float = 0.0
    total_slippage_usd: float = 0.0


class SwapVolumeStats(BaseModel):
    total_volume_usd: float = 0.0
    avg_swap_size_usd: float = 0.0
    swap_count: int = 0
