"""Combined backtest report model."""

from pydantic import BaseModel, Field

from qanalytics.libraries.diagnostics.models import AlgoMetrics
from qanalytics.libraries.performance.models import AllMetrics, EquityPoint, SwapMetrics


class BacktestReport(BaseModel):
    """
    Everything computed for one backtest run.

    ``metrics`` always reflect the full equity curve; ``equity_curve`` holds the
    (possibly downsampled) curve kept for storage and charts.
    """

    start_time: int  # Unix seconds
    end_time: int
    initial_capital: float
    total_bars: int = 0
    metrics: AllMetrics
    algo_metrics: AlgoMetrics = Field(default_factory=AlgoMetrics)
    swap_metrics: SwapMetrics | None = None
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    original_equity_points: int = 0
    downsample_strategy: str | None = None  # None when the curve was kept as-is

    @property
    def final_equity(self) -> float:
        return self.initial_capital + self.metrics.summary.total_pnl_usd

    @property
    def total_return_pct(self) -> float:
        """Total return as a fraction of initial capital (0 when capital is not positive)."""
        if self.initial_capital <= 0:
            return 0.0
        return self.metrics.summary.total_pnl_usd / self.initial_capital
