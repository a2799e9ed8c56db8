"""Reporting service implementation.

Assembles the combined backtest report from finished simulation output.
"""

from typing import Sequence

from qanalytics.libraries.diagnostics import AlgoEvent, calculate_algo_metrics, create_empty_algo_metrics
from qanalytics.libraries.performance import (
    EquityPoint,
    TradeEvent,
    TradeRecord,
    calculate_all_metrics,
    calculate_swap_metrics,
    downsample_equity_curve,
)
from qanalytics.services.reporting.config import ReportingConfig
from qanalytics.services.reporting.models import BacktestReport
from qanalytics.system import LoggerFactory, configure_logging_from_system_config

logger = LoggerFactory.get_logger()


class ReportingService:
    """Reporting service for finished backtests.

    Runs the trade metrics calculator, the algo diagnostic analyzer and
    (optionally) swap metrics over the raw inputs, then downsamples the equity
    curve for storage. Metrics never see the downsampled curve.

    Attributes:
        config: Reporting configuration

    Example:
        >>> service = ReportingService(ReportingConfig(initial_capital=10000.0))
        >>> report = service.build_report(
        ...     trades=trades,
        ...     equity_curve=curve,
        ...     algo_events=events,
        ...     total_bars=len(candles),
        ...     start_time=candles[0].time,
        ...     end_time=candles[-1].time,
        ... )
        >>> report.metrics.summary.sharpe_ratio
    """

    def __init__(self, config: ReportingConfig | None = None) -> None:
        """Initialize reporting service.

        Args:
            config: Reporting configuration (defaults to ReportingConfig())
        """
        self.config = config if config is not None else ReportingConfig()

    @classmethod
    def from_system_config(cls) -> "ReportingService":
        """Build from the cached system configuration, applying its logging section first."""
        configure_logging_from_system_config()
        return cls(ReportingConfig.from_system_config())

    def build_report(
        self,
        trades: Sequence[TradeRecord],
        equity_curve: Sequence[EquityPoint],
        algo_events: Sequence[AlgoEvent],
        total_bars: int,
        start_time: int,
        end_time: int,
        swap_trades: Sequence[TradeEvent] | None = None,
    ) -> BacktestReport:
        """Build the combined report.

        Args:
            trades: Completed trade records
            equity_curve: Full equity curve
            algo_events: Diagnostic event stream
            total_bars: Bars processed by the simulation
            start_time: Backtest start (Unix seconds)
            end_time: Backtest end (Unix seconds)
            swap_trades: Swap-paired trade events, when available

        Returns:
            BacktestReport
        """
        cfg = self.config
        logger.debug(
            "reporting.report.building",
            trades=len(trades),
            equity_points=len(equity_curve),
            algo_events=len(algo_events),
            total_bars=total_bars,
        )

        metrics = calculate_all_metrics(
            trades,
            equity_curve,
            start_time,
            end_time,
            cfg.initial_capital,
            risk_free_rate=cfg.risk_free_rate,
            trading_days_per_year=cfg.trading_days_per_year,
            target_return=cfg.target_return,
        )
        algo_metrics = calculate_algo_metrics(algo_events, total_bars)
        swap_metrics = None
        if swap_trades is not None:
            swap_metrics = calculate_swap_metrics(
                swap_trades,
                equity_curve,
                cfg.risk_free_rate,
                trading_days_per_year=cfg.trading_days_per_year,
                target_return=cfg.target_return,
            )

        stored_curve, strategy = self._downsample(equity_curve)

        report = BacktestReport(
            start_time=start_time,
            end_time=end_time,
            initial_capital=cfg.initial_capital,
            total_bars=total_bars,
            metrics=metrics,
            algo_metrics=algo_metrics,
            swap_metrics=swap_metrics,
            equity_curve=stored_curve,
            original_equity_points=len(equity_curve),
            downsample_strategy=strategy,
        )

        logger.info(
            "reporting.report.built",
            trades=metrics.summary.number_of_trades,
            total_pnl_usd=metrics.summary.total_pnl_usd,
            sharpe=metrics.summary.sharpe_ratio,
            equity_points=len(equity_curve),
            stored_points=len(stored_curve),
            indicators=len(algo_metrics.indicator_analysis),
        )
        return report

    def _downsample(self, equity_curve: Sequence[EquityPoint]) -> tuple[list[EquityPoint], str | None]:
        """Apply the configured strategy; returns the curve and the strategy used (None if untouched)."""
        cfg = self.config
        if not cfg.downsample_enabled or len(equity_curve) <= cfg.downsample_target_points:
            return list(equity_curve), None

        points = downsample_equity_curve(equity_curve, cfg.downsample_target_points, cfg.downsample_strategy)
        logger.debug(
            "reporting.equity_curve.downsampled",
            strategy=cfg.downsample_strategy,
            original=len(equity_curve),
            downsampled=len(points),
        )
        return points, cfg.downsample_strategy


def create_empty_report(initial_capital: float, start_time: int, end_time: int) -> BacktestReport:
    """Report for a run that processed no bars (no trades, no events, empty curve)."""
    return BacktestReport(
        start_time=start_time,
        end_time=end_time,
        initial_capital=initial_capital,
        total_bars=0,
        metrics=calculate_all_metrics([], [], start_time, end_time, initial_capital),
        algo_metrics=create_empty_algo_metrics(),
        equity_curve=[],
        original_equity_points=0,
    )

