"""Tests for the trade metrics calculator."""

import math

import pytest

from qanalytics.libraries.performance.models import AllMetrics, ExitReason, SummaryMetrics
from qanalytics.libraries.performance.trade_metrics import (
    calculate_additional_metrics,
    calculate_all_metrics,
    calculate_duration_analysis,
    calculate_max_drawdown_duration,
    calculate_performance_metrics,
    calculate_pnl_analysis,
    calculate_summary_metrics,
    calculate_trade_statistics,
    count_exits_by_reason,
)

from builders import DAY, build_equity_curve

YEAR = 365 * DAY


@pytest.fixture
def mixed_trades(make_trade):
    """+100 LONG, -30 SHORT, +50 LONG, -20 SHORT."""
    return [
        make_trade(100.0, "LONG", duration_bars=10, exit_reason=ExitReason.TAKE_PROFIT),
        make_trade(-30.0, "SHORT", duration_bars=4, exit_reason=ExitReason.STOP_LOSS),
        make_trade(50.0, "LONG", duration_bars=6),
        make_trade(-20.0, "SHORT", duration_bars=2),
    ]


class TestSummaryMetrics:
    """Test headline metrics."""

    def test_mixed_trades(self, mixed_trades):
        """Test win rate, total and extremes for a 2-win 2-loss run."""
        # Act
        summary = calculate_summary_metrics(mixed_trades, [])

        # Assert
        assert summary.number_of_trades == 4
        assert summary.win_rate == 0.5
        assert summary.total_pnl_usd == 100.0
        assert summary.largest_win_usd == 100.0
        assert summary.largest_loss_usd == 30.0

    def test_empty_trades_all_zero(self):
        """Test no trades produces the zeroed summary without raising."""
        assert calculate_summary_metrics([], build_equity_curve([100.0, 90.0])) == SummaryMetrics()

    def test_zero_pnl_trade_is_neither(self, make_trade):
        """Test break-even trades dilute win rate but are not losses."""
        # Act
        summary = calculate_summary_metrics([make_trade(10.0), make_trade(0.0)], [])

        # Assert
        assert summary.win_rate == 0.5
        assert summary.largest_loss_usd == 0.0

    def test_drawdown_and_runup_read_from_curve(self, mixed_trades):
        """Test extremes come from the supplied drawdown/run-up fractions."""
        # Arrange
        curve = build_equity_curve([10000.0, 10100.0, 10000.0, 10200.0, 10300.0])

        # Act
        summary = calculate_summary_metrics(mixed_trades, curve)

        # Assert
        assert summary.max_equity_drawdown_pct == pytest.approx(100 / 10100)
        assert summary.max_equity_runup_pct == pytest.approx(0.03)
        assert summary.sharpe_ratio > 0
        assert summary.sortino_ratio > 0


    def test_sortino_target_return(self, mixed_trades):
        """Test a positive annual target counts flat and small days as downside."""
        # Arrange
        curve = build_equity_curve([10000.0, 10100.0, 10200.0, 10300.0])

        # Act
        default = calculate_summary_metrics(mixed_trades, curve)
        targeted = calculate_summary_metrics(mixed_trades, curve, target_return=0.5)

        # Assert
        assert math.isinf(default.sortino_ratio)
        assert math.isfinite(targeted.sortino_ratio)
        assert targeted.sortino_ratio > 0
        assert targeted.sharpe_ratio == default.sharpe_ratio

    def test_all_metrics_passes_target_return(self, mixed_trades):
        # Arrange
        curve = build_equity_curve([10000.0, 10100.0, 10200.0, 10300.0])

        # Act
        result = calculate_all_metrics(mixed_trades, curve, 0, 3 * DAY, 10000.0, target_return=0.5)

        # Assert
        assert result.summary == calculate_summary_metrics(mixed_trades, curve, target_return=0.5)


class TestPerformanceMetrics:
    """Test net/gross profit by direction."""

    def test_split_by_direction(self, mixed_trades):
        # Act
        perf = calculate_performance_metrics(mixed_trades)

        # Assert
        assert perf.net_profit.total == 100.0
        assert perf.net_profit.long == 150.0
        assert perf.net_profit.short == -50.0
        assert perf.gross_profit.total == 150.0
        assert perf.gross_profit.short == 0.0
        assert perf.gross_loss.total == 50.0
        assert perf.gross_loss.long == 0.0
        assert perf.gross_loss.short == 50.0


class TestTradesAnalysis:
    """Test statistics, P&L and duration analyses."""

    def test_statistics(self, mixed_trades):
        # Act
        stats = calculate_trade_statistics(mixed_trades)

        # Assert
        assert stats.total_trades == 4
        assert stats.winning_trades_count.long == 2
        assert stats.losing_trades_count.short == 2
        assert stats.percent_profitable.long == 1.0
        assert stats.percent_profitable.short == 0.0

    def test_pnl_analysis_losses_are_magnitudes(self, mixed_trades):
        # Act
        pnl = calculate_pnl_analysis(mixed_trades)

        # Assert
        assert pnl.avg_pnl.long == 75.0
        assert pnl.avg_winning_trade.long == 75.0
        assert pnl.avg_losing_trade.short == 25.0
        assert pnl.largest_winning_trade.long == 100.0
        assert pnl.largest_losing_trade.short == 30.0
        assert pnl.avg_winning_trade.short == 0.0

    def test_duration_analysis(self, mixed_trades):
        # Act
        duration = calculate_duration_analysis(mixed_trades)

        # Assert
        assert duration.avg_trade_duration_bars.long == 8.0
        assert duration.avg_trade_duration_bars.short == 3.0
        assert duration.avg_losing_trade_duration_bars.short == 3.0
        assert duration.avg_losing_trade_duration_bars.long == 0.0

    def test_single_direction_never_nan(self, make_trade):
        """Test an empty direction reports 0 rather than NaN."""
        # Act
        stats = calculate_trade_statistics([make_trade(10.0, "LONG")])
        pnl = calculate_pnl_analysis([make_trade(10.0, "LONG")])

        # Assert
        assert stats.percent_profitable.short == 0.0
        assert pnl.avg_pnl.short == 0.0


class TestAdditionalMetrics:
    """Test risk and activity metrics."""

    def test_one_year_run(self, mixed_trades):
        """Test profit factor, expectancy, CAGR and activity over 365 days."""
        # Act
        additional = calculate_additional_metrics(mixed_trades, [], 0, YEAR, 10000.0)

        # Assert
        assert additional.profit_factor == pytest.approx(3.0)
        assert additional.expectancy == 25.0
        assert additional.cagr == pytest.approx(0.01)
        assert additional.annualized_return_pct == pytest.approx(0.01)
        assert additional.trades_per_day == pytest.approx(4 / 365)
        assert additional.calmar_ratio == math.inf

    def test_profit_factor_sentinel(self, make_trade):
        """Test winners without losers give an infinite profit factor."""
        # Act
        additional = calculate_additional_metrics([make_trade(50.0), make_trade(25.0)], [], 0, DAY, 10000.0)

        # Assert
        assert additional.profit_factor == math.inf

    def test_drawdown_from_curve(self, mixed_trades):
        """Test currency drawdown scales the max fraction by initial capital."""
        # Arrange
        curve = build_equity_curve([10000.0, 9000.0, 10000.0, 10100.0])

        # Act
        additional = calculate_additional_metrics(mixed_trades, curve, 0, 3 * DAY, 10000.0)

        # Assert
        assert additional.max_drawdown_usd == pytest.approx(1000.0)
        assert additional.max_drawdown_duration_seconds == 2 * DAY
        assert additional.calmar_ratio == pytest.approx(additional.cagr / 0.1)
        assert additional.daily_volatility > 0
        assert additional.annualized_volatility == pytest.approx(additional.daily_volatility * math.sqrt(365))

    def test_zero_length_run(self):
        """Test a zero-duration backtest yields zeros instead of dividing by zero."""
        # Act
        additional = calculate_additional_metrics([], [], 1000, 1000, 10000.0)

        # Assert
        assert additional.cagr == 0.0
        assert additional.trades_per_day == 0.0
        assert additional.annualized_return_pct == 0.0
        assert additional.calmar_ratio == 0.0
        assert additional.profit_factor == 0.0


class TestExitsAndDrawdownDuration:
    """Test exit reason tally and drawdown duration."""

    def test_exit_counts_cover_every_reason(self, make_trade):
        # Arrange
        trades = [
            make_trade(10.0, exit_reason=ExitReason.SIGNAL),
            make_trade(-5.0, exit_reason=ExitReason.STOP_LOSS),
            make_trade(20.0, exit_reason=ExitReason.TAKE_PROFIT),
            make_trade(3.0, exit_reason=ExitReason.SIGNAL),
            make_trade(8.0, exit_reason=ExitReason.TRAILING_STOP),
            make_trade(-2.0, "SHORT", exit_reason=ExitReason.END_OF_BACKTEST),
        ]

        # Act
        counts = count_exits_by_reason(trades)

        # Assert
        assert counts == {
            ExitReason.SIGNAL: 2,
            ExitReason.STOP_LOSS: 1,
            ExitReason.TAKE_PROFIT: 1,
            ExitReason.TRAILING_STOP: 1,
            ExitReason.END_OF_BACKTEST: 1,
        }

    def test_exit_counts_empty(self):
        assert set(count_exits_by_reason([]).values()) == {0}

    def test_max_drawdown_duration(self):
        """Test the longest recovered span wins and the open tail is ignored."""
        # Arrange
        curve = build_equity_curve([100.0, 90.0, 95.0, 100.0, 80.0, 100.0, 70.0])

        # Act & Assert
        assert calculate_max_drawdown_duration(curve) == 3 * DAY


class TestCalculateAllMetrics:
    """Test the combined entry point."""

    def test_bundles_all_families(self, mixed_trades):
        # Arrange
        curve = build_equity_curve([10000.0, 10100.0, 10000.0, 10200.0, 10100.0])

        # Act
        result = calculate_all_metrics(mixed_trades, curve, 0, 4 * DAY, 10000.0)

        # Assert
        assert isinstance(result, AllMetrics)
        assert result.summary.total_pnl_usd == 100.0
        assert result.performance.net_profit.total == 100.0
        assert result.analysis.statistics.total_trades == 4
        assert result.additional.exits_by_reason[ExitReason.STOP_LOSS] == 1

    def test_empty_run(self):
        """Test no trades and no curve is a valid, all-zero result."""
        # Act
        result = calculate_all_metrics([], [], 0, 0, 10000.0)

        # Assert
        assert result.summary == SummaryMetrics()
        assert result.additional.expectancy == 0.0

    def test_infinity_survives_serialization(self, make_trade):
        """Test inf sentinels round-trip through model_dump."""
        # Act
        result = calculate_all_metrics([make_trade(10.0)], [], 0, YEAR, 10000.0)
        dumped = result.model_dump()

        # Assert
        assert dumped["additional"]["profit_factor"] == math.inf
        assert AllMetrics.model_validate(dumped).additional.profit_factor == math.inf
