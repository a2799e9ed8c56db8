"""Unit tests for ReportingService and ReportingConfig."""

import math

import pytest
from pydantic import ValidationError

from qanalytics.libraries.performance import SwapMetrics, calculate_all_metrics
from qanalytics.services.reporting import BacktestReport, ReportingConfig, ReportingService, create_empty_report
from qanalytics.system import config as config_module
from qanalytics.system import LoggerFactory, LoggingConfig, reload_system_config

from builders import condition_change, flip, make_swap_trade, transition

HOUR = 3600


@pytest.fixture
def long_curve(equity_curve_factory):
    """1500 hourly points with a dip every 100 bars."""
    equities = [10000.0 + i - (50.0 if i % 100 == 50 else 0.0) for i in range(1500)]
    return equity_curve_factory(equities, step=HOUR)


@pytest.fixture
def trades(make_trade):
    return [make_trade(100.0), make_trade(-30.0, "SHORT"), make_trade(50.0), make_trade(-20.0, "SHORT")]


@pytest.fixture
def algo_events():
    return [
        flip(10, new_value=True, distance=0),
        condition_change(10),
        transition(10, "CASH", "LONG", "ENTRY_SIGNAL"),
        transition(400, "LONG", "CASH", "EXIT_SIGNAL"),
    ]


@pytest.fixture
def restore_quiet_logging():
    """Put the session's WARNING console logging back after a test reconfigures it."""
    yield
    LoggerFactory.configure(LoggingConfig(level="WARNING", enable_file=False))


class TestReportingConfig:
    """Test ReportingConfig defaults and validation."""

    def test_defaults(self):
        # Arrange & Act
        config = ReportingConfig()

        # Assert
        assert config.initial_capital == 10000.0
        assert config.risk_free_rate == 0.0
        assert config.trading_days_per_year == 365
        assert config.downsample_strategy == "lttb"
        assert config.downsample_target_points == 1000

    @pytest.mark.parametrize(
        "overrides",
        [{"downsample_target_points": 1}, {"downsample_strategy": "random"}, {"trading_days_per_year": 0}],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            ReportingConfig(**overrides)

    def test_frozen(self):
        config = ReportingConfig()
        with pytest.raises(ValidationError):
            config.initial_capital = 5.0

    def test_from_system_config(self, tmp_path, monkeypatch):
        """Test values are seeded from the YAML-backed system config."""
        # Arrange
        monkeypatch.setattr(config_module, "_system_config", None)
        config_file = tmp_path / "qanalytics.yaml"
        config_file.write_text(
            "analytics:\n  initial_capital: 25000\n  risk_free_rate: 0.03\n"
            "downsampling:\n  strategy: uniform\n  target_points: 200\n"
        )
        reload_system_config(config_file)

        # Act
        config = ReportingConfig.from_system_config()

        # Assert
        assert config.initial_capital == 25000.0
        assert config.risk_free_rate == 0.03
        assert config.downsample_strategy == "uniform"
        assert config.downsample_target_points == 200

    def test_from_system_config_target_return(self, tmp_path, monkeypatch):
        """Test the annual Sortino target is carried over from the system config."""
        # Arrange
        monkeypatch.setattr(config_module, "_system_config", None)
        config_file = tmp_path / "qanalytics.yaml"
        config_file.write_text("analytics:\n  target_return: 0.5\n")
        reload_system_config(config_file)

        # Act
        config = ReportingConfig.from_system_config()

        # Assert
        assert config.target_return == 0.5


class TestServiceFromSystemConfig:
    """Test building the service from the YAML-backed system config."""

    def test_applies_logging_section(self, tmp_path, monkeypatch, restore_quiet_logging):
        # Arrange
        monkeypatch.setattr(config_module, "_system_config", None)
        config_file = tmp_path / "qanalytics.yaml"
        config_file.write_text("analytics:\n  trading_days_per_year: 252\nlogging:\n  level: DEBUG\n")
        monkeypatch.setenv("QANALYTICS_CONFIG", str(config_file))

        # Act
        service = ReportingService.from_system_config()

        # Assert
        assert LoggerFactory.get_config().level == "DEBUG"
        assert service.config.trading_days_per_year == 252


class TestBuildReport:
    """Test report assembly."""

    def test_metrics_use_full_curve(self, trades, long_curve, algo_events):
        """Test metrics are computed before downsampling."""
        # Arrange
        service = ReportingService()
        end_time = long_curve[-1].time

        # Act
        report = service.build_report(trades, long_curve, algo_events, 1500, 0, end_time)

        # Assert
        assert report.metrics == calculate_all_metrics(trades, long_curve, 0, end_time, 10000.0)
        assert report.original_equity_points == 1500
        assert len(report.equity_curve) == 1000
        assert report.downsample_strategy == "lttb"

    def test_algo_and_totals(self, trades, long_curve, algo_events):
        # Act
        report = ReportingService().build_report(trades, long_curve, algo_events, 1500, 0, long_curve[-1].time)

        # Assert
        assert report.total_bars == 1500
        assert report.algo_metrics.event_counts.state_transitions == 2
        assert report.algo_metrics.condition_trigger_counts["LONG_ENTRY"] == 1
        assert report.final_equity == 10100.0
        assert report.total_return_pct == pytest.approx(0.01)
        assert report.swap_metrics is None

    def test_short_curve_kept(self, trades, equity_curve_factory):
        """Test curves at or under the target are stored untouched."""
        # Arrange
        curve = equity_curve_factory([10000.0, 10050.0, 10100.0])

        # Act
        report = ReportingService().build_report(trades, curve, [], 3, 0, curve[-1].time)

        # Assert
        assert report.equity_curve == curve
        assert report.downsample_strategy is None

    def test_downsampling_disabled(self, trades, long_curve):
        # Arrange
        service = ReportingService(ReportingConfig(downsample_enabled=False))

        # Act
        report = service.build_report(trades, long_curve, [], 1500, 0, long_curve[-1].time)

        # Assert
        assert len(report.equity_curve) == 1500
        assert report.downsample_strategy is None

    def test_drawdown_peaks_strategy(self, trades, long_curve):
        """Test every dip survives drawdown-peak downsampling."""
        # Arrange
        service = ReportingService(ReportingConfig(downsample_strategy="drawdown_peaks", downsample_target_points=50))

        # Act
        report = service.build_report(trades, long_curve, [], 1500, 0, long_curve[-1].time)

        # Assert
        kept = {p.bar_index for p in report.equity_curve}
        assert {i for i in range(1500) if i % 100 == 50} <= kept
        assert report.downsample_strategy == "drawdown_peaks"

    def test_swap_metrics_included(self, trades, long_curve):
        # Act
        report = ReportingService().build_report(trades, long_curve, [], 1500, 0, long_curve[-1].time, swap_trades=[])

        # Assert
        assert report.swap_metrics == SwapMetrics()

    def test_swap_metrics_share_ratio_conventions(self, trades, long_curve):
        """Test swap ratios use the same annualization base and target as the summary."""
        # Arrange
        service = ReportingService(ReportingConfig(trading_days_per_year=252, target_return=0.1))
        swap_trades = [make_swap_trade(1, 100.0), make_swap_trade(2, -30.0, "SHORT")]

        # Act
        report = service.build_report(trades, long_curve, [], 1500, 0, long_curve[-1].time, swap_trades=swap_trades)

        # Assert
        assert report.swap_metrics.sharpe_ratio == pytest.approx(report.metrics.summary.sharpe_ratio)
        assert report.swap_metrics.sortino_ratio == pytest.approx(report.metrics.summary.sortino_ratio)

    def test_capital_from_config(self, trades, long_curve):
        # Act
        report = ReportingService(ReportingConfig(initial_capital=1000.0)).build_report(
            trades, long_curve, [], 1500, 0, long_curve[-1].time
        )

        # Assert
        assert report.initial_capital == 1000.0
        assert report.total_return_pct == pytest.approx(0.1)


class TestEmptyReport:
    """Test reports for runs with no bars."""

    def test_create_empty_report(self):
        # Act
        report = create_empty_report(10000.0, 0, 0)

        # Assert
        assert isinstance(report, BacktestReport)
        assert report.final_equity == 10000.0
        assert report.total_return_pct == 0.0
        assert report.equity_curve == []
        assert report.metrics.summary.number_of_trades == 0
        assert report.algo_metrics.state_distribution.pct_time_flat == 1.0

    def test_zero_capital_return(self):
        report = create_empty_report(0.0, 0, 100)
        assert report.total_return_pct == 0.0

    def test_inf_survives_model_dump(self, make_trade):
        """Test inf sentinels stay floats when the report is dumped."""
        # Act
        report = ReportingService().build_report([make_trade(10.0)], [], [], 0, 0, 86400)

        # Assert
        assert report.model_dump()["metrics"]["additional"]["profit_factor"] == math.inf
