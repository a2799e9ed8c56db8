"""Tests for state distribution and exit reason breakdown."""

import pytest

from qanalytics.libraries.diagnostics.models import ExitReasonBreakdown, StateDistribution
from qanalytics.libraries.diagnostics.states import calculate_exit_reason_breakdown, calculate_state_distribution

from builders import transition


@pytest.fixture
def round_trips():
    """Long 10-30, short 50-60, timeout 60-70, flat otherwise, 100 bars."""
    return [
        transition(10, "CASH", "LONG", "ENTRY_SIGNAL"),
        transition(30, "LONG", "CASH", "EXIT_SIGNAL"),
        transition(50, "CASH", "SHORT", "ENTRY_SIGNAL"),
        transition(60, "SHORT", "TIMEOUT", "STOP_LOSS"),
        transition(70, "TIMEOUT", "CASH", "END_OF_BACKTEST"),
    ]


class TestStateDistribution:
    """Test time-in-state fractions and averages."""

    def test_fractions_and_averages(self, round_trips):
        # Act
        dist = calculate_state_distribution(round_trips, total_bars=100)

        # Assert
        assert dist.pct_time_flat == pytest.approx(0.7)
        assert dist.pct_time_long == pytest.approx(0.2)
        assert dist.pct_time_short == pytest.approx(0.1)
        assert dist.avg_time_long_bars == 20.0
        assert dist.avg_time_short_bars == 10.0

    def test_flat_average_excludes_timeout(self, round_trips):
        """Test TIMEOUT counts as flat time but not as a flat stay."""
        dist = calculate_state_distribution(round_trips, total_bars=100)
        assert dist.avg_time_flat_bars == 20.0

    def test_fractions_sum_to_one(self, round_trips):
        dist = calculate_state_distribution(round_trips, total_bars=137)
        assert dist.pct_time_flat + dist.pct_time_long + dist.pct_time_short == pytest.approx(1.0)

    def test_unsorted_input(self, round_trips):
        shuffled = [round_trips[i] for i in (3, 0, 4, 2, 1)]
        assert calculate_state_distribution(shuffled, 100) == calculate_state_distribution(round_trips, 100)

    def test_no_transitions_is_all_flat(self):
        assert calculate_state_distribution([], 250) == StateDistribution(pct_time_flat=1.0, avg_time_flat_bars=250.0)

    def test_zero_bars(self, round_trips):
        assert calculate_state_distribution(round_trips, 0) == StateDistribution()

    def test_open_position_runs_to_end(self):
        # Act
        dist = calculate_state_distribution([transition(25, "CASH", "LONG", "ENTRY_SIGNAL")], 100)

        # Assert
        assert dist.pct_time_long == pytest.approx(0.75)
        assert dist.avg_time_long_bars == 75.0
        assert dist.avg_time_flat_bars == 25.0


class TestExitReasonBreakdown:
    """Test exit bucketing."""

    def test_counts_exits_into_flat_states(self, round_trips):
        # Act
        breakdown = calculate_exit_reason_breakdown(round_trips)

        # Assert
        assert breakdown == ExitReasonBreakdown(signal=1, stop_loss=1, end_of_backtest=1)

    def test_entries_ignored(self):
        # Arrange
        transitions = [
            transition(1, "CASH", "LONG", "ENTRY_SIGNAL"),
            transition(2, "LONG", "CASH", "TRAILING_STOP"),
            transition(3, "CASH", "SHORT", "ENTRY_SIGNAL"),
            transition(4, "SHORT", "CASH", "TAKE_PROFIT"),
        ]

        # Act
        breakdown = calculate_exit_reason_breakdown(transitions)

        # Assert
        assert breakdown == ExitReasonBreakdown(trailing_stop=1, take_profit=1)

    def test_empty(self):
        assert calculate_exit_reason_breakdown([]) == ExitReasonBreakdown()
