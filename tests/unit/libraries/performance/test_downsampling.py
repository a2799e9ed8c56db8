"""Tests for equity curve downsampling."""

import pytest

from qanalytics.libraries.performance.downsampling import (
    downsample,
    downsample_equity_curve,
    downsample_preserve_drawdown_peaks,
    downsample_to_count,
    downsample_with_peaks,
    find_drawdown_peaks,
)

from builders import build_equity_curve


def indices(points):
    return [p.bar_index for p in points]


class TestUniform:
    """Test every-Nth-point downsampling."""

    def test_keeps_last_point(self):
        assert downsample(list(range(10)), 4) == [0, 4, 8, 9]

    def test_last_point_not_duplicated(self):
        assert downsample(list(range(10)), 3) == [0, 3, 6, 9]

    @pytest.mark.parametrize("factor", [1, 0, -2])
    def test_small_factor_keeps_everything(self, factor):
        assert downsample([1, 2, 3], factor) == [1, 2, 3]

    def test_empty(self):
        assert downsample([], 5) == []

    def test_to_count_uses_ceil_step(self):
        """Test step is ceil(len / target) and the last point is appended."""
        # Act
        result = downsample_to_count(list(range(100)), 10)

        # Assert
        assert result == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 99]

    def test_to_count_target_not_smaller(self):
        assert downsample_to_count([1, 2, 3], 3) == [1, 2, 3]

    def test_to_count_non_positive_target(self):
        assert downsample_to_count([1, 2, 3], 0) == []


class TestLTTB:
    """Test peak-preserving bucket selection."""

    def test_exact_size_and_order(self):
        """Test output has target size, keeps endpoints and input order."""
        # Arrange
        curve = build_equity_curve([10000.0 + (i % 7) * 13 - (i % 3) * 5 for i in range(500)])

        # Act
        result = downsample_with_peaks(curve, 50)

        # Assert
        assert len(result) == 50
        assert result[0] is curve[0]
        assert result[-1] is curve[-1]
        assert indices(result) == sorted(indices(result))

    def test_spike_survives(self):
        """Test a single extreme point on a flat curve is selected."""
        # Arrange
        equities = [100.0] * 101
        equities[50] = 250.0
        curve = build_equity_curve(equities)

        # Act
        result = downsample_with_peaks(curve, 10)

        # Assert
        assert 50 in indices(result)

    def test_target_not_smaller_returns_input(self):
        curve = build_equity_curve([1.0, 2.0, 3.0])
        assert downsample_with_peaks(curve, 3) == curve

    def test_target_two_keeps_endpoints(self):
        curve = build_equity_curve([1.0, 2.0, 3.0, 4.0])
        assert indices(downsample_with_peaks(curve, 2)) == [0, 3]


class TestDrawdownPeaks:
    """Test drawdown-peak detection and preservation."""

    def test_find_peaks(self):
        """Test local drawdown maxima plus both endpoints."""
        # Arrange
        curve = build_equity_curve([100.0, 90.0, 100.0, 80.0, 100.0])

        # Act & Assert
        assert find_drawdown_peaks(curve) == {0, 1, 3, 4}

    def test_flat_curve_has_only_endpoints(self):
        assert find_drawdown_peaks(build_equity_curve([5.0] * 6)) == {0, 5}

    def test_empty(self):
        assert find_drawdown_peaks([]) == set()
        assert downsample_preserve_drawdown_peaks([], 10) == []

    def test_fills_evenly_with_half_up_rounding(self):
        """Test 9 flat points to 3 picks index 5 (4.5 rounds up)."""
        # Arrange
        curve = build_equity_curve([100.0] * 9)

        # Act & Assert
        assert indices(downsample_preserve_drawdown_peaks(curve, 3)) == [0, 5, 8]

    def test_fill_positions(self):
        """Test remaining quota lands at rounded multiples of len / (remaining + 1)."""
        # Arrange
        curve = build_equity_curve([100.0] * 11)

        # Act & Assert
        assert indices(downsample_preserve_drawdown_peaks(curve, 4)) == [0, 4, 7, 10]

    def test_peaks_always_kept(self):
        """Test every drawdown peak is present in the output."""
        # Arrange
        equities = [100.0 + i for i in range(60)]
        for dip in (12, 31, 47):
            equities[dip] -= 20.0
        curve = build_equity_curve(equities)

        # Act
        result = downsample_preserve_drawdown_peaks(curve, 10)

        # Assert
        assert {12, 31, 47} <= set(indices(result))
        assert indices(result) == sorted(set(indices(result)))

    def test_peaks_may_exceed_target(self):
        """Test the exact peak set is returned when it alone meets the target."""
        # Arrange
        curve = build_equity_curve([100.0, 90.0, 100.0, 90.0, 100.0, 90.0, 100.0, 100.0])

        # Act
        result = downsample_preserve_drawdown_peaks(curve, 3)

        # Assert
        assert indices(result) == [0, 1, 3, 5, 7]


class TestDownsampleEquityCurve:
    """Test strategy dispatch."""

    def test_dispatch(self):
        # Arrange
        curve = build_equity_curve([100.0 + (i % 5) for i in range(40)])

        # Act & Assert
        assert downsample_equity_curve(curve, 8, "lttb") == downsample_with_peaks(curve, 8)
        assert downsample_equity_curve(curve, 8, "drawdown_peaks") == downsample_preserve_drawdown_peaks(curve, 8)
        assert downsample_equity_curve(curve, 8, "uniform") == downsample_to_count(curve, 8)

    def test_default_is_lttb(self):
        curve = build_equity_curve([100.0 + (i % 5) for i in range(40)])
        assert downsample_equity_curve(curve, 8) == downsample_with_peaks(curve, 8)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown downsampling strategy"):
            downsample_equity_curve(build_equity_curve([1.0, 2.0, 3.0]), 2, "random")
