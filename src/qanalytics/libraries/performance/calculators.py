"""Stateful performance calculators for single-pass folds.

Calculators carry a small state record and update incrementally as points
arrive. The pure functions in ``metrics`` and ``trade_metrics`` drive them over
a full, already-collected curve; they can equally be fed point by point.

Philosophy:
- Stateful: Maintain internal state between updates
- Incremental: One pass, no look-back over earlier points
- Deterministic: Same update sequence always yields the same result

Usage:
    >>> from qanalytics.libraries.performance.calculators import DailyReturnsCalculator
    >>>
    >>> calc = DailyReturnsCalculator()
    >>> calc.update(0, 10000.0)
    >>> calc.update(86400, 10100.0)
    >>> calc.finalize()
    [0.0, 0.01]
"""

from qanalytics.libraries.performance.models import EquityPoint

SECONDS_PER_DAY = 24 * 60 * 60


class DailyReturnsCalculator:
    """
    Aggregates a (possibly sub-daily) equity stream into daily returns.

    Points are bucketed by calendar day ``floor(timestamp / 86400)``. When a point
    lands on a later day, the previous day closes with return
    ``(last_equity - day_start_equity) / day_start_equity``; the closing equity
    becomes the next day's start. The final partial day contributes a return only
    if its equity moved. Days starting at non-positive equity are skipped.
    """

    def __init__(self) -> None:
        """Initialize daily returns calculator."""
        self._day: int | None = None
        self._day_start_equity = 0.0
        self._last_equity = 0.0
        self._returns: list[float] = []
        self._count = 0

    def update(self, timestamp: int, equity: float) -> None:
        """
        Add next equity sample.

        Args:
            timestamp: Unix seconds (non-decreasing across calls)
            equity: Portfolio value at that time
        """
        self._count += 1
        current_day = timestamp // SECONDS_PER_DAY

        if self._day is None:
            self._day = current_day
            self._day_start_equity = equity
            self._last_equity = equity
            return

        if current_day > self._day:
            if self._day_start_equity > 0:
                self._returns.append((self._last_equity - self._day_start_equity) / self._day_start_equity)
            self._day = current_day
            self._day_start_equity = self._last_equity

        self._last_equity = equity

    def finalize(self) -> list[float]:
        """
        Close the trailing partial day and return all daily returns.

        Returns an empty list when fewer than two points were seen. Does not
        change internal state, so it can be called repeatedly.
        """
        if self._count < 2:
            return []

        returns = list(self._returns)
        if self._day_start_equity > 0 and self._last_equity != self._day_start_equity:
            returns.append((self._last_equity - self._day_start_equity) / self._day_start_equity)
        return returns

    def __len__(self) -> int:
        """Number of points seen."""
        return self._count


class DrawdownDurationCalculator:
    """
    Tracks the longest contiguous underwater span of an equity curve.

    A span opens at the point preceding the first point with drawdown > 0 (or
    at that point itself if it is the first sample) and closes at the first
    point whose drawdown returns to 0. A span still open at the end of the
    curve is not counted.
    """

    def __init__(self) -> None:
        """Initialize drawdown duration calculator."""
        self._previous_time: int | None = None
        self._span_start: int | None = None
        self._max_duration = 0

    def update(self, point: EquityPoint) -> None:
        """
        Fold the next equity point into the running span.

        Args:
            point: Equity point with precomputed drawdown fraction
        """
        if point.drawdown_pct > 0:
            if self._span_start is None:
                self._span_start = self._previous_time if self._previous_time is not None else point.time
        elif self._span_start is not None:
            duration = point.time - self._span_start
            if duration > self._max_duration:
                self._max_duration = duration
            self._span_start = None

        self._previous_time = point.time

    @property
    def max_duration(self) -> int:
        """Longest closed underwater span, in the curve's time units."""
        return self._max_duration

    @property
    def is_underwater(self) -> bool:
        """True while a span is open."""
        return self._span_start is not None
