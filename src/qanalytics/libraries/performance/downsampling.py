"""Equity curve downsampling.

Reduces a long equity-point sequence to a bounded size for storage. Every
strategy keeps the first and last input points and preserves input order.

Strategies:
    - ``lttb``: Largest-Triangle-Three-Buckets style selection, biased toward
      local extrema and inflection points
    - ``drawdown_peaks``: keeps every local drawdown maximum, fills the rest
      evenly (may exceed the target when peaks alone do)
    - ``uniform``: every Nth point

Usage:
    >>> from qanalytics.libraries.performance.downsampling import downsample_equity_curve
    >>> small = downsample_equity_curve(points, 500, strategy="lttb")
"""

import math
from typing import Literal, Sequence, TypeVar

from qanalytics.libraries.performance.models import EquityPoint

T = TypeVar("T")

DownsampleStrategy = Literal["lttb", "drawdown_peaks", "uniform"]


def downsample(points: Sequence[T], factor: int) -> list[T]:
    """
    Keep every ``factor``-th point, always including the last one.

    Args:
        points: Points to downsample
        factor: Step between kept points (<= 1 keeps everything)

    Returns:
        Downsampled list

    Example:
        >>> downsample(list(range(10)), 4)
        [0, 4, 8, 9]
    """
    if factor <= 1:
        return list(points)
    if not points:
        return []

    result = list(points[::factor])

    last_idx = len(points) - 1
    if last_idx % factor != 0:
        result.append(points[last_idx])

    return result


def downsample_to_count(points: Sequence[T], target_count: int) -> list[T]:
    """
    Downsample uniformly to roughly ``target_count`` points.

    Uses step ``ceil(len / target_count)``; the result may be slightly shorter
    than the target, plus the retained last point.
    """
    if target_count >= len(points):
        return list(points)
    if target_count <= 0:
        return []

    factor = math.ceil(len(points) / target_count)
    return downsample(points, factor)


def downsample_with_peaks(points: Sequence[EquityPoint], target_count: int) -> list[EquityPoint]:
    """
    Peak-preserving bucket selection (LTTB).

    The interior (all points but first and last) is split into
    ``target_count - 2`` buckets of floor-computed boundaries. From each bucket
    the point maximizing the triangle area formed with the previously selected
    point and the centroid (mean time, mean equity) of the next bucket is kept.

    Args:
        points: Time-ordered equity points
        target_count: Desired number of output points

    Returns:
        At most ``target_count`` points (first and last always kept); the input
        unchanged when ``target_count >= len(points)``
    """
    if target_count >= len(points):
        return list(points)
    if target_count <= 2:
        return [points[0], points[-1]] if points else []

    n = len(points)
    result = [points[0]]

    bucket_size = (n - 2) / (target_count - 2)
    last_selected = 0

    for i in range(target_count - 2):
        bucket_start = math.floor(1 + i * bucket_size)
        bucket_end = math.floor(1 + (i + 1) * bucket_size)

        # Centroid of the next bucket (inclusive end, clamped to the last point)
        next_start = bucket_end
        next_end = min(math.floor(1 + (i + 2) * bucket_size), n - 1)

        avg_x = 0.0
        avg_y = 0.0
        next_count = 0
        for j in range(next_start, next_end + 1):
            avg_x += points[j].time
            avg_y += points[j].equity
            next_count += 1
        if next_count > 0:
            avg_x /= next_count
            avg_y /= next_count

        anchor = points[last_selected]
        max_area = -1.0
        max_area_index = bucket_start

        for j in range(bucket_start, min(bucket_end, n)):
            point = points[j]
            area = abs(
                (anchor.time - avg_x) * (point.equity - anchor.equity)
                - (anchor.time - point.time) * (avg_y - anchor.equity)
            )
            if area > max_area:
                max_area = area
                max_area_index = j

        result.append(points[max_area_index])
        last_selected = max_area_index

    result.append(points[-1])
    return result


def find_drawdown_peaks(points: Sequence[EquityPoint]) -> set[int]:
    """
    Indices of first, last and every local drawdown maximum.

    An interior index is a peak when its drawdown is >= both neighbours and
    strictly positive.
    """
    if not points:
        return set()

    peaks = {0, len(points) - 1}
    for i in range(1, len(points) - 1):
        prev_dd = points[i - 1].drawdown_pct
        curr_dd = points[i].drawdown_pct
        next_dd = points[i + 1].drawdown_pct
        if curr_dd >= prev_dd and curr_dd >= next_dd and curr_dd > 0:
            peaks.add(i)
    return peaks


def downsample_preserve_drawdown_peaks(points: Sequence[EquityPoint], target_count: int) -> list[EquityPoint]:
    """
    Downsample while never dropping a drawdown peak.

    If peaks (plus first/last) already meet the target, exactly the peak set is
    returned, possibly exceeding the target. Otherwise the remaining quota is
    filled with evenly spaced indices (rounded, deduplicated) across the full
    range.

    Args:
        points: Time-ordered equity points with drawdown fractions
        target_count: Desired number of output points

    Returns:
        Points at the sorted union of chosen indices
    """
    if not points:
        return []
    if target_count >= len(points):
        return list(points)

    indices = find_drawdown_peaks(points)

    if len(indices) >= target_count:
        return [points[i] for i in sorted(indices)]

    remaining = target_count - len(indices)
    step = len(points) / (remaining + 1)

    for i in range(1, remaining + 1):
        idx = _round_half_up(i * step)
        if 0 < idx < len(points) - 1:
            indices.add(idx)

    return [points[i] for i in sorted(indices)]


def downsample_equity_curve(
    points: Sequence[EquityPoint],
    target_count: int,
    strategy: DownsampleStrategy = "lttb",
) -> list[EquityPoint]:
    """
    Downsample an equity curve with the named strategy.

    Args:
        points: Time-ordered equity points
        target_count: Desired number of output points
        strategy: ``"lttb"``, ``"drawdown_peaks"`` or ``"uniform"``

    Returns:
        Downsampled points

    Raises:
        ValueError: If ``strategy`` is not recognised
    """
    if strategy == "lttb":
        return downsample_with_peaks(points, target_count)
    if strategy == "drawdown_peaks":
        return downsample_preserve_drawdown_peaks(points, target_count)
    if strategy == "uniform":
        return downsample_to_count(points, target_count)

    raise ValueError(f"Unknown downsampling strategy: {strategy!r} (expected 'lttb', 'drawdown_peaks' or 'uniform')")


def _round_half_up(value: float) -> int:
    """Round to nearest integer with halves going up (``round()`` rounds to even)."""
    return math.floor(value + 0.5)
