"""Numeric primitives shared by every calculator.

Plain float arithmetic over finite sequences. Empty input yields 0; NaN and
infinity propagate per IEEE-754 and are never filtered.
"""

import math
from typing import Iterable, Sequence


def sum_values(values: Iterable[float]) -> float:
    """
    Sum a sequence of floats, left to right.

    Accumulation order is fixed so that results are bit-identical across runs.

    Example:
        >>> sum_values([1.0, 2.5, -0.5])
        3.0
    """
    total = 0.0
    for value in values:
        total += value
    return total


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return sum_values(values) / len(values)


def stddev_population(values: Sequence[float]) -> float:
    """
    Population standard deviation (divisor N, not N-1).

    Returns 0 for an empty sequence.

    Example:
        >>> stddev_population([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        2.0
    """
    if len(values) == 0:
        return 0.0

    m = mean(values)
    sum_sq = 0.0
    for value in values:
        d = value - m
        sum_sq += d * d

    return math.sqrt(sum_sq / len(values))
