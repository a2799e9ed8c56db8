"""Indicator analysis.

Ranks indicators by how much they shape entry/exit decisions: how often they
flip, how balanced their true/false time is, and (for required indicators) how
often they trigger or block their condition.
"""

from typing import NamedTuple, Sequence

from qanalytics.libraries.diagnostics.events import ConditionChangeEvent, IndicatorFlipEvent
from qanalytics.libraries.diagnostics.models import IndicatorAnalysis
from qanalytics.libraries.performance.stats import mean

# A false flip at this distance means the indicator was the only unmet
# required sub-condition. Assumes integer distances.
BLOCKING_DISTANCE = 1

# Usefulness score
BASE_SCORE = 50.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

HIGH_FLIP_RATE = 0.5
HIGH_FLIP_RATE_PENALTY = 10.0
GOOD_FLIP_RATE_RANGE = (0.01, 0.2)
GOOD_FLIP_RATE_BONUS = 15.0
LOW_FLIP_RATE = 0.001
LOW_FLIP_RATE_PENALTY = 15.0

EXTREME_TRUE_HIGH = 0.95
EXTREME_TRUE_LOW = 0.05
EXTREME_TRUE_PENALTY = 20.0
BALANCED_TRUE_RANGE = (0.3, 0.7)
BALANCED_TRUE_BONUS = 15.0

POINTS_PER_TRIGGER = 3.0
POINTS_PER_BLOCK = 2.0
IMPACT_CAP = 15.0


class DurationStats(NamedTuple):
    avg_duration_true_bars: float
    avg_duration_false_bars: float
    pct_time_true: float


def calculate_duration_stats(flips: Sequence[IndicatorFlipEvent], total_bars: int) -> DurationStats:
    """
    Average true/false run lengths and fraction of time true for one indicator.

    Flips are sorted by bar index (on a copy). The state before the first flip
    is that flip's ``previous_value`` and runs from bar 0. The last state runs
    to ``total_bars``. Zero-length runs are ignored.

    Args:
        flips: Flip events of a single indicator, any order
        total_bars: Bars in the simulation

    Returns:
        DurationStats; all zeros for no flips
    """
    if not flips:
        return DurationStats(0.0, 0.0, 0.0)

    ordered = sorted(flips, key=lambda f: f.bar_index)
    true_runs: list[float] = []
    false_runs: list[float] = []

    last_bar = 0
    value = ordered[0].previous_value
    for flip in ordered:
        duration = flip.bar_index - last_bar
        if duration > 0:
            (true_runs if value else false_runs).append(float(duration))
        last_bar = flip.bar_index
        value = flip.new_value

    tail = total_bars - last_bar
    if tail > 0:
        (true_runs if value else false_runs).append(float(tail))

    total_true = sum(true_runs)
    total_time = total_true + sum(false_runs)

    return DurationStats(
        avg_duration_true_bars=mean(true_runs),
        avg_duration_false_bars=mean(false_runs),
        pct_time_true=total_true / total_time if total_time > 0 else 0.0,
    )


def calculate_blocking_count(flips: Sequence[IndicatorFlipEvent]) -> int:
    """Count false flips that left the indicator as the single remaining blocker."""
    return sum(
        1
        for flip in flips
        if not flip.new_value and flip.condition_snapshot.distance_from_trigger == BLOCKING_DISTANCE
    )


def calculate_usefulness_score(
    flip_count: int,
    pct_time_true: float,
    triggering_flip_count: int,
    blocking_count: int,
    total_bars: int,
    is_required: bool,
) -> float:
    """
    Heuristic 0..100 score of an indicator's contribution.

    Starts at 50 and adjusts for flip rate (flips per bar), time balance and,
    for required indicators only, capped triggering and blocking impact.
    """
    score = BASE_SCORE

    flip_rate = flip_count / max(total_bars, 1)
    if flip_rate > HIGH_FLIP_RATE:
        score -= HIGH_FLIP_RATE_PENALTY
    elif GOOD_FLIP_RATE_RANGE[0] < flip_rate < GOOD_FLIP_RATE_RANGE[1]:
        score += GOOD_FLIP_RATE_BONUS
    elif flip_rate < LOW_FLIP_RATE:
        score -= LOW_FLIP_RATE_PENALTY

    if pct_time_true > EXTREME_TRUE_HIGH or pct_time_true < EXTREME_TRUE_LOW:
        score -= EXTREME_TRUE_PENALTY
    elif BALANCED_TRUE_RANGE[0] < pct_time_true < BALANCED_TRUE_RANGE[1]:
        score += BALANCED_TRUE_BONUS

    if is_required:
        if triggering_flip_count > 0:
            score += min(IMPACT_CAP, triggering_flip_count * POINTS_PER_TRIGGER)
        if blocking_count > 0:
            score += min(IMPACT_CAP, blocking_count * POINTS_PER_BLOCK)

    return max(MIN_SCORE, min(MAX_SCORE, score))


def calculate_indicator_analysis(
    flips: Sequence[IndicatorFlipEvent],
    condition_changes: Sequence[ConditionChangeEvent],
    total_bars: int,
) -> list[IndicatorAnalysis]:
    """
    One analysis row per indicator key, sorted by usefulness (highest first).

    Indicator type, condition type and required flag come from the key's
    first flip in stream order. Ties keep first-appearance order.

    Args:
        flips: All indicator flip events
        condition_changes: All condition change events (for triggering counts)
        total_bars: Bars in the simulation

    Returns:
        Ranked list of IndicatorAnalysis
    """
    by_key: dict[str, list[IndicatorFlipEvent]] = {}
    for flip in flips:
        by_key.setdefault(flip.indicator_key, []).append(flip)

    triggering: dict[str, int] = {}
    for change in condition_changes:
        if change.new_state and change.triggering_indicator_key:
            key = change.triggering_indicator_key
            triggering[key] = triggering.get(key, 0) + 1

    analyses: list[IndicatorAnalysis] = []
    for key, key_flips in by_key.items():
        first = key_flips[0]
        durations = calculate_duration_stats(key_flips, total_bars)
        triggering_count = triggering.get(key, 0)
        blocking_count = calculate_blocking_count(key_flips)

        analyses.append(
            IndicatorAnalysis(
                indicator_key=key,
                indicator_type=first.indicator_type,
                condition_type=first.condition_type,
                is_required=first.is_required,
                flip_count=len(key_flips),
                avg_duration_true_bars=durations.avg_duration_true_bars,
                avg_duration_false_bars=durations.avg_duration_false_bars,
                pct_time_true=durations.pct_time_true,
                triggering_flip_count=triggering_count,
                blocking_count=blocking_count,
                usefulness_score=calculate_usefulness_score(
                    len(key_flips),
                    durations.pct_time_true,
                    triggering_count,
                    blocking_count,
                    total_bars,
                    first.is_required,
                ),
            )
        )

    return sorted(analyses, key=lambda a: a.usefulness_score, reverse=True)
