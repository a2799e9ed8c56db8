"""Algo diagnostic report models.

Pure output structures of the diagnostic analyzer. Fractions are 0..1, bar
counts are in simulation bars.
"""

from pydantic import BaseModel, Field

from qanalytics.libraries.diagnostics.events import ConditionType


class IndicatorAnalysis(BaseModel):
    """
    Per-indicator tuning row.

    A low ``usefulness_score`` means the indicator is always true (useless),
    never flips (too strict), or never decides a condition.
    """

    indicator_key: str
    indicator_type: str
    condition_type: ConditionType
    is_required: bool
    flip_count: int
    avg_duration_true_bars: float
    avg_duration_false_bars: float
    pct_time_true: float
    triggering_flip_count: int  # Times this indicator was the deciding factor
    blocking_count: int  # Times it was the last unmet required sub-condition
    usefulness_score: float  # 0..100


class ApproachSequence(BaseModel):
    """A run of non-triggering evaluations tracking how close a condition got."""

    start_bar: int
    end_bar: int
    start_distance: int
    min_distance: int
    triggered: bool = False
    condition_type: ConditionType


class NearMissAnalysis(BaseModel):
    """
    How close one condition type came to firing.

    ``distance_histogram`` maps distance to count, e.g. ``{0: 5, 1: 23}`` means
    the condition fired 5 times and was one sub-condition away 23 times.
    """

    condition_type: ConditionType
    distance_histogram: dict[int, int] = Field(default_factory=dict)
    closest_approach_without_trigger: int = 0
    approach_sequences: list[ApproachSequence] = Field(default_factory=list)
    total_evaluations: int = 0
    trigger_count: int = 0


class StateDistribution(BaseModel):
    """Time spent per position state. TIMEOUT is folded into flat."""

    pct_time_flat: float = 1.0
    pct_time_long: float = 0.0
    pct_time_short: float = 0.0
    avg_time_flat_bars: float = 0.0
    avg_time_long_bars: float = 0.0
    avg_time_short_bars: float = 0.0


class ExitReasonBreakdown(BaseModel):
    """Position closes bucketed by transition reason."""

    signal: int = 0
    stop_loss: int = 0
    take_profit: int = 0
    trailing_stop: int = 0
    end_of_backtest: int = 0


class EventCounts(BaseModel):
    """Raw event counts by kind."""

    indicator_flips: int = 0
    condition_changes: int = 0
    state_transitions: int = 0
    special_indicator_events: int = 0


def _empty_trigger_counts() -> dict[str, int]:
    return {"LONG_ENTRY": 0, "LONG_EXIT": 0, "SHORT_ENTRY": 0, "SHORT_EXIT": 0}


class AlgoMetrics(BaseModel):
    """Complete algo diagnostic report."""

    indicator_analysis: list[IndicatorAnalysis] = Field(default_factory=list)
    near_miss_analysis: list[NearMissAnalysis] = Field(default_factory=list)
    state_distribution: StateDistribution = Field(default_factory=StateDistribution)
    exit_reason_breakdown: ExitReasonBreakdown = Field(default_factory=ExitReasonBreakdown)
    condition_trigger_counts: dict[str, int] = Field(default_factory=_empty_trigger_counts)
    event_counts: EventCounts = Field(default_factory=EventCounts)
