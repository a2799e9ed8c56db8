"""Algo diagnostics library.

Turns the diagnostic event stream of a backtest into tuning reports:

1. **Events** (`events.py`): discriminated union of flip, condition change,
   state transition and special-indicator events
2. **Indicators** (`indicators.py`): per-indicator usefulness ranking
3. **Near miss** (`near_miss.py`): how close each condition came to firing
4. **States** (`states.py`): time per position state, exit reasons
5. **Analyzer** (`analyzer.py`): runs everything into one AlgoMetrics
"""

from qanalytics.libraries.diagnostics.analyzer import (
    calculate_algo_metrics,
    calculate_condition_trigger_counts,
    calculate_event_counts,
    create_empty_algo_metrics,
)
from qanalytics.libraries.diagnostics.events import (
    AlgoEvent,
    ConditionChangeEvent,
    ConditionSnapshot,
    ConditionType,
    IndicatorFlipEvent,
    PartitionedEvents,
    PositionState,
    SpecialIndicatorEvent,
    StateTransitionEvent,
    TransitionReason,
    parse_algo_events,
    partition_events,
)
from qanalytics.libraries.diagnostics.indicators import (
    calculate_blocking_count,
    calculate_duration_stats,
    calculate_indicator_analysis,
    calculate_usefulness_score,
)
from qanalytics.libraries.diagnostics.models import (
    AlgoMetrics,
    ApproachSequence,
    EventCounts,
    ExitReasonBreakdown,
    IndicatorAnalysis,
    NearMissAnalysis,
    StateDistribution,
)
from qanalytics.libraries.diagnostics.near_miss import ApproachTracker, calculate_near_miss_analysis
from qanalytics.libraries.diagnostics.states import calculate_exit_reason_breakdown, calculate_state_distribution

__all__ = [
    # Events
    "AlgoEvent",
    "ConditionType",
    "PositionState",
    "TransitionReason",
    "ConditionSnapshot",
    "IndicatorFlipEvent",
    "ConditionChangeEvent",
    "StateTransitionEvent",
    "SpecialIndicatorEvent",
    "PartitionedEvents",
    "parse_algo_events",
    "partition_events",
    # Models
    "IndicatorAnalysis",
    "ApproachSequence",
    "NearMissAnalysis",
    "StateDistribution",
    "ExitReasonBreakdown",
    "EventCounts",
    "AlgoMetrics",
    # Analyses
    "calculate_duration_stats",
    "calculate_blocking_count",
    "calculate_usefulness_score",
    "calculate_indicator_analysis",
    "ApproachTracker",
    "calculate_near_miss_analysis",
    "calculate_state_distribution",
    "calculate_exit_reason_breakdown",
    "calculate_condition_trigger_counts",
    "calculate_event_counts",
    "calculate_algo_metrics",
    "create_empty_algo_metrics",
]
