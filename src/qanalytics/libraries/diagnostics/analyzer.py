"""Algo diagnostic analyzer.

Entry point that partitions the algo event stream by kind and runs every
diagnostic over its slice.

Usage:
    >>> from qanalytics.libraries.diagnostics import calculate_algo_metrics, parse_algo_events
    >>> events = parse_algo_events(raw_events)
    >>> report = calculate_algo_metrics(events, total_bars=5000)
    >>> report.indicator_analysis[0].indicator_key
    'rsi_14'
"""

from typing import Sequence

from qanalytics.libraries.diagnostics.events import (
    CONDITION_TYPES,
    AlgoEvent,
    ConditionChangeEvent,
    partition_events,
)
from qanalytics.libraries.diagnostics.indicators import calculate_indicator_analysis
from qanalytics.libraries.diagnostics.models import AlgoMetrics, EventCounts
from qanalytics.libraries.diagnostics.near_miss import calculate_near_miss_analysis
from qanalytics.libraries.diagnostics.states import (
    calculate_exit_reason_breakdown,
    calculate_state_distribution,
)
from qanalytics.system import LoggerFactory

logger = LoggerFactory.get_logger()


def calculate_condition_trigger_counts(condition_changes: Sequence[ConditionChangeEvent]) -> dict[str, int]:
    """Count condition changes to true, one bucket per condition type."""
    counts = dict.fromkeys(CONDITION_TYPES, 0)
    for event in condition_changes:
        if event.new_state:
            counts[event.condition_type] += 1
    return counts


def calculate_event_counts(events: Sequence[AlgoEvent]) -> EventCounts:
    """Raw counts of each event kind."""
    parts = partition_events(events)
    return EventCounts(
        indicator_flips=len(parts.flips),
        condition_changes=len(parts.condition_changes),
        state_transitions=len(parts.state_transitions),
        special_indicator_events=len(parts.special),
    )


def calculate_algo_metrics(events: Sequence[AlgoEvent], total_bars: int) -> AlgoMetrics:
    """
    Run all diagnostics over an algo event stream.

    Args:
        events: Typed algo events (see ``parse_algo_events``)
        total_bars: Bars in the simulation

    Returns:
        AlgoMetrics
    """
    parts = partition_events(events)

    logger.debug(
        "diagnostics.algo_metrics.calculating",
        flips=len(parts.flips),
        condition_changes=len(parts.condition_changes),
        state_transitions=len(parts.state_transitions),
        special=len(parts.special),
        total_bars=total_bars,
    )

    return AlgoMetrics(
        indicator_analysis=calculate_indicator_analysis(parts.flips, parts.condition_changes, total_bars),
        near_miss_analysis=calculate_near_miss_analysis(parts.flips),
        state_distribution=calculate_state_distribution(parts.state_transitions, total_bars),
        exit_reason_breakdown=calculate_exit_reason_breakdown(parts.state_transitions),
        condition_trigger_counts=calculate_condition_trigger_counts(parts.condition_changes),
        event_counts=calculate_event_counts(events),
    )


def create_empty_algo_metrics() -> AlgoMetrics:
    """Diagnostics for a run that produced no events (100% flat, all counts 0)."""
    return AlgoMetrics()
