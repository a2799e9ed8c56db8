"""Position state distribution and exit reasons.

Reads STATE_TRANSITION events only. Time in each state is the bar gap between
consecutive transitions, plus the tail to the simulation's last bar. The run
starts in CASH at bar 0.
"""

from typing import Sequence

from qanalytics.libraries.diagnostics.events import StateTransitionEvent
from qanalytics.libraries.diagnostics.models import ExitReasonBreakdown, StateDistribution
from qanalytics.libraries.performance.stats import mean

INITIAL_STATE = "CASH"
FLAT_STATES = ("CASH", "TIMEOUT")

_EXIT_REASON_FIELDS = {
    "EXIT_SIGNAL": "signal",
    "STOP_LOSS": "stop_loss",
    "TAKE_PROFIT": "take_profit",
    "TRAILING_STOP": "trailing_stop",
    "END_OF_BACKTEST": "end_of_backtest",
}


def calculate_state_distribution(transitions: Sequence[StateTransitionEvent], total_bars: int) -> StateDistribution:
    """
    Fraction of time and average stay per state.

    TIMEOUT counts toward the flat fraction, but the flat average stay uses
    CASH stays only.

    Args:
        transitions: State transition events, any order
        total_bars: Bars in the simulation

    Returns:
        StateDistribution; 100% flat with ``avg_time_flat_bars = total_bars``
        for no transitions or zero bars
    """
    if not transitions or total_bars == 0:
        return StateDistribution(avg_time_flat_bars=float(total_bars))

    stays: dict[str, list[float]] = {"CASH": [], "LONG": [], "SHORT": [], "TIMEOUT": []}

    last_bar = 0
    state = INITIAL_STATE
    for event in sorted(transitions, key=lambda e: e.bar_index):
        duration = event.bar_index - last_bar
        if duration > 0:
            stays[state].append(float(duration))
        last_bar = event.bar_index
        state = event.to_state

    tail = total_bars - last_bar
    if tail > 0:
        stays[state].append(float(tail))

    totals = {name: sum(durations) for name, durations in stays.items()}
    total_time = sum(totals.values())
    total_flat = sum(totals[name] for name in FLAT_STATES)

    if total_time <= 0:
        return StateDistribution(avg_time_flat_bars=mean(stays["CASH"]))

    return StateDistribution(
        pct_time_flat=total_flat / total_time,
        pct_time_long=totals["LONG"] / total_time,
        pct_time_short=totals["SHORT"] / total_time,
        avg_time_flat_bars=mean(stays["CASH"]),
        avg_time_long_bars=mean(stays["LONG"]),
        avg_time_short_bars=mean(stays["SHORT"]),
    )


def calculate_exit_reason_breakdown(transitions: Sequence[StateTransitionEvent]) -> ExitReasonBreakdown:
    """Count transitions into CASH or TIMEOUT by reason (ENTRY_SIGNAL is ignored)."""
    counts = dict.fromkeys(_EXIT_REASON_FIELDS.values(), 0)
    for event in transitions:
        if event.to_state in FLAT_STATES:
            field = _EXIT_REASON_FIELDS.get(event.reason)
            if field is not None:
                counts[field] += 1
    return ExitReasonBreakdown(**counts)
