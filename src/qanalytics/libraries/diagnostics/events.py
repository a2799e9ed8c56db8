"""
Diagnostic event models - the algo event stream emitted during simulation.

Architecture:
    Simulation (condition evaluator, state machine)
         ↓
    Plain dicts / JSON ({"type": "INDICATOR_FLIP", ...})
         ↓
    parse_algo_events() ← TypeAdapter over the discriminated union
         ↓
    AlgoEvent (typed, frozen) → partition_events() → analyzers

Every event carries ``timestamp`` (Unix seconds) and ``bar_index`` plus a
literal ``type`` tag that selects the variant. Events are append-only facts;
nothing in this library mutates them.

Design Principles:
- Tagged variants: the ``type`` field is the pydantic discriminator
- Filtering by kind is a pure partition, never isinstance chains in analyzers
- Unknown ``type`` values fail validation at the boundary
"""

from typing import Annotated, Literal, NamedTuple, Sequence, Union

from pydantic import BaseModel, Field, TypeAdapter

# ============================================
# Enumerations
# ============================================

ConditionType = Literal["LONG_ENTRY", "LONG_EXIT", "SHORT_ENTRY", "SHORT_EXIT"]
PositionState = Literal["CASH", "LONG", "SHORT", "TIMEOUT"]
TransitionReason = Literal[
    "ENTRY_SIGNAL",
    "EXIT_SIGNAL",
    "STOP_LOSS",
    "TAKE_PROFIT",
    "TRAILING_STOP",
    "END_OF_BACKTEST",
]
SpecialEventType = Literal[
    "SL_SET",
    "TP_SET",
    "TRAILING_SET",
    "TRAILING_UPDATE",
    "SL_HIT",
    "TP_HIT",
    "TRAILING_HIT",
]

CONDITION_TYPES: tuple[ConditionType, ...] = ("LONG_ENTRY", "LONG_EXIT", "SHORT_ENTRY", "SHORT_EXIT")


# ============================================
# Event models
# ============================================


class ConditionSnapshot(BaseModel):
    """
    State of one entry/exit condition at evaluation time.

    ``distance_from_trigger`` is the number of required sub-conditions still
    unmet; 0 means the condition fired.
    """

    required_true: int
    required_total: int
    optional_true: int = 0
    optional_total: int = 0
    condition_met: bool
    distance_from_trigger: int

    model_config = {"frozen": True}


class _AlgoEventBase(BaseModel):
    timestamp: int
    bar_index: int

    model_config = {"frozen": True}


class IndicatorFlipEvent(_AlgoEventBase):
    """An indicator's boolean signal changed value."""

    type: Literal["INDICATOR_FLIP"] = "INDICATOR_FLIP"
    indicator_key: str
    indicator_type: str  # e.g. "RSI", "MACD"
    previous_value: bool
    new_value: bool
    condition_type: ConditionType
    is_required: bool
    condition_snapshot: ConditionSnapshot


class ConditionChangeEvent(_AlgoEventBase):
    """An entry/exit condition changed state."""

    type: Literal["CONDITION_CHANGE"] = "CONDITION_CHANGE"
    condition_type: ConditionType
    previous_state: bool
    new_state: bool
    triggering_indicator_key: str | None = None  # Set when new_state is True
    snapshot: ConditionSnapshot


class StateTransitionEvent(_AlgoEventBase):
    """The position state machine moved between states."""

    type: Literal["STATE_TRANSITION"] = "STATE_TRANSITION"
    from_state: PositionState
    to_state: PositionState
    reason: TransitionReason
    trade_id: int | None = None


class SpecialIndicatorEvent(_AlgoEventBase):
    """Stop-loss / take-profit / trailing-stop lifecycle event (set, update, hit)."""

    type: SpecialEventType
    price: float
    level: float
    direction: Literal["LONG", "SHORT"]
    trade_id: int


AlgoEvent = Annotated[
    Union[IndicatorFlipEvent, ConditionChangeEvent, StateTransitionEvent, SpecialIndicatorEvent],
    Field(discriminator="type"),
]

_algo_events_adapter: TypeAdapter[list[AlgoEvent]] = TypeAdapter(list[AlgoEvent])


# ============================================
# Parsing and partitioning
# ============================================


def parse_algo_events(raw: Sequence[dict]) -> list[AlgoEvent]:
    """
    Validate plain dicts into typed events.

    Args:
        raw: Event dicts with a ``type`` tag

    Returns:
        Typed events in input order

    Raises:
        pydantic.ValidationError: Unknown ``type`` or malformed fields
    """
    return _algo_events_adapter.validate_python(list(raw))


class PartitionedEvents(NamedTuple):
    """Algo events split by kind, each list in original order."""

    flips: list[IndicatorFlipEvent]
    condition_changes: list[ConditionChangeEvent]
    state_transitions: list[StateTransitionEvent]
    special: list[SpecialIndicatorEvent]


def partition_events(events: Sequence[AlgoEvent]) -> PartitionedEvents:
    """Split an event stream by ``type`` tag without reordering."""
    flips: list[IndicatorFlipEvent] = []
    condition_changes: list[ConditionChangeEvent] = []
    state_transitions: list[StateTransitionEvent] = []
    special: list[SpecialIndicatorEvent] = []

    for event in events:
        if event.type == "INDICATOR_FLIP":
            flips.append(event)
        elif event.type == "CONDITION_CHANGE":
            condition_changes.append(event)
        elif event.type == "STATE_TRANSITION":
            state_transitions.append(event)
        else:
            special.append(event)

    return PartitionedEvents(flips, condition_changes, state_transitions, special)
