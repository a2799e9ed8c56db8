"""Near-miss analysis.

For each condition type, measures how close the condition came to firing
(distance histogram, closest approach) and splits the flip stream into
approach sequences: runs that either end in a trigger or retreat.
"""

import math
from typing import Sequence

from qanalytics.libraries.diagnostics.events import ConditionType, IndicatorFlipEvent
from qanalytics.libraries.diagnostics.models import ApproachSequence, NearMissAnalysis

# An open approach closes once distance exceeds its minimum by more than this.
RETREAT_THRESHOLD = 1


class ApproachTracker:
    """
    Fold state for approach sequences of one condition type.

    Feed distances in bar order with ``update``; call ``finish`` once at the end
    to flush an unterminated approach.
    """

    def __init__(self, condition_type: ConditionType) -> None:
        self.condition_type = condition_type
        self.sequences: list[ApproachSequence] = []
        self.trigger_count = 0
        self.closest_without_trigger = math.inf
        self._current: ApproachSequence | None = None

    def update(self, bar_index: int, distance: int) -> None:
        """Fold one evaluation into the tracker."""
        if distance == 0:
            self.trigger_count += 1
            if self._current is not None:
                self._current.end_bar = bar_index
                self._current.triggered = True
                self.sequences.append(self._current)
                self._current = None
            return

        if distance < self.closest_without_trigger:
            self.closest_without_trigger = distance

        if self._current is None:
            self._current = self._open(bar_index, distance)
        elif distance < self._current.min_distance:
            self._current.min_distance = distance
        elif distance > self._current.min_distance + RETREAT_THRESHOLD:
            self._current.end_bar = bar_index
            self.sequences.append(self._current)
            self._current = self._open(bar_index, distance)

    def finish(self) -> list[ApproachSequence]:
        """Emit any open approach (untriggered) and return all sequences."""
        if self._current is not None:
            self.sequences.append(self._current)
            self._current = None
        return self.sequences

    def _open(self, bar_index: int, distance: int) -> ApproachSequence:
        return ApproachSequence(
            start_bar=bar_index,
            end_bar=bar_index,
            start_distance=distance,
            min_distance=distance,
            triggered=False,
            condition_type=self.condition_type,
        )


def calculate_near_miss_analysis(flips: Sequence[IndicatorFlipEvent]) -> list[NearMissAnalysis]:
    """
    One near-miss row per condition type, in order of first appearance.

    Args:
        flips: All indicator flip events (any order; sorted by bar index per
            condition on a copy)

    Returns:
        List of NearMissAnalysis. ``closest_approach_without_trigger`` is 0
        when every evaluation triggered.
    """
    by_condition: dict[ConditionType, list[IndicatorFlipEvent]] = {}
    for flip in flips:
        by_condition.setdefault(flip.condition_type, []).append(flip)

    analyses: list[NearMissAnalysis] = []
    for condition_type, condition_flips in by_condition.items():
        tracker = ApproachTracker(condition_type)
        histogram: dict[int, int] = {}

        for flip in sorted(condition_flips, key=lambda f: f.bar_index):
            distance = flip.condition_snapshot.distance_from_trigger
            histogram[distance] = histogram.get(distance, 0) + 1
            tracker.update(flip.bar_index, distance)

        closest = tracker.closest_without_trigger
        analyses.append(
            NearMissAnalysis(
                condition_type=condition_type,
                distance_histogram=histogram,
                closest_approach_without_trigger=0 if math.isinf(closest) else int(closest),
                approach_sequences=tracker.finish(),
                total_evaluations=len(condition_flips),
                trigger_count=tracker.trigger_count,
            )
        )

    return analyses
