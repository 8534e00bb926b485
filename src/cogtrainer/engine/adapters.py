"""Per-exercise specializations of the difficulty controller.

| Adapter          | Difficulty           | Direction | Granularity |
|------------------|----------------------|-----------|-------------|
| SpanAdapter      | sequence length      | standard  | trial       |
| NBackAdapter     | N level              | standard  | block       |
| DurationAdapter  | presentation ms      | inverted  | trial       |
| GridSizeAdapter  | grid side length     | standard  | trial       |
| TimingAdapter    | response budget ms   | inverted  | trial       |

Only NBackAdapter adds transition logic (``process_block``); the others
configure the base machine and add read accessors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

from cogtrainer.engine.accuracy import TrialOutcome
from cogtrainer.engine.constants import (
    BLOCK_DECREASE_THRESHOLD,
    BLOCK_INCREASE_THRESHOLD,
    CONSECUTIVE_CORRECT_TO_INCREASE,
    CONSECUTIVE_INCORRECT_TO_DECREASE,
    DURATION_STEP_MS,
    THRESHOLD_ACCURACY,
    THRESHOLD_WINDOW,
)
from cogtrainer.engine.controller import (
    AdjustmentResult,
    DifficultyController,
    Direction,
)
from cogtrainer.engine.errors import InvalidConfig

if TYPE_CHECKING:
    from cogtrainer.engine.exercise_loader import ExerciseDescriptor

logger = logging.getLogger(__name__)


def reduce_correctness(dimensions: Mapping[str, bool]) -> bool:
    """Collapse per-dimension correctness into one outcome (logical AND).

    An empty mapping counts as incorrect.
    """
    return bool(dimensions) and all(dimensions.values())


class SpanAdapter(DifficultyController):
    """Sequence length (digit span) or pair count (word pairs)."""

    def max_span_reached(self) -> float:
        return self.get_stats().max_difficulty_reached


@dataclass(frozen=True)
class BlockThresholdPolicy:
    """Block-level policy: one decision per block from its accuracy.

    Kept apart from the trial-level HysteresisPolicy; the two are tuned
    independently.
    """
    increase_threshold: float = BLOCK_INCREASE_THRESHOLD
    decrease_threshold: float = BLOCK_DECREASE_THRESHOLD

    def __post_init__(self):
        if self.decrease_threshold > self.increase_threshold:
            raise InvalidConfig("Block decrease threshold is above the increase threshold")

    def decide(self, block_accuracy: float) -> int:
        """+1 to make harder, -1 to make easier, 0 to hold."""
        if block_accuracy >= self.increase_threshold:
            return 1
        if block_accuracy < self.decrease_threshold:
            return -1
        return 0


class NBackAdapter(DifficultyController):
    """N level, adjusted once per block instead of once per trial."""

    def __init__(self, policy: Optional[BlockThresholdPolicy] = None) -> None:
        super().__init__()
        self.policy = policy or BlockThresholdPolicy()

    def process_block(self, block_accuracy: float) -> AdjustmentResult:
        """Apply the block policy. Streak counters are not used here."""
        state = self._require_state()
        if not 0.0 <= block_accuracy <= 1.0:
            raise ValueError(f"Block accuracy must be within [0, 1], got {block_accuracy}")

        previous = state.current
        decision = self.policy.decide(block_accuracy)
        adjusted = self._move(state, harder=decision > 0) if decision else False
        state.reset_counters()

        if adjusted:
            logger.debug("n-back level %s -> %s (block accuracy %.2f)",
                         previous, state.current, block_accuracy)

        self._window.record(TrialOutcome(
            correct=block_accuracy >= self.policy.increase_threshold,
            difficulty=previous,
            adjusted_to=state.current if adjusted else None,
        ))
        return AdjustmentResult(
            current_difficulty=state.current,
            adjusted=adjusted,
            previous_difficulty=previous,
        )

    def max_nback_reached(self) -> float:
        # The level earned by the last block counts even if it was never played
        stats = self.get_stats()
        return max(stats.max_difficulty_reached, stats.current_difficulty)


class DurationAdapter(DifficultyController):
    """Stimulus presentation time in ms; shorter is harder."""

    default_direction = Direction.INVERTED

    def initialize(
        self,
        initial: float,
        min_value: float,
        max_value: float,
        step: float = DURATION_STEP_MS,
        correct_threshold: int = CONSECUTIVE_CORRECT_TO_INCREASE,
        incorrect_threshold: int = CONSECUTIVE_INCORRECT_TO_DECREASE,
        direction: Optional[Direction] = None,
    ) -> float:
        return super().initialize(
            initial, min_value, max_value, step,
            correct_threshold, incorrect_threshold, direction,
        )

    def fastest_duration_reached(self) -> float:
        return self.get_stats().min_difficulty_reached

    def threshold_duration(
        self,
        window_size: int = THRESHOLD_WINDOW,
        accuracy_threshold: float = THRESHOLD_ACCURACY,
    ) -> float:
        """Fastest duration held at >= 75% over a 10-trial window.

        Falls back to the current duration when no window qualifies.
        """
        found = self._window.threshold_crossing_difficulty(window_size, accuracy_threshold)
        return self.get_current_difficulty() if found is None else found


class GridSizeAdapter(DifficultyController):
    """Side length of the NxN search grid."""

    def max_grid_size_reached(self) -> float:
        return self.get_stats().max_difficulty_reached


class TimingAdapter(DifficultyController):
    """Response time limit or cue-target interval in ms; less time is harder."""

    default_direction = Direction.INVERTED


ADAPTERS: dict[str, type[DifficultyController]] = {
    "span": SpanAdapter,
    "nback": NBackAdapter,
    "duration": DurationAdapter,
    "grid": GridSizeAdapter,
    "timing": TimingAdapter,
}


def build_adapter(descriptor: ExerciseDescriptor) -> DifficultyController:
    """Instantiate and initialize the adapter an exercise descriptor names."""
    adapter_cls = ADAPTERS.get(descriptor.adapter)
    if adapter_cls is None:
        raise InvalidConfig(f"Unknown adapter: {descriptor.adapter}")

    if adapter_cls is NBackAdapter:
        adapter = NBackAdapter(BlockThresholdPolicy(
            increase_threshold=descriptor.increase_threshold,
            decrease_threshold=descriptor.decrease_threshold,
        ))
    else:
        adapter = adapter_cls()

    adapter.initialize(
        initial=descriptor.initial,
        min_value=descriptor.min_value,
        max_value=descriptor.max_value,
        step=descriptor.step,
        correct_threshold=descriptor.correct_threshold,
        incorrect_threshold=descriptor.incorrect_threshold,
        direction=descriptor.direction,
    )
    return adapter
