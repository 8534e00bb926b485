"""Bounded hysteresis controller for a single difficulty scalar.

A streak of ``correct_threshold`` correct trials moves the difficulty one
step in the harder direction; a streak of ``incorrect_threshold`` incorrect
trials moves it one step easier. Reaching a threshold always consumes the
streak, even when the step is clamped away at a bound.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from cogtrainer.engine.accuracy import AccuracyWindow, TrialOutcome
from cogtrainer.engine.constants import (
    CONSECUTIVE_CORRECT_TO_INCREASE,
    CONSECUTIVE_INCORRECT_TO_DECREASE,
    TARGET_ACCURACY_MAX,
    TARGET_ACCURACY_MIN,
)
from cogtrainer.engine.errors import IllegalState, InvalidConfig

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    STANDARD = "standard"  # larger value is harder (length, grid size, N)
    INVERTED = "inverted"  # smaller value is harder (durations, time budgets)

    @property
    def harder_sign(self) -> int:
        return 1 if self is Direction.STANDARD else -1


@dataclass(frozen=True)
class HysteresisPolicy:
    """Trial-level policy: consecutive same-outcome trials before a step."""
    correct_threshold: int = CONSECUTIVE_CORRECT_TO_INCREASE
    incorrect_threshold: int = CONSECUTIVE_INCORRECT_TO_DECREASE


@dataclass
class DifficultyState:
    current: float
    min_value: float
    max_value: float
    direction: Direction = Direction.STANDARD
    step: float = 1
    correct_threshold: int = CONSECUTIVE_CORRECT_TO_INCREASE
    incorrect_threshold: int = CONSECUTIVE_INCORRECT_TO_DECREASE
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0

    def clamp(self, value: float) -> float:
        return max(self.min_value, min(self.max_value, value))

    def reset_counters(self) -> None:
        self.consecutive_correct = 0
        self.consecutive_incorrect = 0


@dataclass
class AdjustmentResult:
    current_difficulty: float
    adjusted: bool
    previous_difficulty: float
    consecutive_correct: int = 0
    consecutive_incorrect: int = 0


@dataclass
class ControllerStats:
    total_trials: int
    accuracy: float
    adjustments: int
    current_difficulty: float
    initial_difficulty: float
    max_difficulty_reached: float
    min_difficulty_reached: float


@dataclass
class PerformanceCheck:
    accuracy: float
    in_target_range: bool
    too_high: bool
    too_low: bool


def check_target_band(
    acc: float,
    target_min: float = TARGET_ACCURACY_MIN,
    target_max: float = TARGET_ACCURACY_MAX,
) -> PerformanceCheck:
    """Place an accuracy relative to the band the player should be kept in."""
    return PerformanceCheck(
        accuracy=acc,
        in_target_range=target_min <= acc <= target_max,
        too_high=acc > target_max,
        too_low=acc < target_min,
    )


class DifficultyController:
    """Generic bounded hysteresis state machine.

    Exercise adapters subclass this to fix a direction, a step, or add
    read accessors; the transition logic lives here only.
    """

    default_direction: Direction = Direction.STANDARD

    def __init__(self) -> None:
        self.state: Optional[DifficultyState] = None
        self._window = AccuracyWindow()
        self._initial: Optional[float] = None

    def initialize(
        self,
        initial: float,
        min_value: float,
        max_value: float,
        step: float = 1,
        correct_threshold: int = CONSECUTIVE_CORRECT_TO_INCREASE,
        incorrect_threshold: int = CONSECUTIVE_INCORRECT_TO_DECREASE,
        direction: Optional[Direction] = None,
    ) -> float:
        """Reset counters and history and return the (clamped) starting value."""
        if min_value > max_value:
            raise InvalidConfig(f"min ({min_value}) is greater than max ({max_value})")
        if correct_threshold < 1 or incorrect_threshold < 1:
            raise InvalidConfig("Thresholds must be at least 1")
        if step < 0:
            raise InvalidConfig(f"Step must not be negative, got {step}")

        self.state = DifficultyState(
            current=max(min_value, min(max_value, initial)),
            min_value=min_value,
            max_value=max_value,
            direction=Direction(direction or self.default_direction),
            step=step,
            correct_threshold=correct_threshold,
            incorrect_threshold=incorrect_threshold,
        )
        self._window.clear()
        self._initial = self.state.current
        return self.state.current

    @property
    def initialized(self) -> bool:
        return self.state is not None

    def _require_state(self) -> DifficultyState:
        if self.state is None:
            raise IllegalState(f"{type(self).__name__} used before initialize()")
        return self.state

    def _move(self, state: DifficultyState, harder: bool) -> bool:
        """Take one clamped step; True only if the value actually changed."""
        sign = state.direction.harder_sign if harder else -state.direction.harder_sign
        target = state.clamp(state.current + sign * state.step)
        if target == state.current:
            return False
        state.current = target
        return True

    def process_result(
        self,
        correct: bool,
        *,
        response_time_ms: Optional[float] = None,
        timed_out: bool = False,
        score: int = 0,
        dimensions: Optional[Mapping[str, bool]] = None,
    ) -> AdjustmentResult:
        """Feed one trial outcome through the hysteresis machine."""
        state = self._require_state()
        previous = state.current
        adjusted = False

        if correct:
            state.consecutive_correct += 1
            state.consecutive_incorrect = 0
            if state.consecutive_correct >= state.correct_threshold:
                adjusted = self._move(state, harder=True)
                state.reset_counters()
        else:
            state.consecutive_incorrect += 1
            state.consecutive_correct = 0
            if state.consecutive_incorrect >= state.incorrect_threshold:
                adjusted = self._move(state, harder=False)
                state.reset_counters()

        if adjusted:
            logger.debug(
                "%s: difficulty %s -> %s", type(self).__name__, previous, state.current
            )

        self._window.record(TrialOutcome(
            correct=bool(correct),
            difficulty=previous,
            response_time_ms=response_time_ms,
            adjusted_to=state.current if adjusted else None,
            timed_out=timed_out,
            score=score,
            dimensions=dict(dimensions or {}),
        ))

        return AdjustmentResult(
            current_difficulty=state.current,
            adjusted=adjusted,
            previous_difficulty=previous,
            consecutive_correct=state.consecutive_correct,
            consecutive_incorrect=state.consecutive_incorrect,
        )

    def get_current_difficulty(self) -> float:
        return self._require_state().current

    def set_difficulty(self, value: float) -> float:
        """Manual override, clamped into bounds. Clears both streaks."""
        state = self._require_state()
        state.current = state.clamp(value)
        state.reset_counters()
        return state.current

    def reset(self) -> None:
        """Clear streaks and history; the current difficulty is kept."""
        state = self._require_state()
        state.reset_counters()
        self._window.clear()

    def get_history(self) -> list[TrialOutcome]:
        return self._window.history

    def get_accuracy(self, recent_trials: int = 0) -> float:
        return self._window.accuracy(recent_trials)

    def get_stats(self) -> ControllerStats:
        state = self._require_state()
        return ControllerStats(
            total_trials=len(self._window),
            accuracy=self._window.accuracy(),
            adjustments=self._window.adjustments(),
            current_difficulty=state.current,
            initial_difficulty=self._initial if self._initial is not None else state.current,
            max_difficulty_reached=_or(self._window.max_difficulty(), state.current),
            min_difficulty_reached=_or(self._window.min_difficulty(), state.current),
        )

    def check_performance(
        self,
        target_min: float = TARGET_ACCURACY_MIN,
        target_max: float = TARGET_ACCURACY_MAX,
    ) -> PerformanceCheck:
        return check_target_band(self._window.accuracy(), target_min, target_max)


def _or(value: Optional[float], default: float) -> float:
    return default if value is None else value
