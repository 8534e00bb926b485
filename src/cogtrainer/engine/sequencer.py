"""Session state machine: start → (next trial → submit result)* → finalize."""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Mapping, Optional

from cogtrainer.engine.accuracy import TrialOutcome, accuracy
from cogtrainer.engine.adapters import (
    DurationAdapter,
    NBackAdapter,
    build_adapter,
    reduce_correctness,
)
from cogtrainer.engine.controller import DifficultyController
from cogtrainer.engine.errors import IllegalState, InvalidConfig
from cogtrainer.engine.exercise_loader import ExerciseDescriptor, Granularity
from cogtrainer.engine.scoring import score_trial
from cogtrainer.engine.trial_params import TrialSpec, generate_trial_spec

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    IN_SESSION = "in_session"
    COMPLETE = "complete"  # terminal, a sequencer is never restarted


@dataclass
class SubmitResult:
    session_complete: bool
    difficulty_changed: bool
    current_difficulty: float
    previous_difficulty: float
    correct: bool
    score: int = 0
    block_accuracy: Optional[float] = None  # set when this trial closed a block


@dataclass
class SessionSummary:
    """Plain record handed to the session store once per session."""
    exercise_id: str
    total_trials: int
    correct_trials: int
    accuracy: float
    average_response_time: float
    max_difficulty_reached: float
    min_difficulty_reached: float
    final_difficulty: float
    score: int
    timeout_trials: int = 0
    threshold_difficulty: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SessionProgress:
    descriptor: ExerciseDescriptor
    total_trials: int
    trials_completed: int = 0
    score: int = 0
    history: list[TrialOutcome] = field(default_factory=list)
    specs: list[TrialSpec] = field(default_factory=list)
    pending: Optional[TrialSpec] = None
    block_outcomes: list[TrialOutcome] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.trials_completed >= self.total_trials

    @property
    def progress_fraction(self) -> float:
        return self.trials_completed / self.total_trials


class TrialSequencer:
    """Drives one exercise session against its difficulty adapter.

    The sequencer owns no timers: the caller requests trial parameters,
    presents the trial however long it likes, then submits the outcome.
    Timeouts arrive as ``timed_out=True`` and adapt exactly like a wrong
    answer.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.state = SessionState.IDLE
        self.adapter: Optional[DifficultyController] = None
        self.progress: Optional[SessionProgress] = None

    def start_session(
        self, total_trials: int, descriptor: ExerciseDescriptor
    ) -> float:
        """Build the exercise's adapter and return the starting difficulty."""
        if self.state is not SessionState.IDLE:
            raise IllegalState(f"Cannot start a session from state {self.state.value}")
        if total_trials < 1:
            raise InvalidConfig(f"total_trials must be at least 1, got {total_trials}")

        self.adapter = build_adapter(descriptor)
        self.progress = SessionProgress(descriptor=descriptor, total_trials=total_trials)
        self.state = SessionState.IN_SESSION

        difficulty = self.adapter.get_current_difficulty()
        logger.info("Session started: %s, %d trials, difficulty %s",
                    descriptor.id, total_trials, difficulty)
        return difficulty

    def _require_session(self) -> SessionProgress:
        if self.state is not SessionState.IN_SESSION or self.progress is None:
            raise IllegalState(f"No session in progress (state: {self.state.value})")
        return self.progress

    @property
    def descriptor(self) -> Optional[ExerciseDescriptor]:
        return self.progress.descriptor if self.progress else None

    def current_difficulty(self) -> float:
        if self.adapter is None:
            raise IllegalState("No session has been started")
        return self.adapter.get_current_difficulty()

    def next_trial_parameters(self) -> TrialSpec:
        """Parameters for the upcoming trial.

        Asking again before submitting returns the same trial.
        """
        progress = self._require_session()
        if progress.pending is None:
            progress.pending = generate_trial_spec(
                progress.descriptor,
                self.adapter.get_current_difficulty(),
                trial_index=progress.trials_completed + 1,
                rng=self.rng,
                previous=progress.specs,
            )
        return progress.pending

    def submit_trial_result(
        self,
        correct: Optional[bool] = None,
        response_time_ms: Optional[float] = None,
        *,
        dimensions: Optional[Mapping[str, bool]] = None,
        timed_out: bool = False,
    ) -> SubmitResult:
        """Record the outcome of the pending trial and adapt.

        ``dimensions`` replaces ``correct`` for multi-part trials: the trial
        counts as correct only if every dimension is, while partially
        correct trials may still earn points.
        """
        progress = self._require_session()
        spec = progress.pending
        if spec is None:
            raise IllegalState("Trial result submitted before trial parameters were requested")

        if dimensions:
            correct = reduce_correctness(dimensions)
        elif correct is None:
            raise ValueError("Either correct or dimensions must be given")
        correct = bool(correct) and not timed_out

        descriptor = progress.descriptor
        previous = self.adapter.get_current_difficulty()
        points = score_trial(
            descriptor.scoring,
            correct=correct,
            difficulty=spec.difficulty,
            response_time_ms=response_time_ms,
            dimensions=dimensions,
            is_switch=bool(spec.params.get("is_switch", False)),
        )

        adjusted = False
        if (
            descriptor.granularity is Granularity.TRIAL
            and spec.trial_index >= descriptor.adaptive_from_trial
        ):
            adjusted = self.adapter.process_result(
                correct,
                response_time_ms=response_time_ms,
                timed_out=timed_out,
                score=points,
                dimensions=dimensions,
            ).adjusted

        outcome = TrialOutcome(
            correct=correct,
            difficulty=spec.difficulty,
            response_time_ms=response_time_ms,
            timed_out=timed_out,
            score=points,
            dimensions=dict(dimensions or {}),
        )
        progress.history.append(outcome)
        progress.specs.append(spec)
        progress.pending = None
        progress.trials_completed += 1
        progress.score += points

        block_accuracy = None
        if descriptor.granularity is Granularity.BLOCK:
            if not spec.params.get("warmup", False):
                progress.block_outcomes.append(outcome)
            if progress.trials_completed % descriptor.block_size == 0:
                block_accuracy = accuracy(progress.block_outcomes)
                adjusted = self._block_adapter().process_block(block_accuracy).adjusted
                progress.block_outcomes = []

        current = self.adapter.get_current_difficulty()
        if adjusted:
            outcome.adjusted_to = current

        if progress.is_finished:
            self.state = SessionState.COMPLETE
            logger.info("Session complete: %s after %d trials",
                        descriptor.id, progress.trials_completed)

        return SubmitResult(
            session_complete=progress.is_finished,
            difficulty_changed=adjusted,
            current_difficulty=current,
            previous_difficulty=previous,
            correct=correct,
            score=points,
            block_accuracy=block_accuracy,
        )

    def _block_adapter(self) -> NBackAdapter:
        if not isinstance(self.adapter, NBackAdapter):
            raise InvalidConfig(
                f"Block granularity needs a block adapter, got {type(self.adapter).__name__}"
            )
        return self.adapter

    def finalize_session(self) -> SessionSummary:
        """Reduce the session's history to a summary.

        Finalizing mid-session ends it early; the sequencer is complete
        afterwards either way.
        """
        if self.progress is None or self.state is SessionState.IDLE:
            raise IllegalState("No session to finalize")
        progress = self.progress
        history = progress.history
        current = self.adapter.get_current_difficulty()

        correct_times = [
            t.response_time_ms for t in history
            if t.correct and t.response_time_ms is not None
        ]
        difficulties = [t.difficulty for t in history] or [current]
        max_reached = max(difficulties)
        if isinstance(self.adapter, NBackAdapter):
            # a level earned by the final block counts even though it was never played
            max_reached = max(max_reached, self.adapter.max_nback_reached())
        threshold = None
        if isinstance(self.adapter, DurationAdapter):
            threshold = self.adapter.threshold_duration()

        self.state = SessionState.COMPLETE
        return SessionSummary(
            exercise_id=progress.descriptor.id,
            total_trials=len(history),
            correct_trials=sum(1 for t in history if t.correct),
            accuracy=accuracy(history),
            average_response_time=(
                sum(correct_times) / len(correct_times) if correct_times else 0.0
            ),
            max_difficulty_reached=max_reached,
            min_difficulty_reached=min(difficulties),
            final_difficulty=current,
            score=progress.score,
            timeout_trials=sum(1 for t in history if t.timed_out),
            threshold_difficulty=threshold,
        )
