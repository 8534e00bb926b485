"""Simulated player for exercising a session end to end without a UI."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Optional

from cogtrainer.engine.controller import Direction
from cogtrainer.engine.exercise_loader import ExerciseDescriptor
from cogtrainer.engine.sequencer import SessionSummary, SubmitResult, TrialSequencer
from cogtrainer.engine.trial_params import TrialSpec


@dataclass
class SimulatedPlayer:
    """Answers correctly with a probability that falls as trials get harder.

    ``skill`` is the normalized hardness (0 = easiest bound, 1 = hardest)
    at which the player is right half the time.
    """
    skill: float = 0.5
    slope: float = 8.0
    mean_response_ms: float = 900.0
    rng: random.Random = field(default_factory=random.Random)

    def hardness(self, descriptor: ExerciseDescriptor, difficulty: float) -> float:
        span = descriptor.max_value - descriptor.min_value
        if span <= 0:
            return 0.0
        h = (difficulty - descriptor.min_value) / span
        return 1.0 - h if descriptor.direction is Direction.INVERTED else h

    def p_correct(self, descriptor: ExerciseDescriptor, difficulty: float) -> float:
        h = self.hardness(descriptor, difficulty)
        return 1.0 / (1.0 + math.exp(self.slope * (h - self.skill)))

    def respond(self, descriptor: ExerciseDescriptor, spec: TrialSpec) -> dict:
        """Keyword arguments for ``TrialSequencer.submit_trial_result``."""
        p = self.p_correct(descriptor, spec.difficulty)
        response_ms = max(150.0, self.rng.gauss(self.mean_response_ms, 200.0))
        if descriptor.dimensions:
            # independent parts whose joint success rate is p
            p_part = p ** (1.0 / len(descriptor.dimensions))
            dimensions = {d: self.rng.random() < p_part for d in descriptor.dimensions}
            return {"dimensions": dimensions, "response_time_ms": response_ms}
        return {"correct": self.rng.random() < p, "response_time_ms": response_ms}


@dataclass
class SimulationRun:
    summary: SessionSummary
    trials: list[tuple[TrialSpec, SubmitResult]]


def run_simulation(
    descriptor: ExerciseDescriptor,
    trials: Optional[int] = None,
    skill: float = 0.5,
    seed: Optional[int] = None,
) -> SimulationRun:
    rng = random.Random(seed)
    player = SimulatedPlayer(skill=skill, rng=rng)
    sequencer = TrialSequencer(rng=rng)
    sequencer.start_session(trials or descriptor.default_trials, descriptor)

    played = []
    while True:
        spec = sequencer.next_trial_parameters()
        result = sequencer.submit_trial_result(**player.respond(descriptor, spec))
        played.append((spec, result))
        if result.session_complete:
            break
    return SimulationRun(summary=sequencer.finalize_session(), trials=played)
