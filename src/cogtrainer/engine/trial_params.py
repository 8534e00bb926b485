"""Trial parameter generation.

Each exercise kind derives its next trial from the current difficulty:
counts, bounds and timings come from the difficulty and the descriptor,
content indices (which digit, which cell, which color) come from the
injected RNG. The UI maps indices onto its own emoji, words and letters.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from cogtrainer.engine.errors import InvalidConfig
from cogtrainer.engine.exercise_loader import ExerciseDescriptor


@dataclass
class TrialSpec:
    exercise_id: str
    trial_index: int  # 1-based within the session
    difficulty: float
    params: dict[str, Any] = field(default_factory=dict)


Generator = Callable[
    [ExerciseDescriptor, float, int, random.Random, Sequence[TrialSpec]],
    dict[str, Any],
]


def _digit_span(descriptor, difficulty, trial_index, rng, previous) -> dict:
    length = int(difficulty)
    return {
        "sequence_length": length,
        "digits": [rng.randrange(10) for _ in range(length)],
        "digit_display_ms": descriptor.trial.get("digit_display_ms", 1000),
        "inter_digit_interval_ms": descriptor.trial.get("inter_digit_interval_ms", 800),
    }


def _nback(descriptor, difficulty, trial_index, rng, previous) -> dict:
    n = int(difficulty)
    block_size = descriptor.block_size
    block = (trial_index - 1) // block_size + 1
    block_trial = (trial_index - 1) % block_size + 1
    in_block = [p for p in previous if p.params.get("block") == block]

    grid_cells = descriptor.trial.get("grid_cells", 9)
    letter_count = descriptor.trial.get("letter_count", 16)
    match_probability = descriptor.trial.get("match_probability", 0.30)
    can_match = len(in_block) >= n

    if can_match and rng.random() < match_probability:
        position = in_block[-n].params["position"]
    else:
        position = rng.randrange(grid_cells)
    if can_match and rng.random() < match_probability:
        letter = in_block[-n].params["letter_index"]
    else:
        letter = rng.randrange(letter_count)

    return {
        "n": n,
        "block": block,
        "block_trial": block_trial,
        # the first n trials of a block have nothing n back to compare to
        "warmup": block_trial <= n,
        "position": position,
        "letter_index": letter,
        "position_match": can_match and in_block[-n].params["position"] == position,
        "letter_match": can_match and in_block[-n].params["letter_index"] == letter,
        "stimulus_ms": descriptor.trial.get("stimulus_ms", 1000),
        "inter_stimulus_interval_ms": descriptor.trial.get("inter_stimulus_interval_ms", 4000),
    }


def _ufov(descriptor, difficulty, trial_index, rng, previous) -> dict:
    positions = descriptor.trial.get("peripheral_positions", 8)
    target = rng.randrange(positions)
    free = [p for p in range(positions) if p != target]
    distractors = rng.sample(free, min(descriptor.trial.get("distractors", 4), len(free)))
    return {
        "duration_ms": difficulty,
        "fixation_ms": descriptor.trial.get("fixation_ms", 1000),
        "central_target": rng.randrange(descriptor.trial.get("central_targets", 2)),
        "peripheral_position": target,
        "peripheral_positions": positions,
        "distractor_positions": sorted(distractors),
    }


def _grid(descriptor, difficulty) -> dict:
    size = int(difficulty)
    total = size * size
    return {
        "grid_size": size,
        "total_items": total,
        "distractor_count": total - 1,
        "symbol_pool": descriptor.trial.get("symbol_pool", 12),
    }


def _grid_search(descriptor, difficulty, trial_index, rng, previous) -> dict:
    params = _grid(descriptor, difficulty)
    params.update(
        target_position=rng.randrange(params["total_items"]),
        target_symbol=rng.randrange(params["symbol_pool"]),
        time_limit_ms=descriptor.trial.get("time_limit_ms", 3000),
    )
    return params


def _dual_task(descriptor, difficulty, trial_index, rng, previous) -> dict:
    params = _grid(descriptor, difficulty)
    length = descriptor.trial.get("sequence_length", 2)
    params.update(
        sequence_length=length,
        sequence_symbols=rng.sample(range(params["symbol_pool"]), length),
        target_positions=[rng.randrange(params["total_items"]) for _ in range(length)],
        sequence_preview_ms=descriptor.trial.get("sequence_preview_ms", 3000),
        time_per_step_ms=descriptor.trial.get("time_per_step_ms", 2000),
    )
    return params


def _stroop(descriptor, difficulty, trial_index, rng, previous) -> dict:
    colors = descriptor.trial.get("colors", 8)
    option_count = descriptor.trial.get("options", 3)
    congruent = rng.random() < descriptor.trial.get("congruent_probability", 0.30)

    word = rng.randrange(colors)
    if congruent:
        ink = word
        others = [c for c in range(colors) if c != ink]
        options = [ink] + rng.sample(others, option_count - 1)
    else:
        ink = rng.choice([c for c in range(colors) if c != word])
        # the word's own color is always offered as the tempting wrong answer
        others = [c for c in range(colors) if c not in (ink, word)]
        options = [ink, word] + rng.sample(others, option_count - 2)
    rng.shuffle(options)

    return {
        "time_limit_ms": difficulty,
        "condition": "congruent" if congruent else "incongruent",
        "word_color": word,
        "ink_color": ink,
        "options": options,
    }


def _task_switching(descriptor, difficulty, trial_index, rng, previous) -> dict:
    single = descriptor.trial.get("single_task_block_size", 10)
    days = descriptor.trial.get("days", 7)
    last = previous[-1].params if previous else None

    if trial_index <= single:
        block, task = 1, "time"
    elif trial_index <= single * 2:
        block, task = 2, "day_type"
    else:
        block, task = 3, rng.choice(["time", "day_type"])
    is_switch = block == 3 and last is not None and last["task"] != task

    day = rng.choice([d for d in range(days) if last is None or d != last["day"]])
    # alternate before/after noon so the time task never repeats an answer twice
    if last is None:
        before_noon = rng.random() < 0.5
    else:
        before_noon = last["hour"] >= 12
    hour = rng.randrange(6, 12) if before_noon else rng.randrange(12, 23)

    return {
        "cti_ms": difficulty,
        "block": block,
        "task": task,
        "is_switch": is_switch,
        "day": day,
        "hour": hour,
        "minute": rng.randrange(60),
        "response_time_limit_ms": descriptor.trial.get("response_time_limit_ms", 3000),
    }


def _word_pair(descriptor, difficulty, trial_index, rng, previous) -> dict:
    return {
        "pair_count": int(difficulty),
        "delay_minutes": descriptor.trial.get("delay_minutes", 30),
    }


GENERATORS: dict[str, Generator] = {
    "digit_span": _digit_span,
    "nback": _nback,
    "ufov": _ufov,
    "grid_search": _grid_search,
    "dual_task": _dual_task,
    "stroop": _stroop,
    "task_switching": _task_switching,
    "word_pair": _word_pair,
}


def generate_trial_spec(
    descriptor: ExerciseDescriptor,
    difficulty: float,
    trial_index: int,
    rng: random.Random,
    previous: Sequence[TrialSpec] = (),
) -> TrialSpec:
    """Derive the next trial's parameters.

    Args:
        descriptor: The exercise being played.
        difficulty: Current controller value.
        trial_index: 1-based index of the trial in the session.
        rng: Source of randomness for content selection.
        previous: Specs already played this session, oldest first.
    """
    generator = GENERATORS.get(descriptor.kind)
    if generator is None:
        raise InvalidConfig(f"No trial generator for exercise kind {descriptor.kind!r}")
    return TrialSpec(
        exercise_id=descriptor.id,
        trial_index=trial_index,
        difficulty=difficulty,
        params=generator(descriptor, difficulty, trial_index, rng, previous),
    )
