"""YAML exercise catalog parser."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from cogtrainer.engine.constants import (
    BLOCK_DECREASE_THRESHOLD,
    BLOCK_INCREASE_THRESHOLD,
    CONSECUTIVE_CORRECT_TO_INCREASE,
    CONSECUTIVE_INCORRECT_TO_DECREASE,
)
from cogtrainer.engine.controller import Direction
from cogtrainer.engine.errors import InvalidConfig


class Granularity(str, Enum):
    TRIAL = "trial"  # adjust after every trial
    BLOCK = "block"  # adjust after every block of block_size trials


@dataclass
class ScoringRules:
    points_for_correct: int = 10
    points_per_unit: int = 0  # multiplied by the trial's difficulty (digits, pairs)
    speed_bonus: int = 0
    speed_threshold_ms: Optional[float] = None
    switch_bonus: int = 0
    partial_points: dict[str, int] = field(default_factory=dict)  # per correct dimension


@dataclass
class ExerciseDescriptor:
    id: str
    name: str
    kind: str  # trial generator: "digit_span", "nback", "ufov", ...
    adapter: str  # "span", "nback", "duration", "grid", "timing"
    initial: float
    min_value: float
    max_value: float
    domain: str = ""
    step: float = 1
    direction: Direction = Direction.STANDARD
    granularity: Granularity = Granularity.TRIAL
    correct_threshold: int = CONSECUTIVE_CORRECT_TO_INCREASE
    incorrect_threshold: int = CONSECUTIVE_INCORRECT_TO_DECREASE
    increase_threshold: float = BLOCK_INCREASE_THRESHOLD
    decrease_threshold: float = BLOCK_DECREASE_THRESHOLD
    block_size: int = 0
    default_trials: int = 10
    adaptive_from_trial: int = 1  # earlier trials are scored but do not adapt
    dimensions: list[str] = field(default_factory=list)
    trial: dict[str, Any] = field(default_factory=dict)  # generation parameters
    scoring: ScoringRules = field(default_factory=ScoringRules)

    def with_overrides(self, **overrides: Any) -> "ExerciseDescriptor":
        """Copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes) if changes else self


def _parse_scoring(raw: Optional[dict]) -> ScoringRules:
    if not raw:
        return ScoringRules()
    return ScoringRules(
        points_for_correct=raw.get("points_for_correct", 10),
        points_per_unit=raw.get("points_per_unit", 0),
        speed_bonus=raw.get("speed_bonus", 0),
        speed_threshold_ms=raw.get("speed_threshold_ms"),
        switch_bonus=raw.get("switch_bonus", 0),
        partial_points=dict(raw.get("partial_points") or {}),
    )


def parse_exercise(raw: dict) -> ExerciseDescriptor:
    """Build a descriptor from one catalog entry."""
    try:
        descriptor = ExerciseDescriptor(
            id=raw["id"],
            name=raw["name"],
            kind=raw.get("kind", raw["id"]),
            adapter=raw["adapter"],
            initial=raw["initial"],
            min_value=raw["min"],
            max_value=raw["max"],
            domain=raw.get("domain", ""),
            step=raw.get("step", 1),
            direction=Direction(raw.get("direction", "standard")),
            granularity=Granularity(raw.get("granularity", "trial")),
            correct_threshold=raw.get("correct_threshold", CONSECUTIVE_CORRECT_TO_INCREASE),
            incorrect_threshold=raw.get("incorrect_threshold", CONSECUTIVE_INCORRECT_TO_DECREASE),
            increase_threshold=raw.get("increase_threshold", BLOCK_INCREASE_THRESHOLD),
            decrease_threshold=raw.get("decrease_threshold", BLOCK_DECREASE_THRESHOLD),
            block_size=raw.get("block_size", 0),
            default_trials=raw.get("default_trials", 10),
            adaptive_from_trial=raw.get("adaptive_from_trial", 1),
            dimensions=list(raw.get("dimensions") or []),
            trial=dict(raw.get("trial") or {}),
            scoring=_parse_scoring(raw.get("scoring")),
        )
    except KeyError as e:
        raise InvalidConfig(f"Exercise entry is missing field {e}") from e
    except ValueError as e:
        raise InvalidConfig(f"Exercise entry {raw.get('id', '?')!r}: {e}") from e

    if descriptor.granularity is Granularity.BLOCK and descriptor.block_size < 1:
        raise InvalidConfig(f"Exercise {descriptor.id!r} uses blocks but has no block_size")
    return descriptor


def load_catalog(catalog_file: Path) -> list[ExerciseDescriptor]:
    """Load every exercise listed in a catalog.yaml."""
    with open(catalog_file) as f:
        data = yaml.safe_load(f) or {}
    return [parse_exercise(raw) for raw in data.get("exercises", [])]
