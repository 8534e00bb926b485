"""Per-trial point rules.

Partial credit for multi-dimensional trials lives here only; the
difficulty controller never sees it.
"""

from __future__ import annotations

from typing import Mapping, Optional

from cogtrainer.engine.exercise_loader import ScoringRules


def score_trial(
    rules: ScoringRules,
    *,
    correct: bool,
    difficulty: float,
    response_time_ms: Optional[float] = None,
    dimensions: Optional[Mapping[str, bool]] = None,
    is_switch: bool = False,
) -> int:
    """Points earned by one trial."""
    if not correct:
        if not dimensions:
            return 0
        return sum(
            rules.partial_points.get(name, 0)
            for name, hit in dimensions.items()
            if hit
        )

    points = rules.points_for_correct + rules.points_per_unit * int(difficulty)
    if is_switch:
        points += rules.switch_bonus
    if (
        rules.speed_threshold_ms is not None
        and response_time_ms is not None
        and response_time_ms < rules.speed_threshold_ms
    ):
        points += rules.speed_bonus
    return points
