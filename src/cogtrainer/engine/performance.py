"""Accuracy bands and encouragement messages."""

from __future__ import annotations

import random
from enum import Enum
from typing import Optional

from cogtrainer.engine.constants import (
    EXCELLENT_ACCURACY,
    GOOD_ACCURACY,
    NEEDS_IMPROVEMENT_ACCURACY,
)


class PerformanceLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"


MESSAGES: dict[PerformanceLevel, list[str]] = {
    PerformanceLevel.EXCELLENT: [
        "Outstanding performance!",
        "You're doing exceptionally well!",
        "Excellent work!",
        "You're mastering this!",
    ],
    PerformanceLevel.GOOD: [
        "Great job!",
        "You're doing well!",
        "Good work!",
        "Keep it up!",
    ],
    PerformanceLevel.NEEDS_IMPROVEMENT: [
        "Keep practicing!",
        "You're getting there!",
        "Good effort!",
        "Keep trying!",
    ],
    PerformanceLevel.POOR: [
        "Don't give up!",
        "Every attempt helps you improve!",
        "Keep working at it!",
        "Practice makes progress!",
    ],
}


def classify_performance(accuracy: float) -> PerformanceLevel:
    if accuracy >= EXCELLENT_ACCURACY:
        return PerformanceLevel.EXCELLENT
    if accuracy >= GOOD_ACCURACY:
        return PerformanceLevel.GOOD
    if accuracy >= NEEDS_IMPROVEMENT_ACCURACY:
        return PerformanceLevel.NEEDS_IMPROVEMENT
    return PerformanceLevel.POOR


def performance_message(accuracy: float, rng: Optional[random.Random] = None) -> str:
    """Pick an encouragement message for the accuracy's band."""
    rng = rng or random.Random()
    return rng.choice(MESSAGES[classify_performance(accuracy)])
