"""Windowed accuracy and trend queries over an append-only trial history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence


@dataclass
class TrialOutcome:
    """One recorded trial (or one block, for block-granularity adapters)."""
    correct: bool
    difficulty: float  # difficulty in effect when the trial was played
    response_time_ms: Optional[float] = None
    adjusted_to: Optional[float] = None  # new difficulty if this outcome moved it
    timed_out: bool = False  # analytics only, adapts exactly like a wrong answer
    score: int = 0
    dimensions: dict[str, bool] = field(default_factory=dict)


def accuracy(history: Sequence[TrialOutcome], window_size: int = 0) -> float:
    """Fraction of correct outcomes, over all history or the last ``window_size``.

    Returns 0.0 for an empty history.
    """
    if not history:
        return 0.0
    trials = list(history)
    if window_size > 0:
        trials = trials[-window_size:]
    correct = sum(1 for t in trials if t.correct)
    return correct / len(trials)


def threshold_crossing_difficulty(
    history: Sequence[TrialOutcome],
    window_size: int,
    accuracy_threshold: float,
) -> Optional[float]:
    """Lowest difficulty in the most recent window that meets the threshold.

    Windows of ``window_size`` consecutive trials are scanned from the most
    recent one backward. Returns None when no full window qualifies.
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    trials = list(history)
    for start in range(len(trials) - window_size, -1, -1):
        window = trials[start : start + window_size]
        if accuracy(window) >= accuracy_threshold:
            return min(t.difficulty for t in window)
    return None


def moving_average(values: Sequence[float], window_size: int) -> list[float]:
    """Means of each run of ``window_size`` consecutive values."""
    values = list(values)
    if window_size < 1 or len(values) < window_size:
        return values
    return [
        sum(values[i : i + window_size]) / window_size
        for i in range(len(values) - window_size + 1)
    ]


def trend(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index.

    Positive means improving. Fewer than two values gives 0.0.
    """
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    return (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)


class AccuracyWindow:
    """Append-only record of outcomes with accuracy queries."""

    def __init__(self, history: Optional[list[TrialOutcome]] = None):
        self._history: list[TrialOutcome] = history if history is not None else []

    def __len__(self) -> int:
        return len(self._history)

    def record(self, outcome: TrialOutcome) -> None:
        self._history.append(outcome)

    def clear(self) -> None:
        self._history = []

    @property
    def history(self) -> list[TrialOutcome]:
        return list(self._history)

    def accuracy(self, window_size: int = 0) -> float:
        return accuracy(self._history, window_size)

    def threshold_crossing_difficulty(
        self, window_size: int, accuracy_threshold: float
    ) -> Optional[float]:
        return threshold_crossing_difficulty(
            self._history, window_size, accuracy_threshold
        )

    def accuracy_trend(self, window_size: int = 5) -> float:
        """Slope of the moving accuracy; positive when recent play is better."""
        hits = [1.0 if t.correct else 0.0 for t in self._history]
        return trend(moving_average(hits, window_size))

    def max_difficulty(self) -> Optional[float]:
        if not self._history:
            return None
        return max(t.difficulty for t in self._history)

    def min_difficulty(self) -> Optional[float]:
        if not self._history:
            return None
        return min(t.difficulty for t in self._history)

    def adjustments(self) -> int:
        return sum(1 for t in self._history if t.adjusted_to is not None)
