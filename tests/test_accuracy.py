"""Tests for windowed accuracy and the threshold-crossing query."""

from __future__ import annotations

import pytest

from cogtrainer.engine.accuracy import (
    AccuracyWindow,
    TrialOutcome,
    accuracy,
    moving_average,
    threshold_crossing_difficulty,
    trend,
)


def _outcomes(pattern: str, difficulty: float = 1) -> list[TrialOutcome]:
    return [TrialOutcome(correct=c == "1", difficulty=difficulty) for c in pattern]


class TestAccuracy:
    def test_empty_history_is_zero(self):
        assert accuracy([]) == 0.0
        assert AccuracyWindow().accuracy(window_size=5) == 0.0

    def test_whole_history(self):
        assert accuracy(_outcomes("1101")) == 0.75

    def test_recent_window(self):
        assert accuracy(_outcomes("0000111"), window_size=3) == 1.0

    def test_window_larger_than_history(self):
        assert accuracy(_outcomes("10"), window_size=10) == 0.5


class TestThresholdCrossing:
    def test_returns_lowest_duration_of_recent_qualifying_window(self):
        history = _outcomes("1" * 12, difficulty=300)
        history += _outcomes("1101111011", difficulty=250)
        assert threshold_crossing_difficulty(history, 10, 0.75) == 250

    def test_is_deterministic(self):
        history = _outcomes("1" * 12, difficulty=300) + _outcomes("1101111011", difficulty=250)
        first = threshold_crossing_difficulty(history, 10, 0.75)
        assert threshold_crossing_difficulty(history, 10, 0.75) == first

    def test_falls_back_to_earlier_window(self):
        history = _outcomes("1" * 10, difficulty=400) + _outcomes("0" * 10, difficulty=350)
        assert threshold_crossing_difficulty(history, 10, 1.0) == 400

    def test_none_when_history_too_short(self):
        assert threshold_crossing_difficulty(_outcomes("111"), 10, 0.75) is None

    def test_none_when_no_window_qualifies(self):
        assert threshold_crossing_difficulty(_outcomes("0" * 15), 10, 0.75) is None

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            threshold_crossing_difficulty(_outcomes("1"), 0, 0.75)


class TestTrend:
    def test_rising_values(self):
        assert trend([0.5, 0.6, 0.7, 0.8]) == pytest.approx(0.1)

    def test_too_few_values(self):
        assert trend([0.9]) == 0.0

    def test_moving_average(self):
        assert moving_average([1, 0, 1, 1], 2) == [0.5, 0.5, 1.0]

    def test_moving_average_short_input_unchanged(self):
        assert moving_average([1.0], 5) == [1.0]


class TestAccuracyWindow:
    def test_history_is_a_copy(self):
        window = AccuracyWindow()
        window.record(TrialOutcome(correct=True, difficulty=3))
        window.history.clear()
        assert len(window) == 1

    def test_difficulty_extremes(self):
        window = AccuracyWindow(_outcomes("11", difficulty=3) + _outcomes("0", difficulty=5))
        assert window.max_difficulty() == 5
        assert window.min_difficulty() == 3

    def test_extremes_empty(self):
        assert AccuracyWindow().max_difficulty() is None

    def test_counts_adjustments(self):
        window = AccuracyWindow()
        window.record(TrialOutcome(correct=True, difficulty=3))
        window.record(TrialOutcome(correct=True, difficulty=3, adjusted_to=4))
        assert window.adjustments() == 1

    def test_improving_trend_is_positive(self):
        window = AccuracyWindow(_outcomes("0000011111"))
        assert window.accuracy_trend(window_size=3) > 0
