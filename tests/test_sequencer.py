"""Tests for the session state machine."""

from __future__ import annotations

import random

import pytest

from cogtrainer.engine.errors import IllegalState, InvalidConfig
from cogtrainer.engine.exercise_loader import load_catalog
from cogtrainer.engine.sequencer import SessionState, TrialSequencer


@pytest.fixture
def sequencer():
    return TrialSequencer(rng=random.Random(0))


@pytest.fixture
def nback_descriptor(sample_catalog):
    return load_catalog(sample_catalog)[1]


def _play(sequencer, outcomes, **kwargs):
    results = []
    for correct in outcomes:
        sequencer.next_trial_parameters()
        results.append(sequencer.submit_trial_result(correct, **kwargs))
    return results


class TestLifecycle:
    def test_starts_idle(self, sequencer):
        assert sequencer.state is SessionState.IDLE

    def test_start_returns_initial(self, sequencer, registry):
        assert sequencer.start_session(10, registry.get_exercise("digit_span")) == 2
        assert sequencer.state is SessionState.IN_SESSION

    def test_rejects_empty_session(self, sequencer, registry):
        with pytest.raises(InvalidConfig):
            sequencer.start_session(0, registry.get_exercise("digit_span"))

    def test_cannot_start_twice(self, sequencer, registry):
        sequencer.start_session(5, registry.get_exercise("digit_span"))
        with pytest.raises(IllegalState):
            sequencer.start_session(5, registry.get_exercise("digit_span"))

    def test_next_trial_before_start(self, sequencer):
        with pytest.raises(IllegalState):
            sequencer.next_trial_parameters()

    def test_submit_before_parameters(self, sequencer, registry):
        sequencer.start_session(5, registry.get_exercise("digit_span"))
        with pytest.raises(IllegalState):
            sequencer.submit_trial_result(True)

    def test_submit_requires_an_outcome(self, sequencer, registry):
        sequencer.start_session(5, registry.get_exercise("digit_span"))
        sequencer.next_trial_parameters()
        with pytest.raises(ValueError):
            sequencer.submit_trial_result()

    def test_repeated_request_returns_same_trial(self, sequencer, registry):
        sequencer.start_session(5, registry.get_exercise("digit_span"))
        assert sequencer.next_trial_parameters() is sequencer.next_trial_parameters()

    def test_completes_exactly_at_total(self, sequencer, registry):
        sequencer.start_session(3, registry.get_exercise("digit_span"))
        results = _play(sequencer, [True, False, True])
        assert [r.session_complete for r in results] == [False, False, True]
        assert sequencer.state is SessionState.COMPLETE
        with pytest.raises(IllegalState):
            sequencer.next_trial_parameters()
        with pytest.raises(IllegalState):
            sequencer.start_session(3, registry.get_exercise("digit_span"))

    def test_progress_fraction(self, sequencer, registry):
        sequencer.start_session(4, registry.get_exercise("digit_span"))
        _play(sequencer, [True])
        assert sequencer.progress.progress_fraction == 0.25

    def test_finalize_before_start(self, sequencer):
        with pytest.raises(IllegalState):
            sequencer.finalize_session()


class TestTrialAdaptation:
    def test_difficulty_follows_hysteresis(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("digit_span"))
        results = _play(sequencer, [True, True])
        assert results[1].difficulty_changed
        assert sequencer.next_trial_parameters().difficulty == 3
        assert sequencer.next_trial_parameters().params["sequence_length"] == 3

    def test_timeout_counts_as_incorrect(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("stroop"))
        results = _play(sequencer, [True, True], timed_out=True)
        assert not results[0].correct
        # two misses ease the inverted time limit
        assert results[1].current_difficulty == 3200

    def test_partial_dimensions_score_but_do_not_count(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("ufov_basic"))
        for _ in range(2):
            sequencer.next_trial_parameters()
            r = sequencer.submit_trial_result(
                True, dimensions={"central": True, "peripheral": False}
            )
        assert not r.correct
        assert r.score == 10
        # already at the easiest duration, so the misses cannot move it
        assert r.current_difficulty == 500

    def test_full_dimensions_make_it_harder(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("ufov_basic"))
        for _ in range(2):
            sequencer.next_trial_parameters()
            r = sequencer.submit_trial_result(dimensions={"central": True, "peripheral": True})
        assert r.correct
        assert r.score == 20
        assert r.current_difficulty == 450

    def test_task_switching_waits_for_mixed_block(self, sequencer, registry):
        sequencer.start_session(30, registry.get_exercise("task_switching"))
        results = _play(sequencer, [True] * 20)
        assert not any(r.difficulty_changed for r in results)
        assert sequencer.current_difficulty() == 800

        results = _play(sequencer, [True, True])
        assert results[1].difficulty_changed
        assert sequencer.current_difficulty() == 700


class TestBlockAdaptation:
    def test_adjusts_once_per_block(self, sequencer, nback_descriptor):
        sequencer.start_session(10, nback_descriptor)
        results = _play(sequencer, [True] * 5)
        assert [r.difficulty_changed for r in results] == [False] * 4 + [True]
        assert results[-1].block_accuracy == 1.0
        assert sequencer.current_difficulty() == 3

    def test_warmup_trials_excluded(self, sequencer, nback_descriptor):
        sequencer.start_session(10, nback_descriptor)
        # the first two trials of a 2-back block have nothing to match
        results = _play(sequencer, [False, False, True, True, True])
        assert results[-1].block_accuracy == 1.0
        assert sequencer.current_difficulty() == 3

    def test_poor_block_lowers_level(self, sequencer, nback_descriptor):
        sequencer.start_session(10, nback_descriptor)
        _play(sequencer, [True, True, False, True, False])
        assert sequencer.current_difficulty() == 1

    def test_new_level_applies_to_next_block(self, sequencer, nback_descriptor):
        sequencer.start_session(10, nback_descriptor)
        _play(sequencer, [True] * 5)
        spec = sequencer.next_trial_parameters()
        assert spec.params["n"] == 3
        assert spec.params["block"] == 2


class TestFinalize:
    def test_summary(self, sequencer, registry):
        sequencer.start_session(4, registry.get_exercise("digit_span"))
        for correct, rt in [(True, 1000), (True, 2000), (False, 500), (True, None)]:
            sequencer.next_trial_parameters()
            sequencer.submit_trial_result(correct, rt)
        summary = sequencer.finalize_session()
        assert summary.exercise_id == "digit_span"
        assert summary.total_trials == 4
        assert summary.correct_trials == 3
        assert summary.accuracy == 0.75
        # only correct trials with a recorded time count
        assert summary.average_response_time == 1500
        assert summary.max_difficulty_reached == 3
        assert summary.min_difficulty_reached == 2
        assert summary.final_difficulty == 3
        assert summary.score == 20 + 20 + 30
        assert summary.to_dict()["score"] == 70

    def test_early_finalize(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("digit_span"))
        _play(sequencer, [True])
        summary = sequencer.finalize_session()
        assert summary.total_trials == 1
        assert sequencer.state is SessionState.COMPLETE

    def test_empty_session_summary(self, sequencer, registry):
        sequencer.start_session(10, registry.get_exercise("digit_span"))
        summary = sequencer.finalize_session()
        assert summary.accuracy == 0.0
        assert summary.average_response_time == 0.0
        assert summary.max_difficulty_reached == 2

    def test_duration_threshold_reported(self, sequencer, registry):
        sequencer.start_session(3, registry.get_exercise("ufov_basic"))
        _play(sequencer, [True, True, True])
        summary = sequencer.finalize_session()
        assert summary.threshold_difficulty == 450

    def test_level_earned_by_last_block_counts(self, sequencer, nback_descriptor):
        sequencer.start_session(5, nback_descriptor)
        _play(sequencer, [True] * 5)
        summary = sequencer.finalize_session()
        assert summary.final_difficulty == 3
        assert summary.max_difficulty_reached == 3
        assert summary.min_difficulty_reached == 2

    def test_no_threshold_for_span(self, sequencer, registry):
        sequencer.start_session(1, registry.get_exercise("digit_span"))
        _play(sequencer, [True])
        assert sequencer.finalize_session().threshold_difficulty is None

    def test_timeouts_counted(self, sequencer, registry):
        sequencer.start_session(2, registry.get_exercise("stroop"))
        sequencer.next_trial_parameters()
        sequencer.submit_trial_result(False, timed_out=True)
        sequencer.next_trial_parameters()
        sequencer.submit_trial_result(True, 800)
        assert sequencer.finalize_session().timeout_trials == 1
