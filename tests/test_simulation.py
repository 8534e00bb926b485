"""Tests for the simulated player."""

from __future__ import annotations

import random

from cogtrainer.engine.simulation import SimulatedPlayer, run_simulation


class TestSimulatedPlayer:
    def test_harder_trials_are_less_likely(self, registry):
        d = registry.get_exercise("digit_span")
        player = SimulatedPlayer(skill=0.5)
        assert player.p_correct(d, 2) > player.p_correct(d, 9)

    def test_inverted_hardness(self, registry):
        d = registry.get_exercise("ufov_basic")
        player = SimulatedPlayer()
        assert player.hardness(d, 100) == 1.0
        assert player.hardness(d, 500) == 0.0

    def test_dimensions_reported(self, registry):
        d = registry.get_exercise("ufov_basic")
        spec_player = SimulatedPlayer(rng=random.Random(2))
        run = run_simulation(d, trials=1, seed=2)
        kwargs = spec_player.respond(d, run.trials[0][0])
        assert set(kwargs["dimensions"]) == {"central", "peripheral"}


class TestRunSimulation:
    def test_runs_default_length(self, registry):
        run = run_simulation(registry.get_exercise("word_pair"), seed=5)
        assert run.summary.total_trials == 5
        assert run.trials[-1][1].session_complete

    def test_reproducible(self, registry):
        d = registry.get_exercise("stroop")
        a = run_simulation(d, trials=20, seed=9)
        b = run_simulation(d, trials=20, seed=9)
        assert a.summary == b.summary

    def test_difficulty_stays_in_bounds(self, registry):
        for d in registry.list_exercises():
            run = run_simulation(d, trials=30, seed=4, skill=0.9)
            assert d.min_value <= run.summary.min_difficulty_reached
            assert run.summary.max_difficulty_reached <= d.max_value

    def test_skilled_player_climbs(self, registry):
        d = registry.get_exercise("digit_span")
        weak = run_simulation(d, trials=40, seed=1, skill=0.1)
        strong = run_simulation(d, trials=40, seed=1, skill=0.9)
        assert strong.summary.final_difficulty > weak.summary.final_difficulty
