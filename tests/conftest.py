"""Shared fixtures for cogtrainer tests."""

from __future__ import annotations

import random

import pytest
import yaml

from cogtrainer.config.settings import Settings
from cogtrainer.engine.exercise_loader import parse_exercise
from cogtrainer.exercises.registry import ExerciseRegistry


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def registry():
    """Registry over the packaged catalog."""
    return ExerciseRegistry()


@pytest.fixture
def sample_catalog(tmp_path):
    """A minimal catalog with one trial-level and one block-level exercise."""
    catalog = {
        "exercises": [
            {
                "id": "span_test",
                "name": "Span Test",
                "kind": "digit_span",
                "adapter": "span",
                "initial": 3,
                "min": 3,
                "max": 9,
                "default_trials": 6,
                "scoring": {"points_for_correct": 0, "points_per_unit": 10},
            },
            {
                "id": "nback_test",
                "name": "N-Back Test",
                "kind": "nback",
                "adapter": "nback",
                "granularity": "block",
                "block_size": 5,
                "initial": 2,
                "min": 1,
                "max": 9,
                "default_trials": 10,
                "dimensions": ["position", "sound"],
            },
        ]
    }
    path = tmp_path / "catalog.yaml"
    with open(path, "w") as f:
        yaml.dump(catalog, f)
    return path


@pytest.fixture
def make_descriptor():
    """Build a descriptor from catalog-style keyword arguments."""
    def _make(**raw):
        base = {
            "id": "custom",
            "name": "Custom",
            "kind": "digit_span",
            "adapter": "span",
            "initial": 3,
            "min": 1,
            "max": 9,
        }
        base.update(raw)
        return parse_exercise(base)
    return _make
