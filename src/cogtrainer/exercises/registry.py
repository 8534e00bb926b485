"""Exercise discovery and registry."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from cogtrainer.engine.exercise_loader import ExerciseDescriptor, load_catalog

if TYPE_CHECKING:
    from cogtrainer.config.settings import ExerciseOverride


class ExerciseRegistry:
    """Loads exercise descriptors from the catalog and applies overrides."""

    def __init__(
        self,
        catalog_file: Path | None = None,
        overrides: dict[str, ExerciseOverride] | None = None,
    ):
        self.catalog_file = catalog_file or (Path(__file__).parent / "catalog.yaml")
        self.overrides = overrides or {}
        self._descriptors: list[ExerciseDescriptor] | None = None

    def _load(self) -> list[ExerciseDescriptor]:
        if self._descriptors is None:
            self._descriptors = load_catalog(self.catalog_file)
        return self._descriptors

    def _apply_override(self, descriptor: ExerciseDescriptor) -> ExerciseDescriptor:
        override = self.overrides.get(descriptor.id)
        if override is None:
            return descriptor
        return descriptor.with_overrides(
            initial=override.initial,
            min_value=override.min,
            max_value=override.max,
            step=override.step,
            default_trials=override.trials,
        )

    def list_exercises(self) -> list[ExerciseDescriptor]:
        return [self._apply_override(d) for d in self._load()]

    def get_exercise(self, exercise_id: str) -> ExerciseDescriptor | None:
        for descriptor in self._load():
            if descriptor.id == exercise_id:
                return self._apply_override(descriptor)
        return None
