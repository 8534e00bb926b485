"""Configuration model for cogtrainer."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from cogtrainer.engine.constants import (
    MAX_SESSIONS_STORED,
    TARGET_ACCURACY_MAX,
    TARGET_ACCURACY_MIN,
)

DEFAULT_DATA_DIR = Path.home() / ".cogtrainer"


class ExerciseOverride(BaseModel):
    """Per-exercise replacement for catalog bounds and session length."""
    initial: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    trials: Optional[int] = Field(default=None, ge=1)


class TargetBand(BaseModel):
    min: float = Field(default=TARGET_ACCURACY_MIN, ge=0.0, le=1.0)
    max: float = Field(default=TARGET_ACCURACY_MAX, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self) -> "TargetBand":
        if self.min > self.max:
            raise ValueError(f"target min {self.min} exceeds max {self.max}")
        return self


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    default_seed: Optional[int] = None
    max_sessions_stored: int = Field(default=MAX_SESSIONS_STORED, ge=1)
    target: TargetBand = Field(default_factory=TargetBand)
    exercises: dict[str, ExerciseOverride] = Field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        config_path = config_path or DEFAULT_DATA_DIR / "config.yaml"
        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        env_dir = os.environ.get("COGTRAINER_DATA_DIR")
        if env_dir:
            data["data_dir"] = env_dir
        return cls(**data)

    @property
    def sessions_db(self) -> Path:
        return self.data_dir / "sessions.db"

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
