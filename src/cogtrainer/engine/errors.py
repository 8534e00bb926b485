"""Error taxonomy for the difficulty engine."""

from __future__ import annotations


class CogTrainerError(Exception):
    """Base class for all engine errors."""


class InvalidConfig(CogTrainerError, ValueError):
    """Rejected configuration: bad bounds, thresholds, step or trial count."""


class IllegalState(CogTrainerError, RuntimeError):
    """An operation was called before the object was ready for it."""
