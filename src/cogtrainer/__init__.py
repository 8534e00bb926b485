"""Adaptive difficulty and trial sequencing for cognitive-training exercises."""

__version__ = "0.1.0"
