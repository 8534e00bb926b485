"""
Tunable constants for the adaptive engine.

Keep thresholds here so the adapters, the catalog defaults and the tests
all agree on one source.
"""

# Trial-level hysteresis: consecutive same-outcome trials before a step
CONSECUTIVE_CORRECT_TO_INCREASE = 2
CONSECUTIVE_INCORRECT_TO_DECREASE = 2

# Block-level policy (dual n-back): single-shot thresholds per block
BLOCK_INCREASE_THRESHOLD = 0.90
BLOCK_DECREASE_THRESHOLD = 0.70

# Target accuracy band the trial policy aims to keep a player in
TARGET_ACCURACY_MIN = 0.75
TARGET_ACCURACY_MAX = 0.85

# Performance bands
EXCELLENT_ACCURACY = 0.90
GOOD_ACCURACY = 0.75
NEEDS_IMPROVEMENT_ACCURACY = 0.60

# Duration threshold query (UFOV): 10-trial windows at >= 75% correct
THRESHOLD_WINDOW = 10
THRESHOLD_ACCURACY = 0.75

# Grid search bounds (side length of an NxN grid)
GRID_SIZE_MIN = 3
GRID_SIZE_MAX = 7

# Presentation-duration step for UFOV, in ms
DURATION_STEP_MS = 50

# Session stores keep at most this many sessions per exercise
MAX_SESSIONS_STORED = 100
