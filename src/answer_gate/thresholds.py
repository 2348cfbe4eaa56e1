"""Centralized threshold constants.

A single source of truth for the cut-off values used across the package.
Components take these as defaults; callers override per instance.
"""

# Difficulty classification: score < EASY -> easy, score > HARD -> hard
DIFFICULTY_EASY_THRESHOLD = 0.35
DIFFICULTY_HARD_THRESHOLD = 0.65

# Calibration gate bands: >= HIGH -> high, >= MEDIUM -> medium, else low
CALIBRATION_HIGH_CONFIDENCE = 0.7
CALIBRATION_MEDIUM_CONFIDENCE = 0.4

# Critique severity bands
SEVERITY_MEDIUM_THRESHOLD = 0.3
SEVERITY_HIGH_THRESHOLD = 0.7
DEFAULT_REFINE_THRESHOLD = 0.3

# Tolerance for comparing thresholds that should differ
FLOAT_EPSILON = 1e-4
