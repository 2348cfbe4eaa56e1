"""Query difficulty estimators."""

from answer_gate.estimators.base import DifficultyEstimator
from answer_gate.estimators.heuristic import HeuristicDifficulty

__all__ = ["DifficultyEstimator", "HeuristicDifficulty"]
