"""Core functionality for answer gating."""

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceEstimate, ConfidenceLevel
from answer_gate.core.difficulty import DifficultyEstimate, DifficultyLevel, to_level
from answer_gate.core.generation import AggregationMethod, GenerationResult, SelectionStrategy
from answer_gate.core.routing import CalibrationGate, RoutingAction, RoutingResult
from answer_gate.core.selection import candidate_similarity, mmr_select
from answer_gate.core.similarity import (
    combined_similarity,
    edit_distance_similarity,
    jaccard_similarity,
    levenshtein_distance,
)

__all__ = [
    "Candidate",
    "ConfidenceEstimate",
    "ConfidenceLevel",
    "DifficultyEstimate",
    "DifficultyLevel",
    "to_level",
    "AggregationMethod",
    "GenerationResult",
    "SelectionStrategy",
    "CalibrationGate",
    "RoutingAction",
    "RoutingResult",
    "candidate_similarity",
    "mmr_select",
    "combined_similarity",
    "edit_distance_similarity",
    "jaccard_similarity",
    "levenshtein_distance",
]
