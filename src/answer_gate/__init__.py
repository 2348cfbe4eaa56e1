"""Answer Gate - Confidence-gated answer routing and candidate selection.

This library sits between an answer generator and its consumers. It decides
whether to return an answer directly, attach a caveat, abstain or escalate,
and picks one answer out of several generated candidates.

Example:
    >>> from answer_gate import CalibrationGate, Candidate, ConfidenceEstimate
    >>> gate = CalibrationGate.new()
    >>> estimate = ConfidenceEstimate.new(score=0.55, method="attention")
    >>> result = gate.route(Candidate(content="Paris"), estimate)
    >>> result.action.value
    'with_verification'
"""

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
from answer_gate.critique import Critiquer, CritiqueResult, SeverityLevel
from answer_gate.errors import AccuracyError
from answer_gate.estimators import DifficultyEstimator, HeuristicDifficulty
from answer_gate.telemetry import (
    LoggingTelemetry,
    NullTelemetry,
    RecordingTelemetry,
    TelemetrySink,
)

__version__ = "0.1.0"

__all__ = [
    # Values
    "Candidate",
    "ConfidenceEstimate",
    "ConfidenceLevel",
    "DifficultyEstimate",
    "DifficultyLevel",
    "to_level",
    # Generation
    "AggregationMethod",
    "GenerationResult",
    "SelectionStrategy",
    "candidate_similarity",
    "mmr_select",
    # Routing
    "CalibrationGate",
    "RoutingAction",
    "RoutingResult",
    # Similarity
    "combined_similarity",
    "edit_distance_similarity",
    "jaccard_similarity",
    "levenshtein_distance",
    # Estimators and critique
    "DifficultyEstimator",
    "HeuristicDifficulty",
    "Critiquer",
    "CritiqueResult",
    "SeverityLevel",
    # Errors and telemetry
    "AccuracyError",
    "LoggingTelemetry",
    "NullTelemetry",
    "RecordingTelemetry",
    "TelemetrySink",
]
