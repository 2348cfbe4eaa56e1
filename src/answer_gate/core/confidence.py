"""Confidence estimates attached to candidate answers.

A ConfidenceEstimate is produced by an external estimator (attention-based,
ensemble, self-reported, ...). This module only validates and carries it;
the calibration gate consumes ``score``.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from answer_gate.errors import AccuracyError, InvalidMethod, InvalidScore, translate_validation_error
from answer_gate.thresholds import CALIBRATION_HIGH_CONFIDENCE, CALIBRATION_MEDIUM_CONFIDENCE


class ConfidenceLevel(Enum):
    """Three-band classification of a confidence score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConfidenceEstimate(BaseModel):
    """Confidence score for a candidate, with provenance.

    Attributes:
        score: Confidence in [0, 1].
        method: Identifier of the estimation method, e.g. "attention".
        calibration: How well-calibrated the estimate is, if known.
        reasoning: Human-readable explanation.
        token_level_confidence: Per-token scores, in token order.
        metadata: Free-form extra information.

    Example:
        >>> est = ConfidenceEstimate.new(score=0.85, method="attention")
        >>> est.confidence_level
        <ConfidenceLevel.HIGH: 'high'>
    """

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0, description="Confidence in [0, 1]")
    method: str = Field(min_length=1, description="Estimation method")
    calibration: float | None = Field(default=None, description="Calibration metric")
    reasoning: str | None = Field(default=None, description="Explanation")
    token_level_confidence: list[float] | None = Field(
        default=None, description="Per-token confidence scores"
    )
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra information")

    @field_validator("score", mode="before")
    @classmethod
    def _reject_non_numeric(cls, value: Any) -> Any:
        # bool is an int subclass and str would be coerced; both are invalid scores
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        return value

    @classmethod
    def new(cls, **attrs: Any) -> ConfidenceEstimate:
        """Validate attributes and build an estimate.

        Raises:
            InvalidScore: Missing or out-of-range score.
            InvalidMethod: Missing or empty method.
        """
        if attrs.get("score") is None:
            raise InvalidScore("score is required")
        if attrs.get("method") in (None, ""):
            raise InvalidMethod("method is required")
        try:
            return cls(**attrs)
        except ValidationError as e:
            raise translate_validation_error(
                e, {"score": InvalidScore, "method": InvalidMethod}, AccuracyError
            ) from e

    @property
    def confidence_level(self) -> ConfidenceLevel:
        """Band of the score under the default calibration thresholds."""
        if self.score >= CALIBRATION_HIGH_CONFIDENCE:
            return ConfidenceLevel.HIGH
        if self.score >= CALIBRATION_MEDIUM_CONFIDENCE:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    @property
    def is_high(self) -> bool:
        return self.score >= CALIBRATION_HIGH_CONFIDENCE

    @property
    def is_medium(self) -> bool:
        return CALIBRATION_MEDIUM_CONFIDENCE <= self.score < CALIBRATION_HIGH_CONFIDENCE

    @property
    def is_low(self) -> bool:
        return self.score < CALIBRATION_MEDIUM_CONFIDENCE

    def to_dict(self) -> dict[str, Any]:
        """Export to a string-keyed dictionary without None/empty fields."""
        return {k: v for k, v in self.model_dump().items() if v is not None and v != {}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfidenceEstimate:
        """Inverse of ``to_dict``; unknown keys are ignored."""
        return cls.new(**{k: v for k, v in data.items() if k in cls.model_fields})
