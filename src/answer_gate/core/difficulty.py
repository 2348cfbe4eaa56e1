"""Difficulty estimates for incoming queries.

A DifficultyEstimate classifies how hard a query is. Callers key their own
compute budget (number of candidates, whether to verify, whether to search)
on the level; that mapping is policy and does not live here.

Levels:
    - easy: score < 0.35
    - medium: 0.35 <= score <= 0.65
    - hard: score > 0.65
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from answer_gate.errors import (
    AccuracyError,
    InvalidConfidence,
    InvalidLevel,
    InvalidMap,
    InvalidScore,
    translate_validation_error,
)
from answer_gate.thresholds import DIFFICULTY_EASY_THRESHOLD, DIFFICULTY_HARD_THRESHOLD


class DifficultyLevel(Enum):
    """Difficulty classification of a query."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Closed set of wire strings accepted on deserialization
_LEVELS_BY_NAME: dict[str, DifficultyLevel] = {
    "easy": DifficultyLevel.EASY,
    "medium": DifficultyLevel.MEDIUM,
    "hard": DifficultyLevel.HARD,
}


def to_level(score: float | None) -> DifficultyLevel:
    """Convert a numeric difficulty score to a level.

    Args:
        score: Difficulty score in [0, 1]. Non-numeric values map to medium.

    Returns:
        EASY if score < 0.35, HARD if score > 0.65, MEDIUM otherwise.

    Example:
        >>> to_level(0.2)
        <DifficultyLevel.EASY: 'easy'>
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return DifficultyLevel.MEDIUM
    if score < DIFFICULTY_EASY_THRESHOLD:
        return DifficultyLevel.EASY
    if score <= DIFFICULTY_HARD_THRESHOLD:
        return DifficultyLevel.MEDIUM
    return DifficultyLevel.HARD


def parse_level(value: Any) -> DifficultyLevel | None:
    """Convert a level from its wire form.

    Only the three known strings (or DifficultyLevel members) are accepted.

    Raises:
        InvalidLevel: For any other value.
    """
    if value is None:
        return None
    if isinstance(value, DifficultyLevel):
        return value
    if isinstance(value, str) and value in _LEVELS_BY_NAME:
        return _LEVELS_BY_NAME[value]
    raise InvalidLevel(f"unrecognized difficulty level {value!r}")


def _check_unit_interval(value: Any) -> Any:
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    if not 0.0 <= value <= 1.0:
        raise ValueError("must be in [0, 1]")
    return value


class DifficultyEstimate(BaseModel):
    """Difficulty classification for a query.

    Attributes:
        level: Difficulty level. Derived from ``score`` when not given.
        score: Numeric difficulty in [0, 1], optional.
        confidence: Confidence in the estimate, in [0, 1], optional.
        reasoning: Explanation for the assessment.
        features: Contributing signals (length, complexity, domain, ...).
        metadata: Free-form extra information.

    A caller-supplied ``level`` is kept as given even when it disagrees
    with ``score``, which allows manual overrides.

    Example:
        >>> est = DifficultyEstimate.new(score=0.8)
        >>> est.level
        <DifficultyLevel.HARD: 'hard'>
        >>> DifficultyEstimate.new(level="easy", score=0.9).level
        <DifficultyLevel.EASY: 'easy'>
    """

    model_config = ConfigDict(frozen=True)

    level: DifficultyLevel = Field(description="Difficulty level")
    score: float | None = Field(default=None, description="Difficulty score in [0, 1]")
    confidence: float | None = Field(default=None, description="Estimate confidence in [0, 1]")
    reasoning: str | None = Field(default=None, description="Explanation")
    features: dict[str, Any] = Field(default_factory=dict, description="Contributing features")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra information")

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Any:
        level = parse_level(value) if isinstance(value, (str, DifficultyLevel)) else value
        if level is None:
            raise ValueError("level is required")
        return level

    @field_validator("score", "confidence", mode="before")
    @classmethod
    def _check_range(cls, value: Any) -> Any:
        return _check_unit_interval(value)

    @classmethod
    def new(cls, **attrs: Any) -> DifficultyEstimate:
        """Validate attributes and build an estimate.

        Raises:
            InvalidScore: Score outside [0, 1] or not a number.
            InvalidConfidence: Confidence outside [0, 1] or not a number.
            InvalidLevel: Level not one of easy/medium/hard.
        """
        score = attrs.get("score")
        try:
            _check_unit_interval(score)
        except ValueError as e:
            raise InvalidScore(f"score: {e}") from e
        try:
            _check_unit_interval(attrs.get("confidence"))
        except ValueError as e:
            raise InvalidConfidence(f"confidence: {e}") from e

        level = attrs.get("level")
        if level is None:
            level = to_level(score) if score is not None else DifficultyLevel.MEDIUM
        elif not isinstance(level, DifficultyLevel):
            level = parse_level(level)

        try:
            return cls(**{**attrs, "level": level})
        except ValidationError as e:
            raise translate_validation_error(
                e,
                {"level": InvalidLevel, "score": InvalidScore, "confidence": InvalidConfidence},
                AccuracyError,
            ) from e

    @property
    def is_easy(self) -> bool:
        return self.level is DifficultyLevel.EASY

    @property
    def is_medium(self) -> bool:
        return self.level is DifficultyLevel.MEDIUM

    @property
    def is_hard(self) -> bool:
        return self.level is DifficultyLevel.HARD

    @staticmethod
    def easy_threshold() -> float:
        return DIFFICULTY_EASY_THRESHOLD

    @staticmethod
    def hard_threshold() -> float:
        return DIFFICULTY_HARD_THRESHOLD

    def to_dict(self) -> dict[str, Any]:
        """Export to a string-keyed dictionary.

        None and empty-mapping fields are omitted; the level is written as
        its string value.
        """
        data = self.model_dump(mode="json")
        return {k: v for k, v in data.items() if v is not None and v != {}}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DifficultyEstimate:
        """Build an estimate from ``to_dict`` output.

        The level is checked against the closed set of known strings before
        anything else is looked at.

        Raises:
            InvalidMap: ``data`` is not a mapping.
            InvalidLevel: Unrecognized level value.
        """
        if not isinstance(data, Mapping):
            raise InvalidMap(f"expected a mapping, got {type(data).__name__}")
        level = parse_level(data.get("level"))

        attrs = {k: v for k, v in data.items() if k in cls.model_fields and v is not None}
        attrs["level"] = level
        return cls.new(**attrs)
