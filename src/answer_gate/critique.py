"""Critique results and the critiquer interface.

Critiquing (asking a model or a tool what is wrong with an answer) happens
outside this package. This module defines the result shape and the
abstract interface that critiquer implementations follow.

Severity bands:
    - low: severity < 0.3 (minor issues, optional improvements)
    - medium: 0.3 <= severity < 0.7 (notable issues, should address)
    - high: severity >= 0.7 (critical issues, must address)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from answer_gate.core.candidate import Candidate
from answer_gate.errors import (
    AccuracyError,
    InvalidMap,
    InvalidSeverity,
    translate_validation_error,
)
from answer_gate.thresholds import (
    DEFAULT_REFINE_THRESHOLD,
    SEVERITY_HIGH_THRESHOLD,
    SEVERITY_MEDIUM_THRESHOLD,
)


class SeverityLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _is_actionable(issues: list[Any], severity: float) -> bool:
    return bool(issues) or severity > SEVERITY_MEDIUM_THRESHOLD


class CritiqueResult(BaseModel):
    """Structured feedback about a candidate.

    Attributes:
        severity: Overall severity in [0, 1].
        issues: Identified issues (strings or structured mappings).
        suggestions: Improvement suggestions.
        feedback: Natural language summary.
        actionable: True when there are issues or severity exceeds 0.3.
        metadata: Free-form extra information.

    Example:
        >>> result = CritiqueResult.new(severity=0.8, issues=["Calculation error"])
        >>> result.severity_level
        <SeverityLevel.HIGH: 'high'>
    """

    model_config = ConfigDict(frozen=True)

    severity: float = Field(ge=0.0, le=1.0, description="Severity in [0, 1]")
    issues: list[str | dict[str, Any]] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    feedback: str | None = None
    actionable: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def new(cls, **attrs: Any) -> CritiqueResult:
        """Validate attributes and build a result; ``actionable`` is derived.

        Raises:
            InvalidSeverity: Missing, non-numeric or out-of-range severity.
        """
        severity = attrs.get("severity")
        if isinstance(severity, bool) or not isinstance(severity, (int, float)):
            raise InvalidSeverity(f"severity must be a number, got {severity!r}")

        issues = list(attrs.get("issues") or [])
        attrs = {**attrs, "issues": issues, "actionable": _is_actionable(issues, severity)}
        try:
            return cls(**attrs)
        except ValidationError as e:
            raise translate_validation_error(e, {"severity": InvalidSeverity}, AccuracyError) from e

    @classmethod
    def no_issues(cls) -> CritiqueResult:
        return cls.new(severity=0.0, feedback="No issues found")

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0

    @property
    def severity_level(self) -> SeverityLevel:
        if self.severity < SEVERITY_MEDIUM_THRESHOLD:
            return SeverityLevel.LOW
        if self.severity < SEVERITY_HIGH_THRESHOLD:
            return SeverityLevel.MEDIUM
        return SeverityLevel.HIGH

    def should_refine(self, threshold: float = DEFAULT_REFINE_THRESHOLD) -> bool:
        """True when severity is strictly above ``threshold``."""
        return self.severity > threshold

    def add_issue(self, issue: str | dict[str, Any]) -> CritiqueResult:
        """Return a copy with ``issue`` appended."""
        issues = [*self.issues, issue]
        return self.model_copy(
            update={"issues": issues, "actionable": _is_actionable(issues, self.severity)}
        )

    def merge(self, other: CritiqueResult) -> CritiqueResult:
        """Combine two results.

        Issues and suggestions are concatenated, the higher severity wins,
        feedback is joined with a newline and metadata from ``other`` takes
        precedence on key clashes.
        """
        if self.feedback is None or other.feedback is None:
            feedback = self.feedback if other.feedback is None else other.feedback
        else:
            feedback = f"{self.feedback}\n{other.feedback}"

        return CritiqueResult(
            severity=max(self.severity, other.severity),
            issues=[*self.issues, *other.issues],
            suggestions=[*self.suggestions, *other.suggestions],
            feedback=feedback,
            actionable=self.actionable or other.actionable,
            metadata={**self.metadata, **other.metadata},
        )

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}

    @classmethod
    def from_dict(cls, data: Any) -> CritiqueResult:
        """Inverse of ``to_dict``; ``actionable`` is recomputed."""
        if not isinstance(data, Mapping):
            raise InvalidMap(f"expected a mapping, got {type(data).__name__}")
        return cls.new(**{k: v for k, v in data.items() if k in cls.model_fields})


class Critiquer(ABC):
    """Abstract base class for critiquers.

    Implementations examine a candidate and report what is wrong with it.
    """

    @abstractmethod
    def critique(
        self, candidate: Candidate, context: Mapping[str, Any] | None = None
    ) -> CritiqueResult:
        """Critique a single candidate.

        Args:
            candidate: The candidate answer to examine.
            context: Optional extra information (the original query, ...).

        Returns:
            CritiqueResult describing the problems found.
        """
        ...

    def critique_batch(
        self, candidates: Iterable[Candidate], context: Mapping[str, Any] | None = None
    ) -> list[CritiqueResult]:
        """Critique several candidates in order."""
        return [self.critique(candidate, context) for candidate in candidates]
