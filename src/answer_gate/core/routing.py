"""Confidence-gated routing of candidate answers.

This module provides the CalibrationGate, which decides what to do with a
candidate based on its confidence score, and the RoutingResult it produces.

Routing bands (boundaries belong to the higher band):
    - score >= high_threshold -> high: return the answer directly
    - low_threshold <= score < high_threshold -> medium: ``medium_action``
    - score < low_threshold -> low: ``low_action``
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceEstimate, ConfidenceLevel
from answer_gate.errors import (
    InvalidAction,
    InvalidConfidenceLevel,
    InvalidMap,
    InvalidScore,
    InvalidThresholds,
)
from answer_gate.telemetry import CALIBRATION_ROUTE_EVENT, TelemetrySink, safe_emit
from answer_gate.thresholds import (
    CALIBRATION_HIGH_CONFIDENCE,
    CALIBRATION_MEDIUM_CONFIDENCE,
    FLOAT_EPSILON,
)

logger = logging.getLogger(__name__)

VERIFICATION_SUFFIX = "\n\n[Confidence: Medium] Please verify this information independently."
CITATION_SUFFIX = "\n\n[Confidence: Medium] Consider verifying this with additional sources."


class RoutingAction(Enum):
    """What to do with a routed candidate."""

    DIRECT = "direct"  # Return unchanged
    WITH_VERIFICATION = "with_verification"  # Append a verify-independently note
    WITH_CITATIONS = "with_citations"  # Append a check-other-sources note
    ABSTAIN = "abstain"  # Replace with an abstention message
    ESCALATE = "escalate"  # Replace with a human-review notice


def _parse_action(value: Any) -> RoutingAction | Any:
    """Known strings become RoutingAction; anything else is returned as-is."""
    if isinstance(value, str) and not isinstance(value, Enum):
        for member in RoutingAction:
            if member.value == value:
                return member
    return value


def _parse_confidence_level(value: Any) -> ConfidenceLevel | Any:
    if isinstance(value, str) and not isinstance(value, Enum):
        for member in ConfidenceLevel:
            if member.value == value:
                return member
    return value


def _check_score(score: Any) -> None:
    if score is None:
        return
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise InvalidScore(f"original_score must be a number, got {score!r}")
    if not 0.0 <= score <= 1.0:
        raise InvalidScore(f"original_score {score} outside [0, 1]")


@dataclass(frozen=True)
class RoutingResult:
    """Result of routing a candidate through a calibration gate.

    Attributes:
        action: The action taken.
        candidate: The candidate to return; a replacement for abstain/escalate.
        original_score: The confidence score that drove the decision.
        confidence_level: The band the score fell into.
        reasoning: Human-readable explanation of the decision.
        metadata: Additional context (thresholds in effect, ...).

    ``action`` and ``confidence_level`` may hold raw strings when the result
    was deserialized from unrecognized labels; call ``validate()`` to check.
    """

    action: RoutingAction | str
    candidate: Candidate | None = None
    original_score: float | None = None
    confidence_level: ConfidenceLevel | str | None = None
    reasoning: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", _parse_action(self.action))
        object.__setattr__(self, "confidence_level", _parse_confidence_level(self.confidence_level))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    @classmethod
    def new(cls, **attrs: Any) -> RoutingResult:
        """Build a result, validating every recognized field.

        Raises:
            InvalidAction: Action missing or not one of the five actions.
            InvalidScore: Score not a number in [0, 1].
            InvalidConfidenceLevel: Level not one of high/medium/low.
        """
        result = cls(
            action=attrs.get("action"),
            candidate=attrs.get("candidate"),
            original_score=attrs.get("original_score"),
            confidence_level=attrs.get("confidence_level"),
            reasoning=attrs.get("reasoning"),
            metadata=attrs.get("metadata") or {},
        )
        result.validate()
        return result

    def validate(self) -> RoutingResult:
        """Check action, score and confidence level; return self when valid."""
        if not isinstance(self.action, RoutingAction):
            raise InvalidAction(f"unrecognized action {self.action!r}")
        _check_score(self.original_score)
        if self.confidence_level is not None and not isinstance(
            self.confidence_level, ConfidenceLevel
        ):
            raise InvalidConfidenceLevel(f"unrecognized confidence level {self.confidence_level!r}")
        return self

    @property
    def is_direct(self) -> bool:
        return self.action is RoutingAction.DIRECT

    @property
    def is_with_verification(self) -> bool:
        return self.action is RoutingAction.WITH_VERIFICATION

    @property
    def is_with_citations(self) -> bool:
        return self.action is RoutingAction.WITH_CITATIONS

    @property
    def is_abstained(self) -> bool:
        return self.action is RoutingAction.ABSTAIN

    @property
    def is_escalated(self) -> bool:
        return self.action is RoutingAction.ESCALATE

    @property
    def is_unmodified(self) -> bool:
        """True when the candidate was returned as-is."""
        return self.action is RoutingAction.DIRECT

    @property
    def is_modified(self) -> bool:
        return not self.is_unmodified

    def to_dict(self) -> dict[str, Any]:
        """Export to a string-keyed dictionary without None/empty fields."""
        data = {
            "action": self.action.value if isinstance(self.action, Enum) else self.action,
            "candidate": self.candidate.to_dict() if self.candidate is not None else None,
            "original_score": self.original_score,
            "confidence_level": (
                self.confidence_level.value
                if isinstance(self.confidence_level, Enum)
                else self.confidence_level
            ),
            "reasoning": self.reasoning,
            "metadata": dict(self.metadata),
        }
        return {k: v for k, v in data.items() if v is not None and v != {}}

    @classmethod
    def from_dict(cls, data: Any) -> RoutingResult:
        """Rebuild a result from ``to_dict`` output.

        Unrecognized action or confidence level strings are kept as raw
        strings instead of failing; use ``validate()`` afterwards if needed.

        Raises:
            InvalidMap: ``data`` is not a mapping or metadata is malformed.
            InvalidCandidate: The candidate entry cannot be deserialized.
            InvalidScore: The score is present but invalid.
        """
        if not isinstance(data, Mapping):
            raise InvalidMap(f"expected a mapping, got {type(data).__name__}")

        candidate = data.get("candidate")
        if candidate is not None and not isinstance(candidate, Candidate):
            candidate = Candidate.from_dict(candidate)

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise InvalidMap("metadata must be a mapping")

        _check_score(data.get("original_score"))
        return cls(
            action=data.get("action"),
            candidate=candidate,
            original_score=data.get("original_score"),
            confidence_level=data.get("confidence_level"),
            reasoning=data.get("reasoning"),
            metadata=dict(metadata),
        )


_REASONING = {
    RoutingAction.DIRECT: "returning answer directly",
    RoutingAction.WITH_VERIFICATION: "adding verification suggestion",
    RoutingAction.WITH_CITATIONS: "adding citations",
    RoutingAction.ABSTAIN: "abstaining from answer",
    RoutingAction.ESCALATE: "escalating for review",
}


def _append_suffix(candidate: Candidate, suffix: str) -> Candidate:
    if not isinstance(candidate.content, str):
        return candidate
    return candidate.model_copy(update={"content": candidate.content + suffix})


def build_abstention_candidate(score: float) -> Candidate:
    """Create the replacement candidate returned when abstaining."""
    content = (
        "I'm not confident enough to provide a definitive answer to this question "
        f"(confidence: {score:.2f}).\n"
        "\n"
        "This could be because:\n"
        "- The question is ambiguous or unclear\n"
        "- I don't have sufficient information to answer accurately\n"
        "- There are multiple valid interpretations\n"
        "\n"
        "Suggestions:\n"
        "- Try rephrasing your question with more specific details\n"
        "- Break the question into smaller parts\n"
        "- Provide additional context"
    )
    return Candidate(
        content=content,
        score=None,
        metadata={"abstained": True, "original_confidence": score},
    )


def build_escalation_candidate(score: float) -> Candidate:
    """Create the replacement candidate returned when escalating."""
    content = (
        f"I'm not confident enough to provide a definitive answer (confidence: {score:.2f}).\n"
        "\n"
        "This question has been escalated for human review. "
        "Someone will provide assistance shortly."
    )
    return Candidate(
        content=content,
        score=None,
        metadata={"escalated": True, "original_confidence": score},
    )


@dataclass(frozen=True)
class CalibrationGate:
    """Routes candidates to direct/annotated/abstained/escalated responses.

    The gate holds configuration only, so one instance can be shared freely
    across threads.

    Attributes:
        high_threshold: Minimum score for direct return.
        low_threshold: Minimum score for the medium band.
        medium_action: Action for medium confidence.
        low_action: Action for low confidence.
        emit_telemetry: Whether ``route`` reports an event.
        telemetry: Sink for events; the process default when None.

    Example:
        >>> gate = CalibrationGate.new(low_action="escalate")
        >>> estimate = ConfidenceEstimate.new(score=0.35, method="attention")
        >>> result = gate.route(Candidate(content="The answer is 42"), estimate)
        >>> result.action
        <RoutingAction.ESCALATE: 'escalate'>
    """

    high_threshold: float = CALIBRATION_HIGH_CONFIDENCE
    low_threshold: float = CALIBRATION_MEDIUM_CONFIDENCE
    medium_action: RoutingAction = RoutingAction.WITH_VERIFICATION
    low_action: RoutingAction = RoutingAction.ABSTAIN
    emit_telemetry: bool = True
    telemetry: TelemetrySink | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        high, low = self.high_threshold, self.low_threshold
        numeric = all(
            isinstance(t, (int, float)) and not isinstance(t, bool) and math.isfinite(t)
            for t in (high, low)
        )
        if not numeric or not high - low > FLOAT_EPSILON:
            raise InvalidThresholds(
                f"high_threshold ({high!r}) must exceed low_threshold ({low!r})"
            )

        for name in ("medium_action", "low_action"):
            action = _parse_action(getattr(self, name))
            if not isinstance(action, RoutingAction):
                raise InvalidAction(f"{name} {getattr(self, name)!r} is not a routing action")
            object.__setattr__(self, name, action)

    @classmethod
    def new(cls, **attrs: Any) -> CalibrationGate:
        """Build a gate from keyword attributes, using defaults for the rest.

        Raises:
            InvalidThresholds: high_threshold does not exceed low_threshold.
            InvalidAction: medium_action or low_action is not a routing action.
        """
        known = {k: v for k, v in attrs.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def confidence_level(self, score: float) -> ConfidenceLevel:
        """Classify a score into high/medium/low for this gate."""
        if score >= self.high_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.low_threshold:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def should_route(self, score: float) -> RoutingAction:
        """Return the action ``route`` would take for ``score``.

        A pre-flight check: no candidate needed, no telemetry emitted.
        """
        return self._action_for(self.confidence_level(score))

    def _action_for(self, level: ConfidenceLevel) -> RoutingAction:
        if level is ConfidenceLevel.HIGH:
            return RoutingAction.DIRECT
        if level is ConfidenceLevel.MEDIUM:
            return self.medium_action
        return self.low_action

    def route(self, candidate: Candidate, estimate: ConfidenceEstimate) -> RoutingResult:
        """Route a candidate according to its confidence estimate.

        Args:
            candidate: The candidate answer.
            estimate: Confidence estimate for that candidate.

        Returns:
            RoutingResult with the action and the candidate to return.
        """
        if not isinstance(candidate, Candidate):
            raise TypeError(f"candidate must be a Candidate, got {type(candidate).__name__}")
        if not isinstance(estimate, ConfidenceEstimate):
            raise TypeError(
                f"estimate must be a ConfidenceEstimate, got {type(estimate).__name__}"
            )

        start = time.perf_counter_ns() if self.emit_telemetry else 0
        result = self._do_route(candidate, estimate.score)

        if self.emit_telemetry:
            safe_emit(
                self.telemetry,
                CALIBRATION_ROUTE_EVENT,
                {"duration": time.perf_counter_ns() - start},
                {
                    "action": result.action.value,
                    "confidence_level": result.confidence_level.value,
                    "score": result.original_score,
                },
            )
        return result

    def _do_route(self, candidate: Candidate, score: float) -> RoutingResult:
        level = self.confidence_level(score)
        action = self._action_for(level)

        if action is RoutingAction.WITH_VERIFICATION:
            routed = _append_suffix(candidate, VERIFICATION_SUFFIX)
        elif action is RoutingAction.WITH_CITATIONS:
            routed = _append_suffix(candidate, CITATION_SUFFIX)
        elif action is RoutingAction.ABSTAIN:
            routed = build_abstention_candidate(score)
        elif action is RoutingAction.ESCALATE:
            routed = build_escalation_candidate(score)
        else:
            routed = candidate

        reasoning = f"{level.value.capitalize()} confidence ({score:.3f}), {_REASONING[action]}"
        logger.debug("Routed candidate: %s", reasoning)

        return RoutingResult(
            action=action,
            candidate=routed,
            original_score=score,
            confidence_level=level,
            reasoning=reasoning,
            metadata={
                "high_threshold": self.high_threshold,
                "low_threshold": self.low_threshold,
            },
        )
