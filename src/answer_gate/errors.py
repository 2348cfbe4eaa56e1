"""Error types raised by answer_gate validation.

Every failure carries a short machine-readable ``reason`` code so callers can
branch on the kind of failure without parsing messages.

Example:
    >>> try:
    ...     CalibrationGate.new(high_threshold=0.3, low_threshold=0.5)
    ... except AccuracyError as e:
    ...     e.reason
    'invalid_thresholds'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError


class AccuracyError(ValueError):
    """Base class for all validation failures.

    Attributes:
        reason: Failure code, e.g. ``"invalid_score"``.
    """

    reason = "invalid_attributes"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)

    def __str__(self) -> str:
        message = super().__str__()
        if message == self.reason:
            return message
        return f"{self.reason}: {message}"


class InvalidScore(AccuracyError):
    reason = "invalid_score"


class InvalidConfidence(AccuracyError):
    reason = "invalid_confidence"


class InvalidThresholds(AccuracyError):
    reason = "invalid_thresholds"


class InvalidAction(AccuracyError):
    reason = "invalid_action"


class InvalidLevel(AccuracyError):
    reason = "invalid_level"


class InvalidConfidenceLevel(AccuracyError):
    reason = "invalid_confidence_level"


class InvalidCandidates(AccuracyError):
    reason = "invalid_candidates"


class InvalidCandidate(AccuracyError):
    reason = "invalid_candidate"


class InvalidMap(AccuracyError):
    reason = "invalid_map"


class InvalidMethod(AccuracyError):
    reason = "invalid_method"


class InvalidSeverity(AccuracyError):
    reason = "invalid_severity"


class InvalidWeights(AccuracyError):
    reason = "invalid_weights"


class InvalidQuery(AccuracyError):
    reason = "invalid_query"


class QueryTooLong(InvalidQuery):
    reason = "query_too_long"


def translate_validation_error(
    error: ValidationError,
    field_errors: dict[str, type[AccuracyError]],
    default: type[AccuracyError] = AccuracyError,
) -> AccuracyError:
    """Map a pydantic ValidationError onto the matching AccuracyError.

    The first offending field that has an entry in ``field_errors`` decides
    the error type; anything else falls back to ``default``.

    Args:
        error: The pydantic error raised while building a model.
        field_errors: Field name to error type mapping.
        default: Error type used when no field matches.

    Returns:
        An AccuracyError instance (not raised).
    """
    for detail in error.errors():
        loc = detail.get("loc") or ()
        if loc and loc[0] in field_errors:
            return field_errors[loc[0]](f"{loc[0]}: {detail.get('msg', 'invalid value')}")
    return default(str(error))
