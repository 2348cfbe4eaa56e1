"""Candidate answer value object.

A Candidate is one generated answer: text plus optional score, token usage
and free-form metadata. Candidates are immutable; transformations produce
copies via ``model_copy``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from answer_gate.errors import InvalidCandidate


class Candidate(BaseModel):
    """A single generated answer.

    Attributes:
        content: The answer text.
        score: Optional quality score assigned by a verifier or aggregator.
        tokens_used: Tokens spent producing this candidate.
        reasoning: Optional reasoning trace that led to the answer.
        model: Identifier of the model that produced the answer.
        metadata: Free-form extra information.

    Example:
        >>> c = Candidate(content="The answer is 42", score=0.9, tokens_used=12)
        >>> print(c)
        'The answer is 42' (score: 0.900, tokens: 12)
    """

    model_config = ConfigDict(frozen=True)

    content: str | None = Field(default=None, description="Answer text")
    score: float | None = Field(default=None, description="Quality score")
    tokens_used: int | None = Field(default=None, ge=0, description="Tokens consumed")
    reasoning: str | None = Field(default=None, description="Reasoning trace")
    model: str | None = Field(default=None, description="Producing model")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra information")

    def __str__(self) -> str:
        score = "n/a" if self.score is None else f"{self.score:.3f}"
        tokens = "n/a" if self.tokens_used is None else str(self.tokens_used)
        return f"{self.content!r} (score: {score}, tokens: {tokens})"

    def to_dict(self) -> dict[str, Any]:
        """Export to a string-keyed dictionary, omitting unset fields."""
        data = self.model_dump(exclude_none=True)
        if not data.get("metadata"):
            data.pop("metadata", None)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Candidate:
        """Build a candidate from ``to_dict`` output.

        Raises:
            InvalidCandidate: If ``data`` is not a mapping or holds invalid fields.
        """
        if not isinstance(data, Mapping):
            raise InvalidCandidate(f"expected a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise InvalidCandidate(str(e)) from e
