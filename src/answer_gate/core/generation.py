"""Aggregation of multiple generated candidates.

A GenerationResult holds the candidates produced for one query, keeps the
total token usage and the best-scoring candidate up to date, and offers
simple selection strategies (best, first, last, majority vote).

Results are immutable: ``add_candidate`` returns a new result, so several
holders of the same result never see each other's changes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from answer_gate.core.candidate import Candidate
from answer_gate.errors import InvalidCandidate, InvalidCandidates, InvalidMap

logger = logging.getLogger(__name__)


class AggregationMethod(Enum):
    """How the candidates of a result were combined."""

    NONE = "none"
    BEST_OF_N = "best_of_n"
    MAJORITY_VOTE = "majority_vote"
    WEIGHTED = "weighted"

    @classmethod
    def parse(cls, value: Any) -> AggregationMethod:
        """Convert from the wire form; unknown or missing values become NONE."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        return cls.NONE


class SelectionStrategy(Enum):
    """Ways to pick a single candidate out of a result."""

    BEST = "best"
    FIRST = "first"
    LAST = "last"
    VOTE = "vote"


def _find_best(candidates: Iterable[Candidate]) -> Candidate | None:
    """Highest-scoring candidate; the earliest one wins ties."""
    best: Candidate | None = None
    for candidate in candidates:
        if candidate.score is None:
            continue
        if best is None or candidate.score > best.score:  # type: ignore[operator]
            best = candidate
    return best


@dataclass(frozen=True)
class GenerationResult:
    """Candidates from one generation run, with derived aggregates.

    Attributes:
        candidates: Candidates in insertion order.
        aggregation_method: How the candidates were aggregated.
        metadata: Additional generation metadata.
        total_tokens: Sum of ``tokens_used`` over candidates (missing counts as 0).
        best_candidate: Highest-scoring candidate, or None if none has a score.

    Example:
        >>> result = GenerationResult.new([
        ...     Candidate(content="A", score=0.7),
        ...     Candidate(content="B", score=0.9),
        ... ])
        >>> result.best_candidate.content
        'B'
        >>> result.select_by_strategy("first").content
        'A'
    """

    candidates: tuple[Candidate, ...] = ()
    aggregation_method: AggregationMethod = AggregationMethod.NONE
    metadata: dict[str, Any] = field(default_factory=dict)
    total_tokens: int = field(init=False, default=0)
    best_candidate: Candidate | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        if isinstance(self.candidates, (str, bytes, Mapping)) or not isinstance(
            self.candidates, Iterable
        ):
            raise InvalidCandidates("candidates must be a sequence of Candidate")
        candidates = tuple(self.candidates)
        for i, candidate in enumerate(candidates):
            if not isinstance(candidate, Candidate):
                raise InvalidCandidates(
                    f"element {i} is {type(candidate).__name__}, expected Candidate"
                )

        object.__setattr__(self, "candidates", candidates)
        object.__setattr__(self, "aggregation_method", AggregationMethod.parse(self.aggregation_method))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))
        object.__setattr__(self, "total_tokens", sum(c.tokens_used or 0 for c in candidates))
        object.__setattr__(self, "best_candidate", _find_best(candidates))

    @classmethod
    def new(
        cls,
        candidates: Iterable[Candidate] = (),
        aggregation_method: AggregationMethod | str = AggregationMethod.NONE,
        metadata: Mapping[str, Any] | None = None,
    ) -> GenerationResult:
        """Build a result and compute its aggregates.

        Raises:
            InvalidCandidates: If any element is not a Candidate.
        """
        return cls(
            candidates=candidates,  # type: ignore[arg-type]
            aggregation_method=aggregation_method,  # type: ignore[arg-type]
            metadata=dict(metadata or {}),
        )

    def __len__(self) -> int:
        return len(self.candidates)

    def add_candidate(self, candidate: Candidate) -> GenerationResult:
        """Return a new result with ``candidate`` appended.

        Raises:
            InvalidCandidate: If ``candidate`` is not a Candidate.
        """
        if not isinstance(candidate, Candidate):
            raise InvalidCandidate(f"expected Candidate, got {type(candidate).__name__}")
        return GenerationResult(
            candidates=(*self.candidates, candidate),
            aggregation_method=self.aggregation_method,
            metadata=self.metadata,
        )

    def select_by_strategy(self, strategy: SelectionStrategy | str) -> Candidate | None:
        """Pick one candidate.

        Args:
            strategy: "best", "first", "last" or "vote". Anything else
                falls back to "best".

        Returns:
            The selected candidate, or None when there are no candidates.
        """
        if not self.candidates:
            return None

        try:
            strategy = SelectionStrategy(strategy)
        except ValueError:
            logger.debug("Unknown selection strategy %r, falling back to best", strategy)
            strategy = SelectionStrategy.BEST

        if strategy is SelectionStrategy.FIRST:
            return self.candidates[0]
        if strategy is SelectionStrategy.LAST:
            return self.candidates[-1]
        if strategy is SelectionStrategy.VOTE:
            return self._select_by_majority_content()
        return self.best_candidate

    def _select_by_majority_content(self) -> Candidate | None:
        # Exact content equality only; near-duplicates form separate groups.
        groups: dict[str | None, list[Candidate]] = {}
        for candidate in self.candidates:
            groups.setdefault(candidate.content, []).append(candidate)

        winner: list[Candidate] | None = None
        for group in groups.values():
            if winner is None or len(group) > len(winner):
                winner = group
        return winner[0] if winner else None

    def vote_distribution(self) -> dict[str | None, int]:
        """Count candidates per exact content, in first-seen order."""
        counts: dict[str | None, int] = {}
        for candidate in self.candidates:
            counts[candidate.content] = counts.get(candidate.content, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Export to a string-keyed dictionary."""
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "total_tokens": self.total_tokens,
            "best_candidate": self.best_candidate.to_dict() if self.best_candidate else None,
            "aggregation_method": self.aggregation_method.value,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Any) -> GenerationResult:
        """Rebuild a result from ``to_dict`` output.

        Cached aggregates in ``data`` (total_tokens, best_candidate) are
        ignored and recomputed from the candidates.

        Raises:
            InvalidMap: Malformed top-level structure.
            InvalidCandidate: A candidate entry cannot be deserialized.
        """
        if not isinstance(data, Mapping):
            raise InvalidMap(f"expected a mapping, got {type(data).__name__}")

        raw_candidates = data.get("candidates")
        if raw_candidates is None:
            raw_candidates = []
        if not isinstance(raw_candidates, (list, tuple)):
            raise InvalidMap("candidates must be a list")

        metadata = data.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, Mapping):
            raise InvalidMap("metadata must be a mapping")

        return cls.new(
            [Candidate.from_dict(c) for c in raw_candidates],
            aggregation_method=AggregationMethod.parse(data.get("aggregation_method")),
            metadata=metadata,
        )
