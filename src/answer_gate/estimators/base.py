"""Base class for difficulty estimators.

All estimators inherit from DifficultyEstimator and implement ``estimate``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from answer_gate.core.difficulty import DifficultyEstimate


class DifficultyEstimator(ABC):
    """Abstract base class for query difficulty estimators.

    To create a custom estimator:
        1. Inherit from DifficultyEstimator
        2. Implement estimate()
        3. Optionally override estimate_batch() for a faster bulk path

    Example:
        >>> class LengthOnly(DifficultyEstimator):
        ...     def estimate(self, query, context=None):
        ...         return DifficultyEstimate.new(score=min(len(query) / 500, 1.0))
    """

    @abstractmethod
    def estimate(
        self, query: str, context: Mapping[str, Any] | None = None
    ) -> DifficultyEstimate:
        """Estimate the difficulty of a single query.

        Args:
            query: The query text.
            context: Optional extra information about the query.

        Returns:
            DifficultyEstimate for the query.
        """
        ...

    def estimate_batch(
        self, queries: Iterable[str], context: Mapping[str, Any] | None = None
    ) -> list[DifficultyEstimate]:
        """Estimate several queries in order.

        The first failure propagates; no partial list is returned.
        """
        return [self.estimate(query, context) for query in queries]
