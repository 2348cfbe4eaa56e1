"""Diversity-aware ordering of candidates (maximal marginal relevance).

Candidates are picked greedily: first the most relevant one, then whichever
remaining candidate best trades relevance against similarity to what has
already been picked:

    mmr = lambda * relevance - (1 - lambda) * penalty

where ``penalty`` is the maximum similarity to any selected candidate, halved
when it does not exceed ``threshold``.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from answer_gate.core.candidate import Candidate
from answer_gate.core.similarity import combined_similarity

DEFAULT_RELEVANCE = 0.5


def candidate_similarity(a: Candidate, b: Candidate) -> float:
    """Combined similarity (equal weights) between two candidates' contents."""
    return combined_similarity(a.content or "", b.content or "", 0.5, 0.5)


def _relevance(candidate: Candidate) -> float:
    return DEFAULT_RELEVANCE if candidate.score is None else float(candidate.score)


def mmr_select(
    candidates: Sequence[Candidate],
    lambda_: float = 0.5,
    threshold: float = 0.7,
) -> list[Candidate]:
    """Order candidates by maximal marginal relevance.

    Args:
        candidates: Candidates to order. Missing scores count as 0.5.
        lambda_: Relevance/diversity trade-off in [0, 1]. Higher values
            favour relevance, lower values favour diversity.
        threshold: Similarity above which the full penalty applies.

    Returns:
        All candidates, in selection order. Ties go to the earlier candidate.

    Raises:
        ValueError: If ``lambda_`` or ``threshold`` is outside [0, 1].

    Example:
        >>> ordered = mmr_select([a, a_paraphrase, b], lambda_=0.3)
        >>> ordered[1] is b
        True
    """
    if not 0.0 <= lambda_ <= 1.0:
        raise ValueError(f"lambda_ must be in [0, 1], got {lambda_}")
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be in [0, 1], got {threshold}")

    remaining = list(candidates)
    if not remaining:
        return []

    relevance = np.array([_relevance(c) for c in remaining], dtype=np.float64)
    first = int(np.argmax(relevance))
    selected = [remaining.pop(first)]
    relevance = np.delete(relevance, first)

    # Highest similarity of each remaining candidate to anything selected so far
    max_sim = np.array([candidate_similarity(c, selected[0]) for c in remaining], dtype=np.float64)

    while remaining:
        penalty = np.where(max_sim > threshold, max_sim, max_sim * 0.5)
        scores = lambda_ * relevance - (1.0 - lambda_) * penalty
        pick = int(np.argmax(scores))

        chosen = remaining.pop(pick)
        selected.append(chosen)
        relevance = np.delete(relevance, pick)
        max_sim = np.delete(max_sim, pick)

        if remaining:
            sims = np.array([candidate_similarity(c, chosen) for c in remaining], dtype=np.float64)
            max_sim = np.maximum(max_sim, sims)

    return selected
