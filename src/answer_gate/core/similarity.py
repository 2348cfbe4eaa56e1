"""Text similarity metrics.

Pure functions used to group near-duplicate answers and to keep selected
candidates diverse. All metrics return a value in [0, 1] where 1 means
identical, and are defined for every pair of strings, including empty ones.

Metrics:
    - Jaccard similarity over lower-cased token sets: |A & B| / |A | B|
    - Edit distance similarity: 1 - levenshtein(a, b) / max(len(a), len(b))
    - Combined similarity: weighted average of the two

Cost is O(n) per text for Jaccard and O(n * m) per pair for edit distance.
Computing all pairs among N candidates multiplies that by N^2.
"""

from __future__ import annotations

import unicodedata

import numpy as np
import regex


def _tokenize(text: str) -> set[str]:
    """Lower-case and split on runs of whitespace and punctuation."""
    lowered = text.lower()
    spaced = "".join(" " if unicodedata.category(ch).startswith("P") else ch for ch in lowered)
    return set(spaced.split())


def _graphemes(text: str) -> list[str]:
    """Split text into extended grapheme clusters after NFC normalization.

    "e\\u0301" and "\\u00e9" count as one character each, as do emoji ZWJ
    sequences and emoji with skin-tone modifiers.
    """
    return regex.findall(r"\X", unicodedata.normalize("NFC", text))


def jaccard_similarity(text1: str, text2: str) -> float:
    """Compute Jaccard similarity between the token sets of two texts.

    Args:
        text1: First text.
        text2: Second text.

    Returns:
        Similarity in [0, 1]. Two texts without tokens are identical (1.0);
        exactly one text without tokens gives 0.0.

    Example:
        >>> jaccard_similarity("hello world", "hello there")
        0.3333333333333333
    """
    tokens1 = _tokenize(text1)
    tokens2 = _tokenize(text2)

    if not tokens1 and not tokens2:
        return 1.0
    if not tokens1 or not tokens2:
        return 0.0

    return len(tokens1 & tokens2) / len(tokens1 | tokens2)


def levenshtein_distance(text1: str, text2: str) -> int:
    """Compute the Levenshtein edit distance between two texts.

    Insertions, deletions and substitutions each cost 1. The full
    (len1 + 1) x (len2 + 1) table is filled row by row; within a row the
    insertion chain is resolved with a running minimum.

    Args:
        text1: First text.
        text2: Second text.

    Returns:
        Minimum number of single-character edits turning text1 into text2.

    Example:
        >>> levenshtein_distance("kitten", "sitting")
        3
    """
    chars1 = _graphemes(text1)
    chars2 = _graphemes(text2)
    n, m = len(chars1), len(chars2)

    if n == 0:
        return m
    if m == 0:
        return n

    ids: dict[str, int] = {}
    codes1 = np.array([ids.setdefault(c, len(ids)) for c in chars1], dtype=np.int64)
    codes2 = np.array([ids.setdefault(c, len(ids)) for c in chars2], dtype=np.int64)

    table = np.zeros((n + 1, m + 1), dtype=np.int64)
    table[0, :] = np.arange(m + 1)
    table[:, 0] = np.arange(n + 1)
    cols = np.arange(m + 1, dtype=np.int64)

    for i in range(1, n + 1):
        prev = table[i - 1]
        cost = (codes2 != codes1[i - 1]).astype(np.int64)
        row = np.empty(m + 1, dtype=np.int64)
        row[0] = i
        row[1:] = np.minimum(prev[1:] + 1, prev[:-1] + cost)
        # row[j] = min over k <= j of row[k] + (j - k)
        table[i] = np.minimum.accumulate(row - cols) + cols

    return int(table[n, m])


def edit_distance_similarity(text1: str, text2: str) -> float:
    """Compute similarity derived from Levenshtein distance.

    Args:
        text1: First text.
        text2: Second text.

    Returns:
        1 - distance / max_length, in [0, 1]. Two empty texts give 1.0;
        exactly one empty text gives 0.0.

    Example:
        >>> round(edit_distance_similarity("kitten", "sitting"), 4)
        0.5714
    """
    len1 = len(_graphemes(text1))
    len2 = len(_graphemes(text2))

    if len1 == 0 and len2 == 0:
        return 1.0
    if len1 == 0 or len2 == 0:
        return 0.0

    return 1.0 - levenshtein_distance(text1, text2) / max(len1, len2)


def combined_similarity(
    text1: str,
    text2: str,
    jaccard_weight: float = 0.5,
    edit_weight: float = 0.5,
) -> float:
    """Weighted average of Jaccard and edit distance similarity.

    Args:
        text1: First text.
        text2: Second text.
        jaccard_weight: Weight for Jaccard similarity.
        edit_weight: Weight for edit distance similarity.

    Returns:
        Weighted similarity in [0, 1], or 0.0 when the weights sum to <= 0.
    """
    total_weight = jaccard_weight + edit_weight
    if total_weight <= 0:
        return 0.0

    jaccard = jaccard_similarity(text1, text2)
    edit = edit_distance_similarity(text1, text2)
    return (jaccard * jaccard_weight + edit * edit_weight) / total_weight
