"""Fast rule-based difficulty estimation.

Scores a query from four cheap features without calling a model:

| Feature       | Weight | Signal                                    |
|---------------|--------|-------------------------------------------|
| length        | 0.25   | character count buckets                   |
| complexity    | 0.30   | average word length, special characters   |
| domain        | 0.25   | math / code / reasoning / creative terms  |
| question_type | 0.20   | why/how vs what/when                      |

The weighted sum is clamped to [0, 1] and mapped to a level with
``to_level``. Confidence reflects how much the four features agree.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from answer_gate.core.difficulty import DifficultyEstimate, DifficultyLevel, to_level
from answer_gate.errors import InvalidQuery, InvalidWeights, QueryTooLong
from answer_gate.estimators.base import DifficultyEstimator

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 50_000

MATH_INDICATORS = (
    "~", "sum", "integral", "derivative", "equation", "formula",
    "+", "-", "*", "/", "^", "=", "<", ">", "≤", "≥",
    "calculate", "compute", "solve", "probability", "statistic",
    "algebra", "geometry", "trigonometry", "calculus",
)

CODE_INDICATORS = (
    "function", "class", "def ", "import", "return", "if ", "else", "for ",
    "while", "const", "let", "var", "print", "array",
    "()", "{}", "[]", "=>", "==", "!=", "&&", "||",
    "algorithm", "data structure", "recursion", "iteration", "compile",
    "execute", "debug",
)

REASONING_INDICATORS = (
    "explain", "why", "how", "analyze", "compare", "contrast", "evaluate",
    "assess", "justify", "reasoning", "logic", "relationship", "difference",
    "similarity", "cause",
)

CREATIVE_INDICATORS = (
    "write", "create", "generate", "story", "poem", "creative", "imagine",
    "invent", "design", "compose", "narrative",
)

SIMPLE_QUESTION_WORDS = (
    "what", "when", "where", "who", "which", "is", "are", "do", "does",
    "list", "name", "identify", "define", "state",
)

_SPECIAL_CHAR = re.compile(r"[^\w\s]")
_NUMBER = re.compile(r"\b\d+\b")


def _count_indicators(text: str, indicators: Sequence[str]) -> int:
    """Number of indicators occurring as substrings of ``text``."""
    return sum(1 for indicator in indicators if indicator in text)


def _length_score(char_count: int) -> float:
    if char_count < 50:
        return 0.0
    if char_count < 100:
        return 0.2
    if char_count < 200:
        return 0.5
    if char_count < 300:
        return 0.7
    return 1.0


def _complexity_score(avg_word_len: float, special_count: int) -> float:
    if avg_word_len < 4 and special_count < 2:
        return 0.0
    if avg_word_len < 5 and special_count < 5:
        return 0.3
    if avg_word_len < 6 and special_count < 10:
        return 0.5
    if avg_word_len < 7 or special_count < 15:
        return 0.7
    return 1.0


def _domain_score(max_count: int) -> float:
    if max_count >= 3:
        return 1.0
    if max_count >= 2:
        return 0.7
    if max_count >= 1:
        return 0.4
    return 0.0


def _confidence_from_variance(variance: float) -> float:
    if variance < 0.05:
        return 0.95
    if variance < 0.1:
        return 0.85
    if variance < 0.2:
        return 0.7
    return 0.6


@dataclass(frozen=True)
class HeuristicDifficulty(DifficultyEstimator):
    """Rule-based difficulty estimator.

    Attributes:
        length_weight: Weight of the length feature.
        complexity_weight: Weight of the complexity feature.
        domain_weight: Weight of the domain feature.
        question_weight: Weight of the question type feature.
        custom_indicators: Extra domain name -> indicator terms. Matches are
            reported in the features but do not change the score.

    Example:
        >>> estimator = HeuristicDifficulty()
        >>> estimator.estimate("What is 2+2?").level
        <DifficultyLevel.EASY: 'easy'>
    """

    length_weight: float = 0.25
    complexity_weight: float = 0.30
    domain_weight: float = 0.25
    question_weight: float = 0.20
    custom_indicators: Mapping[str, Sequence[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        weights = (
            self.length_weight,
            self.complexity_weight,
            self.domain_weight,
            self.question_weight,
        )
        if not all(isinstance(w, (int, float)) and not isinstance(w, bool) for w in weights):
            raise InvalidWeights("weights must be numbers")
        if not all(0.0 <= w <= 1.0 for w in weights):
            raise InvalidWeights(f"weights must be in [0, 1], got {weights}")
        if abs(sum(weights) - 1.0) > 0.01:
            raise InvalidWeights(f"weights must sum to 1, got {sum(weights):.3f}")
        if not isinstance(self.custom_indicators, Mapping):
            raise InvalidWeights("custom_indicators must be a mapping")

    @classmethod
    def new(cls, **attrs: Any) -> HeuristicDifficulty:
        """Build an estimator, ignoring unknown keyword attributes.

        Raises:
            InvalidWeights: A weight is out of range or they do not sum to 1.
        """
        return cls(**{k: v for k, v in attrs.items() if k in cls.__dataclass_fields__})

    def estimate(
        self, query: str, context: Mapping[str, Any] | None = None
    ) -> DifficultyEstimate:
        """Estimate the difficulty of ``query``.

        Args:
            query: The query text. Surrounding whitespace is ignored.
            context: Unused; accepted for interface compatibility.

        Returns:
            DifficultyEstimate with per-feature details under ``features``.

        Raises:
            InvalidQuery: Query is not a string or is blank.
            QueryTooLong: Query exceeds 50,000 characters.
        """
        if not isinstance(query, str):
            raise InvalidQuery(f"query must be a string, got {type(query).__name__}")
        query = query.strip()
        if not query:
            raise InvalidQuery("query is empty")
        if len(query) > MAX_QUERY_LENGTH:
            raise QueryTooLong(f"query has {len(query)} characters, limit is {MAX_QUERY_LENGTH}")

        features = self._extract_features(query)
        feature_scores = np.array(
            [features[name]["score"] for name in ("length", "complexity", "domain", "question_type")]
        )
        weights = np.array(
            [self.length_weight, self.complexity_weight, self.domain_weight, self.question_weight]
        )

        score = float(np.clip(feature_scores @ weights, 0.0, 1.0))
        level = to_level(score)
        confidence = _confidence_from_variance(float(np.var(feature_scores)))
        logger.debug("Heuristic difficulty %.3f (%s) for %d-char query", score, level.value, len(query))

        return DifficultyEstimate.new(
            level=level,
            score=score,
            confidence=confidence,
            reasoning=self._reasoning(features, level),
            features=features,
            metadata={"method": "heuristic", "estimator": type(self).__name__},
        )

    def _extract_features(self, query: str) -> dict[str, dict[str, Any]]:
        lowered = query.lower()
        words = query.split()
        avg_word_len = sum(len(w) for w in words) / len(words) if words else 0.0
        special_count = len(_SPECIAL_CHAR.findall(query))

        counts = {
            "math": _count_indicators(lowered, MATH_INDICATORS),
            "code": _count_indicators(lowered, CODE_INDICATORS),
            "reasoning": _count_indicators(lowered, REASONING_INDICATORS),
            "creative": _count_indicators(lowered, CREATIVE_INDICATORS),
        }
        custom = {
            name: _count_indicators(lowered, [term.lower() for term in terms])
            for name, terms in self.custom_indicators.items()
        }

        simple_count = _count_indicators(lowered, SIMPLE_QUESTION_WORDS)
        reasoning_count = counts["reasoning"]
        has_question_mark = query.endswith("?")
        if reasoning_count >= 2:
            question_score = 1.0
        elif reasoning_count >= 1:
            question_score = 0.6
        elif simple_count >= 2:
            question_score = 0.2
        elif has_question_mark:
            question_score = 0.3
        else:
            question_score = 0.5

        return {
            "length": {
                "score": _length_score(len(query)),
                "char_count": len(query),
                "word_count": len(words),
            },
            "complexity": {
                "score": _complexity_score(avg_word_len, special_count),
                "avg_word_length": round(avg_word_len, 2),
                "special_char_count": special_count,
                "number_count": len(_NUMBER.findall(query)),
            },
            "domain": {
                "score": _domain_score(max(counts.values())),
                "domains": [name for name, count in counts.items() if count > 0],
                "custom": custom,
            },
            "question_type": {
                "score": question_score,
                "has_question_mark": has_question_mark,
                "simple_indicator_count": simple_count,
                "reasoning_indicator_count": reasoning_count,
            },
        }

    @staticmethod
    def _reasoning(features: dict[str, dict[str, Any]], level: DifficultyLevel) -> str:
        domains = features["domain"]["domains"]
        domain_part = f"{'/'.join(domains)} domain" if domains else "general domain"

        length = features["length"]["score"]
        if length < 0.3:
            length_part = "short query"
        elif length < 0.7:
            length_part = "medium-length query"
        else:
            length_part = "long query"

        question = features["question_type"]["score"]
        if question < 0.3:
            question_part = "simple question"
        elif question < 0.7:
            question_part = "moderate question"
        else:
            question_part = "complex question"

        base = f"{domain_part}, {length_part}, {question_part}"
        if level is DifficultyLevel.EASY:
            return f"Simple: {base}"
        if level is DifficultyLevel.MEDIUM:
            return f"Moderate difficulty: {base}"
        return f"Complex: {base} with multiple factors"
