"""Formatters for human-readable routing and generation reports.

Plain-string renderings of routing decisions, generation results and
difficulty estimates, for logs and the command line.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from answer_gate.core.difficulty import DifficultyEstimate
    from answer_gate.core.generation import GenerationResult
    from answer_gate.core.routing import RoutingResult


def _label(value: Any) -> str:
    """Wire string of an enum member, or the raw value."""
    if isinstance(value, Enum):
        return str(value.value)
    return "-" if value is None else str(value)


def _make_score_bar(score: float, width: int = 20) -> str:
    """Create an ASCII bar for a value in [0, 1]."""
    filled = int(max(0.0, min(score, 1.0)) * width)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def _truncate(text: str | None, limit: int = 60) -> str:
    if text is None:
        return "-"
    flat = text.replace("\n", "\\n")
    return flat if len(flat) <= limit else flat[: limit - 1] + "…"


def format_routing_result(result: RoutingResult) -> str:
    """Format a routing decision.

    Args:
        result: The routing result to format.

    Returns:
        Multi-line summary with action, confidence band and the returned text.
    """
    lines = [
        f"Action: {_label(result.action)}",
        f"Confidence level: {_label(result.confidence_level)}",
    ]
    if result.original_score is not None:
        lines.append(
            f"Score: {result.original_score:.3f} {_make_score_bar(result.original_score)}"
        )
    if "high_threshold" in result.metadata and "low_threshold" in result.metadata:
        lines.append(
            f"Thresholds: high={result.metadata['high_threshold']}, "
            f"low={result.metadata['low_threshold']}"
        )
    if result.reasoning:
        lines.append(f"Reasoning: {result.reasoning}")

    lines.append("-" * 40)
    content = result.candidate.content if result.candidate is not None else None
    lines.append(content if content is not None else "(no content)")
    return "\n".join(lines)


def format_generation_summary(result: GenerationResult, top_n: int = 5) -> str:
    """Format a generation result.

    Args:
        result: The generation result to format.
        top_n: Maximum number of vote groups to list.

    Returns:
        Summary with candidate count, tokens, best candidate and vote groups.
    """
    lines = [
        f"Candidates: {len(result)}",
        f"Total tokens: {result.total_tokens}",
        f"Aggregation: {result.aggregation_method.value}",
    ]

    best = result.best_candidate
    if best is not None:
        lines.append(f"Best: {_truncate(best.content)!s} (score: {best.score:.3f})")
    else:
        lines.append("Best: none scored")

    distribution = result.vote_distribution()
    if distribution:
        lines.append("")
        lines.append("Votes:")
        ranked = sorted(distribution.items(), key=lambda item: -item[1])
        for content, count in ranked[:top_n]:
            lines.append(f"  {count:3d} x {_truncate(content)}")

    return "\n".join(lines)


def format_difficulty(estimate: DifficultyEstimate) -> str:
    """Format a difficulty estimate on one line, with reasoning if present."""
    parts = [f"Difficulty: {estimate.level.value}"]
    if estimate.score is not None:
        parts.append(f"score={estimate.score:.3f}")
    if estimate.confidence is not None:
        parts.append(f"confidence={estimate.confidence:.2f}")
    line = " ".join(parts)
    return f"{line}\n{estimate.reasoning}" if estimate.reasoning else line


def log_routing_result(result: RoutingResult, level: int = logging.INFO) -> None:
    """Log a routing decision line by line."""
    for line in format_routing_result(result).splitlines():
        logger.log(level, "%s", line)
