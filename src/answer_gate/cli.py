"""Command-line interface for answer gating.

Usage:
    # Route an answer given its confidence score
    answer-gate route 0.55 "Paris is the capital of France"

    # Escalate instead of abstaining at low confidence
    answer-gate route 0.2 "Maybe 42" --low-action escalate --json

    # Compare two texts
    answer-gate similarity "the quick brown fox" "the quick brown dog"

    # Estimate query difficulty
    answer-gate difficulty "Explain why the sky is blue"
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceEstimate
from answer_gate.core.routing import CalibrationGate, RoutingAction
from answer_gate.core.similarity import (
    combined_similarity,
    edit_distance_similarity,
    jaccard_similarity,
)
from answer_gate.errors import AccuracyError
from answer_gate.estimators.heuristic import HeuristicDifficulty
from answer_gate.formatters import format_difficulty, format_routing_result
from answer_gate.telemetry import NullTelemetry
from answer_gate.thresholds import CALIBRATION_HIGH_CONFIDENCE, CALIBRATION_MEDIUM_CONFIDENCE

logger = logging.getLogger(__name__)

ACTION_CHOICES = [action.value for action in RoutingAction]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="answer-gate",
        description="Route answers by confidence, compare texts, estimate query difficulty",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s route 0.85 "The answer is 42"
  %(prog)s route 0.35 "The answer is 42" --low-action escalate
  %(prog)s similarity "kitten" "sitting"
  %(prog)s difficulty "What is 2+2?"
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    route = subparsers.add_parser("route", help="Route an answer through the calibration gate")
    route.add_argument("score", type=float, help="Confidence score in [0, 1]")
    route.add_argument("content", help="The answer text")
    route.add_argument(
        "--method",
        default="cli",
        help="Name of the confidence method (default: cli)",
    )
    route.add_argument(
        "--high-threshold",
        type=float,
        default=CALIBRATION_HIGH_CONFIDENCE,
        help=f"Minimum score for direct answers (default: {CALIBRATION_HIGH_CONFIDENCE})",
    )
    route.add_argument(
        "--low-threshold",
        type=float,
        default=CALIBRATION_MEDIUM_CONFIDENCE,
        help=f"Minimum score for medium confidence (default: {CALIBRATION_MEDIUM_CONFIDENCE})",
    )
    route.add_argument(
        "--medium-action",
        choices=ACTION_CHOICES,
        default=RoutingAction.WITH_VERIFICATION.value,
        help="Action at medium confidence (default: with_verification)",
    )
    route.add_argument(
        "--low-action",
        choices=ACTION_CHOICES,
        default=RoutingAction.ABSTAIN.value,
        help="Action at low confidence (default: abstain)",
    )
    route.add_argument("--json", action="store_true", help="Output the result as JSON")

    similarity = subparsers.add_parser("similarity", help="Compare two texts")
    similarity.add_argument("text1")
    similarity.add_argument("text2")
    similarity.add_argument(
        "--jaccard-weight",
        type=float,
        default=0.5,
        help="Weight of Jaccard similarity in the combined score (default: 0.5)",
    )
    similarity.add_argument(
        "--edit-weight",
        type=float,
        default=0.5,
        help="Weight of edit distance similarity in the combined score (default: 0.5)",
    )
    similarity.add_argument("--json", action="store_true", help="Output results as JSON")

    difficulty = subparsers.add_parser("difficulty", help="Estimate query difficulty")
    difficulty.add_argument("query", help="The query to analyze")
    difficulty.add_argument("--json", action="store_true", help="Output the estimate as JSON")

    return parser


def _run_route(args: argparse.Namespace, console: Console) -> int:
    gate = CalibrationGate.new(
        high_threshold=args.high_threshold,
        low_threshold=args.low_threshold,
        medium_action=args.medium_action,
        low_action=args.low_action,
        telemetry=NullTelemetry(),
    )
    estimate = ConfidenceEstimate.new(score=args.score, method=args.method)
    result = gate.route(Candidate(content=args.content), estimate)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        console.print(format_routing_result(result), markup=False, highlight=False)
    return 0


def _run_similarity(args: argparse.Namespace, console: Console) -> int:
    scores = {
        "jaccard": jaccard_similarity(args.text1, args.text2),
        "edit_distance": edit_distance_similarity(args.text1, args.text2),
        "combined": combined_similarity(
            args.text1, args.text2, args.jaccard_weight, args.edit_weight
        ),
    }

    if args.json:
        print(json.dumps(scores, indent=2))
        return 0

    table = Table(title="Similarity")
    table.add_column("Metric", style="cyan")
    table.add_column("Score", justify="right", style="green")
    for name, value in scores.items():
        table.add_row(name, f"{value:.4f}")
    console.print(table)
    return 0


def _run_difficulty(args: argparse.Namespace, console: Console) -> int:
    estimate = HeuristicDifficulty().estimate(args.query)

    if args.json:
        print(json.dumps(estimate.to_dict(), indent=2))
        return 0

    console.print(format_difficulty(estimate), markup=False, highlight=False)
    table = Table(title="Features")
    table.add_column("Feature", style="cyan")
    table.add_column("Score", justify="right", style="green")
    for name, feature in estimate.features.items():
        table.add_row(name, f"{feature['score']:.2f}")
    console.print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )
    console = Console()

    handlers = {
        "route": _run_route,
        "similarity": _run_similarity,
        "difficulty": _run_difficulty,
    }
    try:
        return handlers[args.command](args, console)
    except AccuracyError as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
