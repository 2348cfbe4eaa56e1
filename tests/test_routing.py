"""Tests for the calibration gate and routing results."""

import logging
import math

import pytest

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceLevel
from answer_gate.core.routing import (
    CITATION_SUFFIX,
    VERIFICATION_SUFFIX,
    CalibrationGate,
    RoutingAction,
    RoutingResult,
)
from answer_gate.errors import (
    InvalidAction,
    InvalidConfidenceLevel,
    InvalidMap,
    InvalidScore,
    InvalidThresholds,
)
from answer_gate.telemetry import CALIBRATION_ROUTE_EVENT, RecordingTelemetry


class TestGateConstruction:
    """Tests for CalibrationGate.new validation."""

    def test_defaults(self):
        """Default gate uses 0.7/0.4 with verification and abstention."""
        gate = CalibrationGate.new()
        assert gate.high_threshold == 0.7
        assert gate.low_threshold == 0.4
        assert gate.medium_action is RoutingAction.WITH_VERIFICATION
        assert gate.low_action is RoutingAction.ABSTAIN
        assert gate.emit_telemetry is True

    def test_action_strings_accepted(self):
        """Known action strings are converted to RoutingAction."""
        gate = CalibrationGate.new(medium_action="with_citations", low_action="escalate")
        assert gate.medium_action is RoutingAction.WITH_CITATIONS
        assert gate.low_action is RoutingAction.ESCALATE

    @pytest.mark.parametrize(
        "high, low",
        [
            (0.5, 0.5),
            (0.4, 0.5),
            (0.50005, 0.5),
            ("0.7", 0.4),
            (math.nan, 0.4),
            (0.7, math.nan),
            (math.inf, 0.4),
        ],
    )
    def test_invalid_thresholds(self, high, low):
        """High must exceed low by more than the float epsilon."""
        with pytest.raises(InvalidThresholds) as exc_info:
            CalibrationGate.new(high_threshold=high, low_threshold=low)
        assert exc_info.value.reason == "invalid_thresholds"

    def test_thresholds_just_over_epsilon(self):
        """A gap comfortably above epsilon is accepted."""
        gate = CalibrationGate.new(high_threshold=0.501, low_threshold=0.5)
        assert gate.high_threshold == 0.501

    @pytest.mark.parametrize("field", ["medium_action", "low_action"])
    def test_invalid_action(self, field):
        """Actions outside the five-member set are rejected."""
        with pytest.raises(InvalidAction):
            CalibrationGate.new(**{field: "explode"})

    def test_unknown_attributes_ignored(self):
        """Unknown keyword attributes do not break construction."""
        gate = CalibrationGate.new(colour="blue")
        assert gate == CalibrationGate()

    def test_gate_is_immutable(self):
        """Configuration cannot be changed after construction."""
        gate = CalibrationGate.new()
        with pytest.raises(AttributeError):
            gate.high_threshold = 0.9  # type: ignore[misc]


class TestRouteHighConfidence:
    """Tests for scores at or above the high threshold."""

    @pytest.mark.parametrize("score", [0.7, 0.85, 1.0])
    def test_direct_and_unchanged(self, gate, candidate, make_estimate, score):
        """High scores return the candidate as-is."""
        result = gate.route(candidate, make_estimate(score))
        assert result.action is RoutingAction.DIRECT
        assert result.confidence_level is ConfidenceLevel.HIGH
        assert result.candidate == candidate
        assert result.candidate.content == "The answer is 42"

    def test_reasoning_has_three_decimals(self, gate, candidate, make_estimate):
        """Direct reasoning states the score with three decimals."""
        result = gate.route(candidate, make_estimate(0.85))
        assert result.reasoning == "High confidence (0.850), returning answer directly"

    def test_metadata_carries_thresholds(self, gate, candidate, make_estimate):
        """Result metadata records the thresholds in effect."""
        result = gate.route(candidate, make_estimate(0.9))
        assert result.metadata == {"high_threshold": 0.7, "low_threshold": 0.4}
        assert result.original_score == 0.9


class TestRouteMediumConfidence:
    """Tests for scores in [low, high)."""

    @pytest.mark.parametrize("score", [0.4, 0.55, 0.6999])
    def test_with_verification_appends_disclaimer(self, gate, candidate, make_estimate, score):
        """Verification suffix is appended to the original content."""
        result = gate.route(candidate, make_estimate(score))
        assert result.action is RoutingAction.WITH_VERIFICATION
        assert result.confidence_level is ConfidenceLevel.MEDIUM
        assert result.candidate.content == "The answer is 42" + VERIFICATION_SUFFIX
        assert len(result.candidate.content) > len(candidate.content)

    def test_with_citations_appends_disclaimer(self, candidate, make_estimate):
        """Citation suffix is appended when configured."""
        gate = CalibrationGate.new(medium_action="with_citations", emit_telemetry=False)
        result = gate.route(candidate, make_estimate(0.5))
        assert result.action is RoutingAction.WITH_CITATIONS
        assert result.candidate.content.endswith(CITATION_SUFFIX)
        assert "Consider verifying this with additional sources." in result.candidate.content

    def test_other_fields_preserved(self, gate, candidate, make_estimate):
        """Only the content changes when a disclaimer is added."""
        result = gate.route(candidate, make_estimate(0.5))
        assert result.candidate.score == candidate.score
        assert result.candidate.tokens_used == candidate.tokens_used
        assert result.candidate.model == candidate.model

    def test_non_text_content_passes_through(self, gate, make_estimate):
        """A candidate without content is returned unchanged."""
        empty = Candidate(content=None, score=0.5)
        result = gate.route(empty, make_estimate(0.5))
        assert result.action is RoutingAction.WITH_VERIFICATION
        assert result.candidate == empty

    def test_reasoning(self, gate, candidate, make_estimate):
        """Medium reasoning names the action taken."""
        result = gate.route(candidate, make_estimate(0.55))
        assert result.reasoning == "Medium confidence (0.550), adding verification suggestion"


class TestRouteLowConfidence:
    """Tests for scores below the low threshold."""

    @pytest.mark.parametrize("score", [0.0, 0.2, 0.3999])
    def test_abstain_synthesizes_candidate(self, gate, candidate, make_estimate, score):
        """Abstention replaces the candidate and nulls its score."""
        result = gate.route(candidate, make_estimate(score))
        assert result.action is RoutingAction.ABSTAIN
        assert result.confidence_level is ConfidenceLevel.LOW
        assert result.candidate.score is None
        assert result.candidate.metadata == {"abstained": True, "original_confidence": score}
        assert "The answer is 42" not in result.candidate.content

    def test_abstention_text(self, gate, candidate, make_estimate):
        """Abstention explains possible causes and suggests rephrasing."""
        content = gate.route(candidate, make_estimate(0.2)).candidate.content
        assert content.startswith(
            "I'm not confident enough to provide a definitive answer to this question "
            "(confidence: 0.20)."
        )
        assert "- The question is ambiguous or unclear" in content
        assert "- Try rephrasing your question with more specific details" in content

    def test_escalation_scenario(self, make_estimate):
        """Escalating gate discards the original answer for a review notice."""
        gate = CalibrationGate.new(high_threshold=0.7, low_threshold=0.4, low_action="escalate")
        original = Candidate(content="The answer is 42")

        result = gate.route(original, make_estimate(0.35))

        assert result.action is RoutingAction.ESCALATE
        assert result.candidate.content == (
            "I'm not confident enough to provide a definitive answer (confidence: 0.35).\n\n"
            "This question has been escalated for human review. "
            "Someone will provide assistance shortly."
        )
        assert result.candidate.metadata == {"escalated": True, "original_confidence": 0.35}
        assert result.candidate.score is None
        assert result.reasoning == "Low confidence (0.350), escalating for review"


class TestBoundaries:
    """Boundary values belong to the higher band."""

    def test_high_boundary(self, gate, candidate, make_estimate):
        """score == high_threshold routes as high."""
        assert gate.route(candidate, make_estimate(0.7)).confidence_level is ConfidenceLevel.HIGH

    def test_low_boundary(self, gate, candidate, make_estimate):
        """score == low_threshold routes as medium."""
        result = gate.route(candidate, make_estimate(0.4))
        assert result.confidence_level is ConfidenceLevel.MEDIUM

    def test_custom_boundaries(self, candidate, make_estimate):
        """Custom thresholds keep the same tie-break rule."""
        gate = CalibrationGate.new(high_threshold=0.9, low_threshold=0.5, emit_telemetry=False)
        assert gate.route(candidate, make_estimate(0.9)).is_direct
        assert gate.route(candidate, make_estimate(0.5)).is_with_verification
        assert gate.route(candidate, make_estimate(0.49)).is_abstained


class TestMismatchedActions:
    """Actions configured outside their usual band still apply their transform."""

    def test_abstain_at_medium(self, candidate, make_estimate):
        """Abstain configured for medium confidence abstains."""
        gate = CalibrationGate.new(medium_action="abstain", emit_telemetry=False)
        result = gate.route(candidate, make_estimate(0.5))
        assert result.is_abstained
        assert result.confidence_level is ConfidenceLevel.MEDIUM
        assert result.candidate.metadata["abstained"] is True
        assert result.reasoning == "Medium confidence (0.500), abstaining from answer"

    def test_verification_at_low(self, candidate, make_estimate):
        """A disclaimer action configured for low confidence appends its suffix."""
        gate = CalibrationGate.new(low_action="with_verification", emit_telemetry=False)
        result = gate.route(candidate, make_estimate(0.1))
        assert result.candidate.content.endswith(VERIFICATION_SUFFIX)

    def test_direct_at_low(self, candidate, make_estimate):
        """Direct configured for low confidence leaves the candidate alone."""
        gate = CalibrationGate.new(low_action="direct", emit_telemetry=False)
        result = gate.route(candidate, make_estimate(0.1))
        assert result.candidate == candidate
        assert result.confidence_level is ConfidenceLevel.LOW


class TestPreflight:
    """Tests for should_route and confidence_level."""

    def test_should_route(self):
        """should_route mirrors route's action choice."""
        gate = CalibrationGate.new(low_action="escalate")
        assert gate.should_route(0.95) is RoutingAction.DIRECT
        assert gate.should_route(0.7) is RoutingAction.DIRECT
        assert gate.should_route(0.4) is RoutingAction.WITH_VERIFICATION
        assert gate.should_route(0.1) is RoutingAction.ESCALATE

    def test_confidence_level(self):
        """confidence_level classifies with >= boundaries."""
        gate = CalibrationGate.new()
        assert gate.confidence_level(0.7) is ConfidenceLevel.HIGH
        assert gate.confidence_level(0.4) is ConfidenceLevel.MEDIUM
        assert gate.confidence_level(0.39) is ConfidenceLevel.LOW

    def test_no_telemetry(self, gate, recording_sink):
        """Pre-flight checks never emit events."""
        gate.should_route(0.5)
        gate.confidence_level(0.5)
        assert recording_sink.events == []


class TestRouteTelemetry:
    """Tests for the routing telemetry event."""

    def test_event_emitted(self, gate, recording_sink, candidate, make_estimate):
        """Each route emits one event with action, level and score tags."""
        gate.route(candidate, make_estimate(0.55))

        events = recording_sink.named(CALIBRATION_ROUTE_EVENT)
        assert len(events) == 1
        assert events[0].tags == {
            "action": "with_verification",
            "confidence_level": "medium",
            "score": 0.55,
        }
        assert events[0].measurements["duration"] >= 0

    def test_disabled(self, candidate, make_estimate):
        """emit_telemetry=False suppresses the event."""
        sink = RecordingTelemetry()
        gate = CalibrationGate.new(emit_telemetry=False, telemetry=sink)
        gate.route(candidate, make_estimate(0.9))
        assert sink.events == []

    def test_failing_sink_does_not_affect_result(self, candidate, make_estimate, caplog):
        """Sink exceptions are logged and swallowed."""

        class BrokenSink:
            def emit(self, event, measurements, tags):
                raise RuntimeError("sink down")

        gate = CalibrationGate.new(telemetry=BrokenSink())
        quiet = CalibrationGate.new(emit_telemetry=False)

        with caplog.at_level(logging.WARNING, logger="answer_gate.telemetry"):
            result = gate.route(candidate, make_estimate(0.3))

        assert result == quiet.route(candidate, make_estimate(0.3))
        assert "failed" in caplog.text

    def test_wrong_argument_types(self, gate, candidate):
        """route requires a Candidate and a ConfidenceEstimate."""
        with pytest.raises(TypeError):
            gate.route(candidate, 0.5)
        with pytest.raises(TypeError):
            gate.route("The answer is 42", None)


class TestRoutingResult:
    """Tests for RoutingResult construction, predicates and serialization."""

    def test_new_validates_action(self):
        """Unknown actions are rejected."""
        with pytest.raises(InvalidAction):
            RoutingResult.new(action="teleport")
        with pytest.raises(InvalidAction):
            RoutingResult.new()

    @pytest.mark.parametrize("score", [1.5, -0.1, "high"])
    def test_new_validates_score(self, score):
        """Scores must be numbers in [0, 1]."""
        with pytest.raises(InvalidScore):
            RoutingResult.new(action="direct", original_score=score)

    def test_new_validates_confidence_level(self):
        """Confidence level must be high, medium or low."""
        with pytest.raises(InvalidConfidenceLevel):
            RoutingResult.new(action="direct", confidence_level="extreme")

    def test_predicates(self):
        """Exactly one action predicate holds; modified is the complement of direct."""
        direct = RoutingResult.new(action="direct")
        escalated = RoutingResult.new(action=RoutingAction.ESCALATE)

        assert direct.is_direct and direct.is_unmodified and not direct.is_modified
        assert escalated.is_escalated and escalated.is_modified
        assert not escalated.is_abstained
        assert RoutingResult.new(action="with_citations").is_with_citations
        assert RoutingResult.new(action="with_verification").is_with_verification

    def test_to_dict_drops_empty_fields(self):
        """None fields and empty metadata are omitted."""
        data = RoutingResult.new(action="direct", original_score=0.9).to_dict()
        assert data == {"action": "direct", "original_score": 0.9}

    @pytest.mark.parametrize("score", [0.9, 0.5, 0.1])
    def test_round_trip(self, gate, candidate, make_estimate, score):
        """from_dict(to_dict(x)) equals x for routed results."""
        result = gate.route(candidate, make_estimate(score))
        assert RoutingResult.from_dict(result.to_dict()) == result

    def test_from_dict_keeps_unknown_labels(self):
        """Unrecognized action and level strings are preserved raw."""
        result = RoutingResult.from_dict({"action": "teleport", "confidence_level": "extreme"})
        assert result.action == "teleport"
        assert result.confidence_level == "extreme"
        assert not result.is_direct

        with pytest.raises(InvalidAction):
            result.validate()

    def test_from_dict_converts_known_labels(self):
        """Known strings become enum members."""
        result = RoutingResult.from_dict({"action": "abstain", "confidence_level": "low"})
        assert result.action is RoutingAction.ABSTAIN
        assert result.confidence_level is ConfidenceLevel.LOW
        assert result.validate() is result

    def test_from_dict_rejects_non_mapping(self):
        """Top-level structure must be a mapping."""
        with pytest.raises(InvalidMap):
            RoutingResult.from_dict(["direct"])

    def test_from_dict_rejects_bad_score(self):
        """A present but invalid score is an error."""
        with pytest.raises(InvalidScore):
            RoutingResult.from_dict({"action": "direct", "original_score": 2.0})
