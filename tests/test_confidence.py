"""Tests for confidence estimates and candidates."""

import pytest

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceEstimate, ConfidenceLevel
from answer_gate.errors import AccuracyError, InvalidCandidate, InvalidMethod, InvalidScore


class TestConfidenceEstimate:
    """Tests for ConfidenceEstimate construction and levels."""

    def test_new(self):
        """Valid attributes build an estimate."""
        estimate = ConfidenceEstimate.new(
            score=0.85, method="attention", token_level_confidence=[0.9, 0.8]
        )
        assert estimate.score == 0.85
        assert estimate.method == "attention"
        assert estimate.token_level_confidence == [0.9, 0.8]

    @pytest.mark.parametrize("score", [None, -0.01, 1.01, "0.5", True])
    def test_invalid_score(self, score):
        """Score is required and must be a number in [0, 1]."""
        with pytest.raises(InvalidScore):
            ConfidenceEstimate.new(score=score, method="attention")

    @pytest.mark.parametrize("method", [None, ""])
    def test_invalid_method(self, method):
        """Method is required and non-empty."""
        with pytest.raises(InvalidMethod) as exc_info:
            ConfidenceEstimate.new(score=0.5, method=method)
        assert exc_info.value.reason == "invalid_method"

    @pytest.mark.parametrize(
        "score, level",
        [
            (0.95, ConfidenceLevel.HIGH),
            (0.7, ConfidenceLevel.HIGH),
            (0.69, ConfidenceLevel.MEDIUM),
            (0.4, ConfidenceLevel.MEDIUM),
            (0.39, ConfidenceLevel.LOW),
            (0.0, ConfidenceLevel.LOW),
        ],
    )
    def test_confidence_level(self, score, level):
        """Bands use the default calibration thresholds with >= boundaries."""
        estimate = ConfidenceEstimate.new(score=score, method="test")
        assert estimate.confidence_level is level
        assert [estimate.is_high, estimate.is_medium, estimate.is_low].count(True) == 1

    def test_round_trip(self):
        """from_dict(to_dict(x)) equals x and drops unset fields."""
        estimate = ConfidenceEstimate.new(score=0.6, method="ensemble", reasoning="3 of 5 agree")
        data = estimate.to_dict()
        assert data == {"score": 0.6, "method": "ensemble", "reasoning": "3 of 5 agree"}
        assert ConfidenceEstimate.from_dict(data) == estimate


class TestCandidate:
    """Tests for the Candidate value object."""

    def test_str_format(self, candidate):
        """String form shows content, score and tokens."""
        assert str(candidate) == "'The answer is 42' (score: 0.800, tokens: 12)"
        assert str(Candidate()) == "None (score: n/a, tokens: n/a)"

    def test_to_dict_omits_unset(self):
        """Unset fields and empty metadata are omitted."""
        assert Candidate(content="A").to_dict() == {"content": "A"}

    def test_round_trip(self, candidate):
        """from_dict(to_dict(x)) equals x."""
        assert Candidate.from_dict(candidate.to_dict()) == candidate

    @pytest.mark.parametrize("data", ["A", None, {"tokens_used": -5}, {"score": "high"}])
    def test_from_dict_invalid(self, data):
        """Invalid input raises InvalidCandidate."""
        with pytest.raises(InvalidCandidate) as exc_info:
            Candidate.from_dict(data)
        assert isinstance(exc_info.value, AccuracyError)
        assert isinstance(exc_info.value, ValueError)


class TestErrors:
    """Tests for error reason codes and messages."""

    def test_message_includes_reason(self):
        """str() prefixes the message with the reason code."""
        error = InvalidScore("score 1.5 outside [0, 1]")
        assert str(error) == "invalid_score: score 1.5 outside [0, 1]"

    def test_bare_error(self):
        """Without a message the reason alone is shown."""
        assert str(InvalidMethod()) == "invalid_method"
