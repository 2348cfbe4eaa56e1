"""Pytest configuration and fixtures for answer_gate tests."""

from collections.abc import Callable

import pytest

from answer_gate.core.candidate import Candidate
from answer_gate.core.confidence import ConfidenceEstimate
from answer_gate.core.routing import CalibrationGate
from answer_gate.telemetry import RecordingTelemetry, get_default_sink, set_default_sink


@pytest.fixture
def candidate() -> Candidate:
    """Provide a plain candidate answer."""
    return Candidate(content="The answer is 42", score=0.8, tokens_used=12, model="test-model")


@pytest.fixture
def make_estimate() -> Callable[[float], ConfidenceEstimate]:
    """Provide a factory for confidence estimates with a fixed method."""

    def _make(score: float) -> ConfidenceEstimate:
        return ConfidenceEstimate.new(score=score, method="test")

    return _make


@pytest.fixture
def recording_sink() -> RecordingTelemetry:
    """Provide an in-memory telemetry sink."""
    return RecordingTelemetry()


@pytest.fixture
def gate(recording_sink: RecordingTelemetry) -> CalibrationGate:
    """Provide a gate with default thresholds that records its telemetry."""
    return CalibrationGate.new(telemetry=recording_sink)


@pytest.fixture
def scored_candidates() -> list[Candidate]:
    """Provide candidates with mixed scores and token counts."""
    return [
        Candidate(content="Paris", score=0.7, tokens_used=10),
        Candidate(content="Lyon", score=0.9, tokens_used=15),
        Candidate(content="Paris", score=0.6, tokens_used=None),
    ]


@pytest.fixture(autouse=True)
def _restore_default_sink():
    """Keep tests from leaking a replaced process-wide telemetry sink."""
    previous = get_default_sink()
    yield
    set_default_sink(previous)
