"""Fire-and-forget telemetry emission.

Components report events through a ``TelemetrySink``. Emission never blocks
or fails the caller: sink exceptions are logged and swallowed by
``safe_emit``.

Example:
    >>> sink = RecordingTelemetry()
    >>> gate = CalibrationGate.new(telemetry=sink)
    >>> gate.route(candidate, estimate)
    >>> sink.events[0].name
    'accuracy.calibration.route'
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

CALIBRATION_ROUTE_EVENT = "accuracy.calibration.route"


@runtime_checkable
class TelemetrySink(Protocol):
    """Receiver for telemetry events."""

    def emit(
        self,
        event: str,
        measurements: Mapping[str, float],
        tags: Mapping[str, Any],
    ) -> None: ...


@dataclass(frozen=True)
class TelemetryEvent:
    """A single emitted event, as captured by RecordingTelemetry."""

    name: str
    measurements: dict[str, float]
    tags: dict[str, Any]


@dataclass(frozen=True)
class NullTelemetry:
    def emit(
        self,
        event: str,
        measurements: Mapping[str, float],
        tags: Mapping[str, Any],
    ) -> None:
        return None


@dataclass(frozen=True)
class LoggingTelemetry:
    """Writes each event as a debug log record with structured extras."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("answer_gate.events"))
    level: int = logging.DEBUG

    def emit(
        self,
        event: str,
        measurements: Mapping[str, float],
        tags: Mapping[str, Any],
    ) -> None:
        self.logger.log(
            self.level,
            "%s %s",
            event,
            " ".join(f"{k}={v}" for k, v in {**measurements, **tags}.items()),
            extra={"event": event, "measurements": dict(measurements), "tags": dict(tags)},
        )


@dataclass
class RecordingTelemetry:
    """Keeps emitted events in memory."""

    events: list[TelemetryEvent] = field(default_factory=list)

    def emit(
        self,
        event: str,
        measurements: Mapping[str, float],
        tags: Mapping[str, Any],
    ) -> None:
        self.events.append(TelemetryEvent(event, dict(measurements), dict(tags)))

    def named(self, event: str) -> list[TelemetryEvent]:
        """Return the recorded events with the given name."""
        return [e for e in self.events if e.name == event]

    def clear(self) -> None:
        self.events.clear()


_default_sink: TelemetrySink = LoggingTelemetry()


def get_default_sink() -> TelemetrySink:
    """Return the process-wide sink used when a component has none."""
    return _default_sink


def set_default_sink(sink: TelemetrySink | None) -> TelemetrySink:
    """Replace the process-wide sink.

    Args:
        sink: New sink, or None to restore the logging sink.

    Returns:
        The previously installed sink, so callers can restore it.
    """
    global _default_sink
    previous = _default_sink
    _default_sink = sink if sink is not None else LoggingTelemetry()
    return previous


def safe_emit(
    sink: TelemetrySink | None,
    event: str,
    measurements: Mapping[str, float],
    tags: Mapping[str, Any],
) -> None:
    """Emit an event, never letting a sink failure reach the caller."""
    target = sink if sink is not None else _default_sink
    try:
        target.emit(event, measurements, tags)
    except Exception:
        logger.warning("Telemetry sink %r failed for event %s", target, event, exc_info=True)
