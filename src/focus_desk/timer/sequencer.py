"""Interval sequencing: turn a requested focus total into focus/break chunks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class InvalidPlanError(ValueError):
    """Raised for focus plans or sequences the timer cannot run."""


class IntervalKind(Enum):
    """Kind of a single timer interval."""
    FOCUS = "focus"
    BREAK = "break"


@dataclass(frozen=True)
class Interval:
    """One focus or break block of a sequence."""
    kind: IntervalKind
    duration_seconds: int

    @property
    def is_focus(self) -> bool:
        return self.kind == IntervalKind.FOCUS

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {"kind": self.kind.value, "duration_seconds": self.duration_seconds}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Interval:
        """Create from a dictionary produced by ``to_dict``."""
        return cls(
            kind=IntervalKind(data["kind"]),
            duration_seconds=int(data["duration_seconds"]),
        )


Sequence = tuple[Interval, ...]


@dataclass(frozen=True)
class SessionPlan:
    """Canonical focus configuration: total focus minutes and the break toggle."""
    focus_minutes: int
    break_enabled: bool


@dataclass(frozen=True)
class SequencePolicy:
    """Chunk sizes used when breaks are enabled."""
    base_focus_minutes: int = 25
    base_break_minutes: int = 5


def validate_focus_minutes(value: Any) -> int:
    """Return ``value`` as focus minutes or raise InvalidPlanError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPlanError(f"Focus minutes must be a whole number, got {value!r}")
    if value < 1:
        raise InvalidPlanError(f"Focus minutes must be positive, got {value}")
    return value


def total_focus_seconds(sequence: Sequence) -> int:
    """Total seconds of focus across a sequence."""
    return sum(interval.duration_seconds for interval in sequence if interval.is_focus)


def build_sequence(
    total_focus_minutes: int,
    break_enabled: bool,
    policy: SequencePolicy | None = None,
) -> Sequence:
    """Build the interval sequence for a requested focus total.

    Totals up to one focus chunk always run as a single focus interval with
    breaks off. Longer totals are split into chunks with a break between
    consecutive chunks only when breaks are enabled; the remainder becomes a
    shorter final chunk and no break ever follows the last focus interval.
    """
    policy = policy or SequencePolicy()
    total = validate_focus_minutes(total_focus_minutes)
    unit = policy.base_focus_minutes

    if total <= unit or not break_enabled:
        return (Interval(IntervalKind.FOCUS, total * 60),)

    chunks: list[Interval] = []
    remaining = total
    while remaining >= unit:
        chunks.append(Interval(IntervalKind.FOCUS, unit * 60))
        remaining -= unit
        if remaining > 0:
            chunks.append(Interval(IntervalKind.BREAK, policy.base_break_minutes * 60))
    if remaining > 0:
        chunks.append(Interval(IntervalKind.FOCUS, remaining * 60))

    return tuple(chunks)


class IntervalSequencer:
    """Builds focus/break sequences from a fixed chunking policy.

    Usage:
        sequencer = IntervalSequencer(SequencePolicy(25, 5))
        sequencer.build(60, True)
        # -> Focus 25m, Break 5m, Focus 25m, Break 5m, Focus 10m
    """

    def __init__(self, policy: SequencePolicy | None = None):
        self.policy = policy or SequencePolicy()

    def normalize(self, focus_minutes: int, break_enabled: bool) -> SessionPlan:
        """Validate a request and force breaks off for single-chunk totals."""
        minutes = validate_focus_minutes(focus_minutes)
        if minutes <= self.policy.base_focus_minutes:
            break_enabled = False
        return SessionPlan(focus_minutes=minutes, break_enabled=bool(break_enabled))

    def build(self, focus_minutes: int, break_enabled: bool) -> Sequence:
        """Build the sequence for a request."""
        sequence = build_sequence(focus_minutes, break_enabled, self.policy)
        logger.debug(f"Built {len(sequence)} interval(s) for {focus_minutes} min (breaks={break_enabled})")
        return sequence

    def needs_sequence(self, plan: SessionPlan) -> bool:
        """Whether a plan runs as a chunked sequence rather than one simple countdown."""
        return plan.break_enabled and plan.focus_minutes > self.policy.base_focus_minutes
