"""Timer events and the listener interface that receives them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Protocol


class Phase(Enum):
    """Whether the engine is counting down focus or break time."""
    FOCUSING = "focusing"
    BREAKING = "breaking"


@dataclass(frozen=True)
class TickEvent:
    """Emitted once per second while running, and once after reset or restore."""
    remaining_seconds: int
    phase: Phase
    total_seconds: int

    @property
    def remaining_percent(self) -> float:
        """Share of the current interval still remaining (0-100)."""
        if self.total_seconds <= 0:
            return 0.0
        return min(100.0, max(0.0, self.remaining_seconds / self.total_seconds * 100))


@dataclass(frozen=True)
class IntervalCompleteEvent:
    """Emitted exactly once when an interval counts down to zero."""
    was_focusing: bool
    duration_seconds: int  # configured length of the interval that finished
    elapsed_focus_seconds: int  # live accumulator at completion time


@dataclass(frozen=True)
class SequenceCompleteEvent:
    """Emitted exactly once when the last interval of a sequence finishes."""
    intervals_completed: int


class TimerListener(Protocol):
    """Receiver of timer events. Methods may be plain or coroutine functions."""

    def on_tick(self, event: TickEvent) -> Awaitable[None] | None: ...

    def on_interval_complete(self, event: IntervalCompleteEvent) -> Awaitable[None] | None: ...

    def on_sequence_complete(self, event: SequenceCompleteEvent) -> Awaitable[None] | None: ...


class NullListener:
    """Listener that ignores every event."""

    def on_tick(self, event: TickEvent) -> None:
        pass

    def on_interval_complete(self, event: IntervalCompleteEvent) -> None:
        pass

    def on_sequence_complete(self, event: SequenceCompleteEvent) -> None:
        pass
