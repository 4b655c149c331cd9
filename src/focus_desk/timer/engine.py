"""Countdown engine with simple and sequenced focus/break modes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any

from focus_desk.timer.events import (
    IntervalCompleteEvent,
    NullListener,
    Phase,
    SequenceCompleteEvent,
    TickEvent,
    TimerListener,
)
from focus_desk.timer.sequencer import (
    Interval,
    InvalidPlanError,
    Sequence,
    SessionPlan,
    total_focus_seconds,
)
from focus_desk.timer.ticker import Ticker

logger = logging.getLogger(__name__)

DEFAULT_FOCUS_SECONDS = 25 * 60
DEFAULT_BREAK_SECONDS = 5 * 60

_SNAPSHOT_FIELDS = (
    "remaining_seconds",
    "phase",
    "running",
    "focus_duration_seconds",
    "break_duration_seconds",
    "cursor",
    "elapsed_focus_seconds",
)


class SnapshotError(ValueError):
    """Raised when a persisted timer snapshot cannot be restored."""


def _non_negative_int(data: dict[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SnapshotError(f"Snapshot field {key!r} must be a non-negative integer, got {value!r}")
    return value


@dataclass
class EngineState:
    """Mutable state of the timer engine."""
    phase: Phase = Phase.FOCUSING
    remaining_seconds: int = DEFAULT_FOCUS_SECONDS
    current_interval_total_seconds: int = DEFAULT_FOCUS_SECONDS
    running: bool = False
    focus_duration_seconds: int = DEFAULT_FOCUS_SECONDS
    break_duration_seconds: int = DEFAULT_BREAK_SECONDS
    sequence: Sequence | None = None
    cursor: int = 0
    elapsed_focus_seconds: int = 0

    @property
    def is_sequenced(self) -> bool:
        return self.sequence is not None

    @property
    def time_remaining_display(self) -> str:
        """Format time remaining as MM:SS."""
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def remaining_percent(self) -> float:
        """Share of the current interval still remaining (0-100)."""
        total = self.current_interval_total_seconds
        if total <= 0:
            return 0.0
        return min(100.0, max(0.0, self.remaining_seconds / total * 100))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible snapshot."""
        return {
            "remaining_seconds": self.remaining_seconds,
            "phase": self.phase.value,
            "running": self.running,
            "focus_duration_seconds": self.focus_duration_seconds,
            "break_duration_seconds": self.break_duration_seconds,
            "sequence": [interval.to_dict() for interval in self.sequence]
            if self.sequence is not None
            else None,
            "cursor": self.cursor,
            "elapsed_focus_seconds": self.elapsed_focus_seconds,
        }

    @classmethod
    def from_dict(cls, data: Any) -> EngineState:
        """Create from a snapshot, validating every field.

        Raises:
            SnapshotError: if a field is missing, mistyped or out of range
        """
        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot must be a mapping, got {type(data).__name__}")

        missing = [key for key in _SNAPSHOT_FIELDS if key not in data]
        if missing:
            raise SnapshotError(f"Snapshot is missing fields: {', '.join(missing)}")

        try:
            phase = Phase(data["phase"])
        except ValueError as e:
            raise SnapshotError(f"Unknown phase: {data['phase']!r}") from e

        if not isinstance(data["running"], bool):
            raise SnapshotError("Snapshot field 'running' must be a boolean")

        remaining = _non_negative_int(data, "remaining_seconds")
        focus = _non_negative_int(data, "focus_duration_seconds")
        break_ = _non_negative_int(data, "break_duration_seconds")
        cursor = _non_negative_int(data, "cursor")
        elapsed = _non_negative_int(data, "elapsed_focus_seconds")

        if focus == 0:
            raise SnapshotError("Snapshot focus duration must be positive")

        sequence: Sequence | None = None
        raw_sequence = data.get("sequence")
        if raw_sequence is not None:
            if not isinstance(raw_sequence, list) or not raw_sequence:
                raise SnapshotError("Snapshot sequence must be a non-empty list")
            try:
                sequence = tuple(Interval.from_dict(item) for item in raw_sequence)
            except (KeyError, TypeError, ValueError) as e:
                raise SnapshotError(f"Malformed sequence interval: {e}") from e
            if any(interval.duration_seconds <= 0 for interval in sequence):
                raise SnapshotError("Sequence intervals must have positive durations")
            if cursor >= len(sequence):
                raise SnapshotError(f"Cursor {cursor} out of range for {len(sequence)} intervals")

            current = sequence[cursor]
            phase = Phase.FOCUSING if current.is_focus else Phase.BREAKING
            total = current.duration_seconds
        else:
            if cursor != 0:
                raise SnapshotError("Cursor must be 0 without a sequence")
            total = focus if phase == Phase.FOCUSING else break_

        if total <= 0:
            raise SnapshotError(f"Current {phase.value} interval has no duration")
        if remaining > total:
            raise SnapshotError(f"Remaining {remaining}s exceeds interval length {total}s")

        return cls(
            phase=phase,
            remaining_seconds=remaining,
            current_interval_total_seconds=total,
            running=data["running"],
            focus_duration_seconds=focus,
            break_duration_seconds=break_,
            sequence=sequence,
            cursor=cursor,
            elapsed_focus_seconds=elapsed,
        )


class TimerEngine:
    """Focus/break countdown driven by a one-second tick.

    Simple mode alternates a fixed focus and break duration and pauses after
    every interval. Sequenced mode walks a precomputed list of intervals and
    chains straight into the next one, reporting the end of the list once.

    Usage:
        engine = TimerEngine(listener)
        await engine.configure_sequence(IntervalSequencer().build(60, True))
        await engine.start()
        # ... listener.on_tick / on_interval_complete / on_sequence_complete ...
        await engine.pause()
        await engine.reset()
    """

    def __init__(
        self,
        listener: TimerListener | None = None,
        *,
        focus_seconds: int = DEFAULT_FOCUS_SECONDS,
        break_seconds: int = DEFAULT_BREAK_SECONDS,
        tick_interval: float = 1.0,
        ticker: Ticker | None = None,
    ):
        if focus_seconds <= 0 or break_seconds < 0:
            raise InvalidPlanError("Focus duration must be positive and break duration non-negative")

        self.listener: TimerListener = listener or NullListener()
        self._default_focus = focus_seconds
        self._default_break = break_seconds
        self._state = self._fresh_state()
        self._ticker = ticker or Ticker(self.tick, interval=tick_interval, on_error=self._on_ticker_error)

    def _fresh_state(self) -> EngineState:
        return EngineState(
            remaining_seconds=self._default_focus,
            current_interval_total_seconds=self._default_focus,
            focus_duration_seconds=self._default_focus,
            break_duration_seconds=self._default_break,
        )

    # ----- Read-only views -----
    @property
    def state(self) -> EngineState:
        """Get current engine state (copy)."""
        return replace(self._state)

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def remaining_seconds(self) -> int:
        return self._state.remaining_seconds

    @property
    def is_running(self) -> bool:
        return self._state.running

    @property
    def sequence(self) -> Sequence | None:
        return self._state.sequence

    @property
    def cursor(self) -> int:
        return self._state.cursor

    @property
    def elapsed_focus_seconds(self) -> int:
        return self._state.elapsed_focus_seconds

    @property
    def progress_percent(self) -> float:
        """Share of the current interval already counted down (0-100)."""
        return 100.0 - self._state.remaining_percent

    @property
    def time_remaining_display(self) -> str:
        return self._state.time_remaining_display

    def active_plan(self) -> SessionPlan:
        """The engine's configuration in the same shape as a user request."""
        s = self._state
        if s.sequence is not None:
            return SessionPlan(
                focus_minutes=total_focus_seconds(s.sequence) // 60,
                break_enabled=any(not interval.is_focus for interval in s.sequence),
            )
        return SessionPlan(
            focus_minutes=s.focus_duration_seconds // 60,
            break_enabled=s.break_duration_seconds > 0,
        )

    # ----- Configuration -----
    async def configure_simple(self, focus_seconds: int, break_seconds: int) -> None:
        """Switch to simple mode with the given durations.

        A paused engine reloads the current phase immediately; a running one
        finishes its current countdown and picks the new durations up at the
        next phase change.
        """
        if focus_seconds <= 0 or break_seconds < 0:
            raise InvalidPlanError("Focus duration must be positive and break duration non-negative")

        s = self._state
        s.sequence = None
        s.cursor = 0
        s.focus_duration_seconds = int(focus_seconds)
        s.break_duration_seconds = int(break_seconds)

        if not s.running:
            if s.phase == Phase.BREAKING and s.break_duration_seconds == 0:
                s.phase = Phase.FOCUSING
            self._load_phase_duration()

        logger.info(f"Timer configured: {focus_seconds}s focus / {break_seconds}s break")

    async def configure_sequence(self, sequence: Sequence) -> None:
        """Install a sequence and rewind to its first interval, paused."""
        sequence = tuple(sequence)
        if not sequence:
            raise InvalidPlanError("Sequence must contain at least one interval")
        if any(interval.duration_seconds <= 0 for interval in sequence):
            raise InvalidPlanError("Sequence intervals must have positive durations")

        await self.pause()

        s = self._state
        s.sequence = sequence
        s.cursor = 0
        self._load_interval(sequence[0])

        logger.info(f"Timer configured with {len(sequence)} interval sequence")

    # ----- Run control -----
    async def start(self) -> None:
        """Start or resume the countdown."""
        s = self._state
        if s.running:
            return

        if s.remaining_seconds <= 0:
            logger.warning("Timer started with no time left, reloading current interval")
            self._reload_current()

        s.running = True
        self._ticker.start()
        logger.info(f"Timer started: {s.phase.value} ({s.time_remaining_display} left)")

    async def pause(self) -> None:
        """Pause the countdown, keeping the remaining time."""
        s = self._state
        if not s.running:
            return

        s.running = False
        await self._ticker.stop()
        # A tick that was in flight may have chained into the next interval
        s.running = False
        logger.info(f"Timer paused: {s.phase.value} ({s.time_remaining_display} left)")

    async def reset(self) -> None:
        """Stop and rewind to the start of the configured plan."""
        await self.pause()

        s = self._state
        s.elapsed_focus_seconds = 0
        self._check_cursor()

        if s.sequence is not None:
            s.cursor = 0
            self._load_interval(s.sequence[0])
        else:
            s.phase = Phase.FOCUSING
            self._load_phase_duration()

        logger.info("Timer reset")
        await self._emit_tick()

    async def tick(self) -> None:
        """Advance the countdown by one second."""
        s = self._state
        if s.remaining_seconds > 0:
            s.remaining_seconds -= 1
        if s.phase == Phase.FOCUSING:
            s.elapsed_focus_seconds += 1

        logger.debug(f"Tick: {s.phase.value} {s.time_remaining_display}")
        await self._emit_tick()

        if s.remaining_seconds <= 0:
            await self._complete_interval()

    def consume_elapsed_focus(self) -> int:
        """Return the focus seconds counted so far and zero the counter."""
        elapsed = self._state.elapsed_focus_seconds
        self._state.elapsed_focus_seconds = 0
        return elapsed

    # ----- Snapshots -----
    def get_state(self) -> dict[str, Any]:
        """Snapshot the full engine state for persistence."""
        return self._state.to_dict()

    async def restore_state(self, snapshot: Any) -> bool:
        """Restore a snapshot without resuming the countdown.

        Returns:
            Whether the snapshot was taken while running; resuming is left to
            the caller.

        Raises:
            SnapshotError: if the snapshot is malformed. The engine is left in
                its fresh default state.
        """
        await self.pause()

        try:
            restored = EngineState.from_dict(snapshot)
        except SnapshotError:
            self._state = self._fresh_state()
            raise

        was_running = restored.running
        restored.running = False
        self._state = restored

        logger.info(
            f"Timer restored: {restored.phase.value} {restored.time_remaining_display} "
            f"({'sequenced' if restored.is_sequenced else 'simple'}, was running={was_running})"
        )
        await self._emit_tick()
        return was_running

    # ----- Internals -----
    def _load_interval(self, interval: Interval) -> None:
        s = self._state
        s.phase = Phase.FOCUSING if interval.is_focus else Phase.BREAKING
        s.remaining_seconds = interval.duration_seconds
        s.current_interval_total_seconds = interval.duration_seconds

    def _load_phase_duration(self) -> None:
        s = self._state
        duration = s.focus_duration_seconds if s.phase == Phase.FOCUSING else s.break_duration_seconds
        s.remaining_seconds = duration
        s.current_interval_total_seconds = duration

    def _reload_current(self) -> None:
        self._check_cursor()
        s = self._state
        if s.sequence is not None:
            self._load_interval(s.sequence[s.cursor])
        else:
            if s.phase == Phase.BREAKING and s.break_duration_seconds == 0:
                s.phase = Phase.FOCUSING
            self._load_phase_duration()

    def _check_cursor(self) -> None:
        """Fall back to simple mode if the cursor no longer points into the sequence."""
        s = self._state
        if s.sequence is None or 0 <= s.cursor < len(s.sequence):
            return
        logger.warning(
            f"Cursor {s.cursor} out of range for {len(s.sequence)} intervals, reverting to simple mode"
        )
        s.sequence = None
        s.cursor = 0
        s.phase = Phase.FOCUSING
        self._load_phase_duration()

    async def _complete_interval(self) -> None:
        """Handle interval completion and transition."""
        s = self._state
        await self.pause()
        self._check_cursor()

        was_focusing = s.phase == Phase.FOCUSING
        completed = IntervalCompleteEvent(
            was_focusing=was_focusing,
            duration_seconds=s.current_interval_total_seconds,
            elapsed_focus_seconds=s.elapsed_focus_seconds,
        )
        logger.info(f"{'Focus' if was_focusing else 'Break'} interval complete")

        # Finish the transition before observers see the completion
        finished_sequence: SequenceCompleteEvent | None = None
        if s.sequence is not None:
            next_cursor = s.cursor + 1
            if next_cursor < len(s.sequence):
                s.cursor = next_cursor
                self._load_interval(s.sequence[next_cursor])
                await self.start()
            else:
                # Left fully consumed in simple mode until the next reset
                finished_sequence = SequenceCompleteEvent(intervals_completed=len(s.sequence))
                s.sequence = None
                s.cursor = 0
                s.phase = Phase.FOCUSING
                s.remaining_seconds = 0
                s.current_interval_total_seconds = s.focus_duration_seconds
        else:
            if was_focusing and s.break_duration_seconds > 0:
                s.phase = Phase.BREAKING
            else:
                # Breaks off: never enter a zero-length break, restart focus instead
                s.phase = Phase.FOCUSING
            self._load_phase_duration()

        await self._emit("on_interval_complete", completed)

        if finished_sequence is not None:
            logger.info(f"Sequence of {finished_sequence.intervals_completed} intervals complete")
            await self._emit("on_sequence_complete", finished_sequence)

    def _on_ticker_error(self, error: Exception) -> None:
        """The tick loop died: stop claiming to run so start() can recover."""
        self._state.running = False
        logger.error(f"Timer stopped after tick failure: {error}")

    async def _emit_tick(self) -> None:
        s = self._state
        await self._emit(
            "on_tick",
            TickEvent(
                remaining_seconds=s.remaining_seconds,
                phase=s.phase,
                total_seconds=s.current_interval_total_seconds,
            ),
        )

    async def _emit(self, name: str, event: Any) -> None:
        """Deliver an event, logging observer failures instead of raising them."""
        handler = getattr(self.listener, name, None)
        if handler is None:
            return
        try:
            result = handler(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"Error in {name} callback: {e}")
