"""Controller that coordinates the timer engine, focus records and persistence."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Protocol

from focus_desk.storage.port import StoragePort
from focus_desk.timer.engine import SnapshotError, TimerEngine
from focus_desk.timer.events import (
    IntervalCompleteEvent,
    SequenceCompleteEvent,
    TickEvent,
    TimerListener,
)
from focus_desk.timer.sequencer import IntervalSequencer, InvalidPlanError, SessionPlan

logger = logging.getLogger(__name__)

TIMER_STATE_KEY = "timer_state"
PLAN_KEY = "session_plan"


class FocusRecorder(Protocol):
    """Sink for completed focus minutes."""

    def add_focus_minutes(self, minutes: int) -> Awaitable[None] | None: ...


class SessionController:
    """User-facing start/stop/reset on top of the timer engine.

    The controller registers itself as the engine's listener: it records
    completed focus chunks, resets the plan when a sequence finishes and
    saves an engine snapshot after every state change so a restart can pick
    up mid-countdown. Other listeners (e.g. a display) are attached with
    ``add_listener`` and receive every event after the controller.

    Usage:
        controller = SessionController(engine, store, recorder=book)
        await controller.restore()
        await controller.configure(60, True)
        await controller.start()
    """

    def __init__(
        self,
        engine: TimerEngine,
        store: StoragePort,
        recorder: FocusRecorder | None = None,
        sequencer: IntervalSequencer | None = None,
        plan: SessionPlan | None = None,
        snapshot_every_seconds: int = 0,
    ):
        self.engine = engine
        self.store = store
        self.recorder = recorder
        self.sequencer = sequencer or IntervalSequencer()
        self.snapshot_every_seconds = snapshot_every_seconds

        self._plan = plan or self.sequencer.normalize(25, True)
        self._listeners: list[TimerListener] = []
        self._ticks_since_snapshot = 0

        self.engine.listener = self

    @property
    def requested_plan(self) -> SessionPlan:
        """The plan the next rebuild will use."""
        return self._plan

    def add_listener(self, listener: TimerListener) -> None:
        self._listeners.append(listener)

    # ----- User actions -----
    async def configure(self, focus_minutes: int, break_enabled: bool) -> SessionPlan:
        """Change the requested plan.

        A paused engine is rebuilt right away; a running one keeps its
        countdown and the new plan is applied on the next start or reset.

        Raises:
            InvalidPlanError: for non-positive or non-integer minutes. Nothing
                is changed in that case.
        """
        plan = self.sequencer.normalize(focus_minutes, break_enabled)
        self._plan = plan

        if self.engine.is_running:
            await self._save_plan()
        else:
            await self._apply_plan()
            await self._notify_current_tick()
            await self._persist()

        logger.info(f"Plan set: {plan.focus_minutes} min, breaks {'on' if plan.break_enabled else 'off'}")
        return plan

    async def start(self) -> None:
        """Start or resume, rebuilding first when the plan changed or time ran out."""
        if self.engine.is_running:
            return

        if self._needs_rebuild():
            logger.info("Timer plan changed or used up, rebuilding before start")
            await self.reset()

        await self.engine.start()
        await self._persist()

    async def stop(self) -> None:
        """Pause the countdown."""
        if not self.engine.is_running:
            return
        await self.engine.pause()
        await self._persist()

    async def reset(self) -> None:
        """Rewind and rebuild the engine from the requested plan."""
        await self.engine.reset()
        await self._apply_plan()
        await self._notify_current_tick()
        await self._persist()

    async def restore(self) -> bool:
        """Restore the saved timer, falling back to a fresh plan.

        Returns:
            Whether the timer was resumed.
        """
        await self._restore_plan()

        snapshot = await self.store.load(TIMER_STATE_KEY)
        if snapshot is None:
            logger.info("No saved timer state, starting fresh")
            await self.reset()
            return False

        try:
            was_running = await self.engine.restore_state(snapshot)
        except SnapshotError as e:
            logger.warning(f"Discarding saved timer state: {e}")
            await self.reset()
            return False

        if was_running and self.engine.remaining_seconds > 0:
            await self.engine.start()
            await self._persist()
            return True
        return False

    # ----- Engine events -----
    async def on_tick(self, event: TickEvent) -> None:
        if self.engine.is_running and self.snapshot_every_seconds > 0:
            self._ticks_since_snapshot += 1
            if self._ticks_since_snapshot >= self.snapshot_every_seconds:
                await self._persist()
        await self._forward("on_tick", event)

    async def on_interval_complete(self, event: IntervalCompleteEvent) -> None:
        if event.was_focusing:
            # Record the configured chunk length, not the live tick count
            minutes = event.duration_seconds // 60
            if minutes > 0 and self.recorder is not None:
                try:
                    result = self.recorder.add_focus_minutes(minutes)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as e:
                    logger.error(f"Failed to record {minutes} focus minutes: {e}")
            self.engine.consume_elapsed_focus()

        await self._persist()
        await self._forward("on_interval_complete", event)

    async def on_sequence_complete(self, event: SequenceCompleteEvent) -> None:
        await self._forward("on_sequence_complete", event)
        await self.reset()

    # ----- Internals -----
    def _needs_rebuild(self) -> bool:
        if self.engine.remaining_seconds <= 0:
            return True
        if self.engine.active_plan() != self._plan:
            return True
        sequence = self.engine.sequence
        if sequence is not None:
            expected = self.sequencer.build(self._plan.focus_minutes, self._plan.break_enabled)
            return sequence != expected
        return False

    async def _apply_plan(self) -> None:
        plan = self._plan
        await self._save_plan()
        if self.sequencer.needs_sequence(plan):
            await self.engine.configure_sequence(
                self.sequencer.build(plan.focus_minutes, plan.break_enabled)
            )
        else:
            await self.engine.configure_simple(plan.focus_minutes * 60, 0)

    async def _restore_plan(self) -> None:
        saved = await self.store.load(PLAN_KEY)
        if saved is None:
            return
        try:
            self._plan = self.sequencer.normalize(saved["focus_minutes"], bool(saved["break_enabled"]))
        except (KeyError, TypeError, InvalidPlanError) as e:
            logger.warning(f"Ignoring saved plan {saved!r}: {e}")

    async def _save_plan(self) -> None:
        plan = {"focus_minutes": self._plan.focus_minutes, "break_enabled": self._plan.break_enabled}
        await self._save("plan", PLAN_KEY, plan)

    async def _persist(self) -> None:
        self._ticks_since_snapshot = 0
        await self._save("timer state", TIMER_STATE_KEY, self.engine.get_state())

    async def _save(self, what: str, key: str, value: object) -> None:
        try:
            await self.store.save(key, value)
        except Exception as e:
            logger.error(f"Failed to save {what}: {e}")

    async def _notify_current_tick(self) -> None:
        s = self.engine.state
        await self._forward(
            "on_tick",
            TickEvent(
                remaining_seconds=s.remaining_seconds,
                phase=s.phase,
                total_seconds=s.current_interval_total_seconds,
            ),
        )

    async def _forward(self, name: str, event: object) -> None:
        for listener in list(self._listeners):
            handler = getattr(listener, name, None)
            if handler is None:
                continue
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Error in {name} listener: {e}")
