"""Periodic asyncio tick loop used by the timer engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Calls an async callback once per interval on the running event loop.

    The loop sleeps a full interval before every call, so a restart never
    fires early, and it awaits each call before sleeping again, so calls never
    overlap. ``stop()`` from inside the callback ends the loop once the
    callback returns; ``start()`` from inside the callback keeps it going.
    ``stop()`` from elsewhere cancels a pending sleep but lets a callback that
    is already running finish.

    If the callback raises, the loop ends and ``on_error`` is called with the
    exception.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float = 1.0,
        on_error: Callable[[Exception], None] | None = None,
    ):
        self._callback = callback
        self.interval = interval
        self.on_error = on_error
        self._active = False
        self._in_callback = False
        self._draining = False
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        """Whether ticks are currently scheduled."""
        return self._active

    def start(self) -> None:
        """Begin ticking. No-op if already active."""
        if self._active:
            return

        if self._task is not None and self._task is asyncio.current_task():
            if self._draining:
                # An outside stop() is waiting for this tick to finish
                return
            # Restarted from our own callback: the loop is still alive
            self._active = True
            return

        self._active = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop ticking. No tick starts after this returns."""
        if not self._active:
            return
        self._active = False

        task = self._task
        if task is None or task is asyncio.current_task():
            return

        if self._in_callback:
            self._draining = True
            try:
                # Shielded so cancelling the caller cannot abort the tick
                await asyncio.shield(task)
            finally:
                self._draining = False
        else:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._task is task:
            self._task = None

    def _owns_loop(self) -> bool:
        return self._active and self._task is asyncio.current_task()

    async def _run(self) -> None:
        """Main tick loop."""
        try:
            while self._owns_loop():
                await asyncio.sleep(self.interval)
                if not self._owns_loop():
                    break
                self._in_callback = True
                try:
                    await self._callback()
                finally:
                    self._in_callback = False
        except asyncio.CancelledError:
            raise
        except Exception as e:
            owned = self._task is asyncio.current_task()
            if owned:
                self._active = False
            logger.exception(f"Error in timer tick loop: {e}")
            if owned and self.on_error is not None:
                self.on_error(e)
        finally:
            if self._task is asyncio.current_task():
                self._task = None
