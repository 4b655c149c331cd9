"""Application wiring: storage, timer, focus records and tasks."""

from __future__ import annotations

import logging

from focus_desk.core.config import Config, get_config
from focus_desk.records.focus_records import FocusRecordBook
from focus_desk.records.tasks import TaskBoard
from focus_desk.storage.database import Database, init_database
from focus_desk.timer.engine import TimerEngine
from focus_desk.timer.sequencer import IntervalSequencer, SequencePolicy
from focus_desk.timer.session import SessionController

logger = logging.getLogger(__name__)


class FocusDesk:
    """Owns the lifecycle of every component behind the command line.

    Usage:
        async with FocusDesk(config) as desk:
            await desk.session.start()
    """

    def __init__(self, config: Config | None = None):
        self.config = config or get_config()

        # Initialized in open()
        self.db: Database | None = None
        self.records: FocusRecordBook | None = None
        self.tasks: TaskBoard | None = None
        self.engine: TimerEngine | None = None
        self.session: SessionController | None = None

    async def open(self) -> None:
        """Connect storage and build the timer around it."""
        if self.db is not None:
            return

        timer = self.config.timer
        self.config.ensure_directories()

        try:
            self.db = await init_database(self.config.db_path)

            self.records = FocusRecordBook(self.db)
            await self.records.load()
            self.tasks = TaskBoard(self.db)
            await self.tasks.load()

            sequencer = IntervalSequencer(
                SequencePolicy(
                    base_focus_minutes=timer.base_focus_minutes,
                    base_break_minutes=timer.base_break_minutes,
                )
            )
            self.engine = TimerEngine(
                focus_seconds=timer.default_focus_minutes * 60,
                break_seconds=timer.default_break_minutes * 60,
                tick_interval=timer.tick_seconds,
            )
            self.session = SessionController(
                self.engine,
                self.db,
                recorder=self.records,
                sequencer=sequencer,
                plan=sequencer.normalize(timer.default_focus_minutes, timer.breaks_enabled),
                snapshot_every_seconds=timer.snapshot_every_seconds,
            )
        except Exception as e:
            logger.error(f"Failed to open Focus Desk: {e}")
            await self.close()
            raise

        logger.info("Focus Desk opened")

    async def close(self) -> None:
        """Stop the countdown and close storage."""
        if self.engine is not None:
            await self.engine.pause()
            self.engine = None
        self.session = None

        if self.db is not None:
            await self.db.close()
            self.db = None

    async def __aenter__(self) -> FocusDesk:
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
