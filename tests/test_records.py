"""Tests for focus records, tasks and the month grid."""

import asyncio
from datetime import date

import pytest

from conftest import MemoryStore
from focus_desk.records.focus_records import RECORDS_KEY, FocusRecordBook
from focus_desk.records.month_grid import build_month_grid, shift_month
from focus_desk.records.tasks import GOAL_KEY, TASKS_KEY, TaskBoard


class TestFocusRecordBook:
    def test_minutes_accumulate_per_day(self, store):
        day = date(2026, 10, 5)

        async def scenario():
            book = FocusRecordBook(store)
            await book.load()
            await book.add_focus_minutes(25, day)
            await book.add_focus_minutes(10, day)
            await book.add_focus_minutes(0, day)
            return book

        book = asyncio.run(scenario())
        assert book.minutes_on(day) == 35
        assert book.minutes_on(date(2026, 10, 6)) == 0
        assert store.get(RECORDS_KEY) == {"2026-10-05": {"total_minutes": 35}}

    def test_negative_minutes_rejected(self, store):
        book = FocusRecordBook(store)
        with pytest.raises(ValueError):
            asyncio.run(book.add_focus_minutes(-1))

    def test_defaults_to_today(self, store):
        book = FocusRecordBook(store)
        asyncio.run(book.add_focus_minutes(5))
        assert book.minutes_on(date.today()) == 5

    def test_records_for_month(self, store):
        async def scenario():
            book = FocusRecordBook(store)
            await book.add_focus_minutes(25, date(2026, 10, 31))
            await book.add_focus_minutes(50, date(2026, 10, 1))
            await book.add_focus_minutes(5, date(2026, 11, 1))
            return book

        book = asyncio.run(scenario())
        october = book.records_for_month(2026, 10)
        assert list(october) == [date(2026, 10, 1), date(2026, 10, 31)]
        assert october[date(2026, 10, 1)].total_minutes == 50
        assert book.total_minutes() == 80

    def test_load_skips_malformed_entries(self):
        store = MemoryStore(
            {
                RECORDS_KEY: {
                    "2026-10-02": {"total_minutes": 40},
                    "not-a-date": {"total_minutes": 5},
                    "2026-10-03": "oops",
                }
            }
        )

        async def scenario():
            book = FocusRecordBook(store)
            await book.load()
            return book

        book = asyncio.run(scenario())
        assert book.minutes_on(date(2026, 10, 2)) == 40
        assert book.total_minutes() == 40


class TestTaskBoard:
    def test_add_toggle_delete(self, store):
        async def scenario():
            board = TaskBoard(store)
            await board.add_task("  Write report ")
            await board.add_task("Review PR")
            toggled = await board.toggle_task(0)
            deleted = await board.delete_task(1)
            return board, toggled, deleted

        board, toggled, deleted = asyncio.run(scenario())
        assert toggled.text == "Write report"
        assert toggled.completed
        assert deleted.text == "Review PR"
        assert [task.text for task in board.tasks] == ["Write report"]
        assert store.get(TASKS_KEY) == [{"text": "Write report", "completed": True}]

    def test_blank_task_ignored(self, store):
        board = TaskBoard(store)
        assert asyncio.run(board.add_task("   ")) is None
        assert board.tasks == []

    def test_out_of_range_indices_ignored(self, store):
        async def scenario():
            board = TaskBoard(store)
            await board.add_task("Only")
            return board, await board.toggle_task(3), await board.delete_task(-1)

        board, toggled, deleted = asyncio.run(scenario())
        assert toggled is None
        assert deleted is None
        assert not board.tasks[0].completed

    def test_goal_and_tasks_reload(self, store):
        async def scenario():
            board = TaskBoard(store)
            await board.set_long_term_goal(" Finish thesis ")
            await board.add_task("Outline chapter 2")

            reloaded = TaskBoard(store)
            await reloaded.load()
            return reloaded

        reloaded = asyncio.run(scenario())
        assert store.get(GOAL_KEY) == "Finish thesis"
        assert reloaded.long_term_goal == "Finish thesis"
        assert [task.text for task in reloaded.tasks] == ["Outline chapter 2"]

    def test_load_skips_malformed_tasks(self):
        store = MemoryStore({TASKS_KEY: [{"text": "ok"}, {"completed": True}, "junk"]})
        board = TaskBoard(store)
        asyncio.run(board.load())
        assert [task.text for task in board.tasks] == ["ok"]


class TestMonthGrid:
    @pytest.mark.parametrize(
        "start, delta, expected",
        [
            ((2026, 12), 1, (2027, 1)),
            ((2026, 1), -1, (2025, 12)),
            ((2026, 6), 0, (2026, 6)),
            ((2026, 3), -15, (2024, 12)),
        ],
    )
    def test_shift_month(self, start, delta, expected):
        assert shift_month(*start, delta) == expected

    def test_grid_starts_on_sunday(self):
        grid = build_month_grid(2026, 10)
        assert grid[0] == [None, None, None, None, 1, 2, 3]
        days = [day for week in grid for day in week if day]
        assert days == list(range(1, 32))

    def test_month_starting_on_sunday(self):
        grid = build_month_grid(2026, 2)
        assert len(grid) == 4
        assert grid[0][0] == 1
        assert grid[-1][-1] == 28
