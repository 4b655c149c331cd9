"""Tests for the SQLite key-value store."""

import asyncio

from focus_desk.storage.database import Database, init_database


def test_save_load_remove(tmp_path):
    async def scenario():
        db = await init_database(tmp_path / "test.db")
        try:
            assert await db.load("missing") is None
            await db.save("timer_state", {"phase": "focusing", "remaining_seconds": 90})
            loaded = await db.load("timer_state")
            await db.remove("timer_state")
            return loaded, await db.load("timer_state")
        finally:
            await db.close()

    loaded, removed = asyncio.run(scenario())
    assert loaded == {"phase": "focusing", "remaining_seconds": 90}
    assert removed is None


def test_save_overwrites(tmp_path):
    async def scenario():
        db = await init_database(tmp_path / "test.db")
        try:
            await db.save("tasks", [{"text": "a", "completed": False}])
            await db.save("tasks", [])
            return await db.load("tasks")
        finally:
            await db.close()

    assert asyncio.run(scenario()) == []


def test_values_survive_reconnect(tmp_path):
    path = tmp_path / "nested" / "test.db"

    async def scenario():
        db = await init_database(path)
        await db.save("long_term_goal", "Ship it")
        await db.close()
        assert not db.is_connected

        db = await init_database(path)
        try:
            return await db.load("long_term_goal")
        finally:
            await db.close()

    assert asyncio.run(scenario()) == "Ship it"


def test_corrupt_value_reads_as_missing(tmp_path):
    async def scenario():
        db = await init_database(tmp_path / "test.db")
        try:
            await db.execute("INSERT INTO app_state (key, value) VALUES (?, ?)", ("broken", "{not json"))
            return await db.load("broken")
        finally:
            await db.close()

    assert asyncio.run(scenario()) is None


def test_integrity_and_size(tmp_path):
    async def scenario():
        db = Database(tmp_path / "test.db")
        await db.connect()
        try:
            await db.save("x", 1)
            ok = await db.check_integrity()
        finally:
            await db.close()
        # Closing checkpoints the WAL into the main file
        return ok, await db.get_size_mb()

    ok, size = asyncio.run(scenario())
    assert ok
    assert size > 0
