"""Shared fakes for the timer, storage and CLI tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from focus_desk.core.config import get_config
from focus_desk.timer.engine import TimerEngine


class MemoryStore:
    """In-memory storage port that round-trips values through JSON."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, str] = {key: json.dumps(value) for key, value in (data or {}).items()}
        self.saves = 0

    async def load(self, key: str) -> Any | None:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    async def save(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)
        self.saves += 1

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def get(self, key: str) -> Any | None:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)


class FailingStore(MemoryStore):
    async def save(self, key: str, value: Any) -> None:
        raise OSError("disk full")


class ManualTicker:
    """Ticker stand-in: tests call ``engine.tick()`` themselves."""

    def __init__(self):
        self.active = False
        self.starts = 0

    def start(self) -> None:
        if not self.active:
            self.active = True
            self.starts += 1

    async def stop(self) -> None:
        self.active = False


class RecordingListener:
    """Collects every event the engine or controller emits."""

    def __init__(self):
        self.events: list[tuple[str, Any]] = []

    def on_tick(self, event) -> None:
        self.events.append(("tick", event))

    def on_interval_complete(self, event) -> None:
        self.events.append(("interval", event))

    def on_sequence_complete(self, event) -> None:
        self.events.append(("sequence", event))

    def of(self, name: str) -> list[Any]:
        return [event for kind, event in self.events if kind == name]

    def names(self) -> list[str]:
        return [kind for kind, _ in self.events]


class MemoryRecorder:
    def __init__(self):
        self.minutes: list[int] = []

    async def add_focus_minutes(self, minutes: int) -> None:
        self.minutes.append(minutes)


async def run_ticks(engine: TimerEngine, count: int) -> None:
    for _ in range(count):
        await engine.tick()


def make_engine(listener=None, focus_seconds: int = 1500, break_seconds: int = 300) -> tuple[TimerEngine, ManualTicker]:
    ticker = ManualTicker()
    engine = TimerEngine(listener, focus_seconds=focus_seconds, break_seconds=break_seconds, ticker=ticker)
    return engine, ticker


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the cached configuration at a temporary directory tree."""
    monkeypatch.setenv("FOCUS_DESK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FOCUS_DESK_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("FOCUS_DESK_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("FOCUS_DESK_TIMER__TICK_SECONDS", "0.001")
    get_config.cache_clear()
    yield get_config()
    get_config.cache_clear()
