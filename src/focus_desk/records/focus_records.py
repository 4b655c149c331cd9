"""Daily focus minute records backing the calendar view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from focus_desk.storage.port import StoragePort

logger = logging.getLogger(__name__)

RECORDS_KEY = "focus_records"


@dataclass
class FocusRecord:
    """Accumulated focus minutes for one calendar day."""
    day: date
    total_minutes: int = 0

    @classmethod
    def from_dict(cls, day: str, data: dict[str, Any]) -> FocusRecord:
        """Create from a stored entry."""
        return cls(day=date.fromisoformat(day), total_minutes=int(data.get("total_minutes", 0)))

    def to_dict(self) -> dict[str, Any]:
        return {"total_minutes": self.total_minutes}


class FocusRecordBook:
    """Records completed focus minutes per day.

    Usage:
        book = FocusRecordBook(store)
        await book.load()
        await book.add_focus_minutes(25)
        book.records_for_month(2026, 10)
    """

    def __init__(self, store: StoragePort):
        self.store = store
        self._records: dict[date, FocusRecord] = {}

    async def load(self) -> None:
        """Load records from storage, skipping unreadable entries."""
        raw = await self.store.load(RECORDS_KEY)
        self._records = {}
        if not isinstance(raw, dict):
            return

        for day, data in raw.items():
            try:
                record = FocusRecord.from_dict(day, data)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed focus record {day!r}: {e}")
                continue
            self._records[record.day] = record

    async def save(self) -> None:
        await self.store.save(
            RECORDS_KEY,
            {record.day.isoformat(): record.to_dict() for record in self._records.values()},
        )

    async def add_focus_minutes(self, minutes: int, day: date | None = None) -> None:
        """Add focus minutes to a day (today by default)."""
        if minutes < 0:
            raise ValueError(f"Focus minutes must be non-negative, got {minutes}")
        if minutes == 0:
            return

        day = day or date.today()
        record = self._records.setdefault(day, FocusRecord(day=day))
        record.total_minutes += minutes
        await self.save()
        logger.info(f"Recorded {minutes} focus minutes on {day.isoformat()} (total {record.total_minutes})")

    def minutes_on(self, day: date) -> int:
        record = self._records.get(day)
        return record.total_minutes if record else 0

    def records_for_month(self, year: int, month: int) -> dict[date, FocusRecord]:
        """Records falling in the given month (1-12)."""
        return {
            day: record
            for day, record in sorted(self._records.items())
            if day.year == year and day.month == month
        }

    def total_minutes(self) -> int:
        return sum(record.total_minutes for record in self._records.values())
