"""Month grid helpers for the focus calendar."""

from __future__ import annotations

import calendar


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move ``delta`` months from (year, month), wrapping across years."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def build_month_grid(year: int, month: int) -> list[list[int | None]]:
    """Weeks of day numbers, Sunday first, with None for padding cells."""
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    return [
        [day or None for day in week]
        for week in cal.monthdayscalendar(year, month)
    ]
