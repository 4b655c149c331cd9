"""Focus records, calendar helpers and the task board."""

from focus_desk.records.month_grid import build_month_grid, shift_month
from focus_desk.records.focus_records import FocusRecord, FocusRecordBook
from focus_desk.records.tasks import Task, TaskBoard

__all__ = [
    "FocusRecord",
    "FocusRecordBook",
    "Task",
    "TaskBoard",
    "build_month_grid",
    "shift_month",
]
