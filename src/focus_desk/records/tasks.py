"""Task list and long-term goal."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from focus_desk.storage.port import StoragePort

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
GOAL_KEY = "long_term_goal"


@dataclass
class Task:
    """A single to-do item."""
    text: str
    completed: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(text=str(data["text"]), completed=bool(data.get("completed", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "completed": self.completed}


class TaskBoard:
    """Persistent task list plus one free-text long-term goal.

    Indices are zero-based positions in ``tasks``; out-of-range indices are
    ignored rather than raising.
    """

    def __init__(self, store: StoragePort):
        self.store = store
        self.tasks: list[Task] = []
        self.long_term_goal: str = ""

    async def load(self) -> None:
        """Load tasks and goal from storage."""
        goal = await self.store.load(GOAL_KEY)
        if isinstance(goal, str):
            self.long_term_goal = goal

        raw_tasks = await self.store.load(TASKS_KEY)
        if isinstance(raw_tasks, list):
            tasks = []
            for item in raw_tasks:
                try:
                    tasks.append(Task.from_dict(item))
                except (KeyError, TypeError) as e:
                    logger.warning(f"Skipping malformed task {item!r}: {e}")
            self.tasks = tasks

    async def save(self) -> None:
        """Persist tasks and goal."""
        await self.store.save(GOAL_KEY, self.long_term_goal)
        await self.store.save(TASKS_KEY, [task.to_dict() for task in self.tasks])

    async def set_long_term_goal(self, goal: str) -> None:
        self.long_term_goal = goal.strip()
        await self.save()

    async def add_task(self, text: str) -> Task | None:
        """Append a task. Blank text is ignored."""
        text = text.strip()
        if not text:
            return None
        task = Task(text=text)
        self.tasks.append(task)
        await self.save()
        logger.info(f"Task added: {text}")
        return task

    async def delete_task(self, index: int) -> Task | None:
        if not 0 <= index < len(self.tasks):
            return None
        task = self.tasks.pop(index)
        await self.save()
        logger.info(f"Task deleted: {task.text}")
        return task

    async def toggle_task(self, index: int) -> Task | None:
        """Flip a task between open and completed."""
        if not 0 <= index < len(self.tasks):
            return None
        task = self.tasks[index]
        task.completed = not task.completed
        await self.save()
        return task
