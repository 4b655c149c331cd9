"""Key-value storage interface shared by the timer, records and tasks."""

from __future__ import annotations

from typing import Any, Protocol


class StoragePort(Protocol):
    """Async key-value store holding JSON-compatible values."""

    async def load(self, key: str) -> Any | None:
        """Return the stored value, or None if the key is absent."""
        ...

    async def save(self, key: str, value: Any) -> None:
        """Store a value under a key, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Delete a key if present."""
        ...
