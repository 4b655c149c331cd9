"""Storage layer: key-value port and its SQLite implementation."""

from focus_desk.storage.database import Database, init_database
from focus_desk.storage.port import StoragePort

__all__ = ["Database", "StoragePort", "init_database"]
