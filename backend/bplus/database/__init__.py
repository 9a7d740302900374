"""Conversation store backed by SQLite."""

from bplus.database.connection_sqlite import SQLiteDatabaseManager
from bplus.database.repository import ConversationStore, StorageError

__all__ = ["SQLiteDatabaseManager", "ConversationStore", "StorageError"]
