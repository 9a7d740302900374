"""SQLite schema for the active conversation store and saved archives.

Archives are plain copies of this database, so the same tables (and the
``messages_fts`` full-text index) are what the local archive search reads.
"""

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, relationship

logger = structlog.get_logger(__name__)

Base = declarative_base()

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_current_timestamp() -> str:
    """Current UTC time in SQLite's CURRENT_TIMESTAMP format."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


# ==================== Conversation Tables ====================


class ConversationModel(Base):
    """Conversation model."""

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    created_at = Column(String, nullable=False, default=get_current_timestamp)

    messages = relationship(
        "MessageModel", back_populates="conversation", cascade="all, delete-orphan", passive_deletes=True
    )
    note = relationship(
        "NoteModel", back_populates="conversation", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (Index("idx_conversations_created", "created_at"),)

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
        }


class MessageModel(Base):
    """Append-only message; ``sources`` holds the serialized result set."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    role = Column(Text, nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    sources = Column(Text, nullable=True)
    created_at = Column(String, nullable=False, default=get_current_timestamp)

    conversation = relationship("ConversationModel", back_populates="messages")

    __table_args__ = (Index("idx_messages_conversation", "conversation_id", "id"),)

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "sources": self.sources,
            "created_at": self.created_at,
        }


class NoteModel(Base):
    """Free-form notes, at most one per conversation."""

    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        Integer,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    content = Column(Text, nullable=False)
    updated_at = Column(String, nullable=False, default=get_current_timestamp, onupdate=get_current_timestamp)

    conversation = relationship("ConversationModel", back_populates="note")


# ==================== Provider Table ====================


class ProviderModel(Base):
    """Search provider row.

    ``api_url`` is either a native adapter identifier (kind=native) or a URL
    template containing ``{q}`` (kind=generic); it is resolved into a typed
    configuration when loaded.
    """

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    kind = Column(String(16), nullable=False, default="native")
    api_url = Column(Text, nullable=True)
    api_headers = Column(Text, nullable=True)
    result_path = Column(Text, nullable=True)
    title_path = Column(Text, nullable=True)
    url_path = Column(Text, nullable=True)
    content_path = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "api_url": self.api_url,
            "api_headers": self.api_headers,
            "result_path": self.result_path,
            "title_path": self.title_path,
            "url_path": self.url_path,
            "content_path": self.content_path,
            "enabled": bool(self.enabled),
        }


# ==================== Full-Text Index ====================


FULLTEXT_DDL = (
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS messages_fts USING fts5(
        content, content='messages', content_rowid='id'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS messages_after_insert AFTER INSERT ON messages BEGIN
        INSERT INTO messages_fts(rowid, content) VALUES (new.id, new.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS messages_after_delete AFTER DELETE ON messages BEGIN
        INSERT INTO messages_fts(messages_fts, rowid, content) VALUES ('delete', old.id, old.content);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS messages_after_update AFTER UPDATE ON messages BEGIN
        INSERT INTO messages_fts(messages_fts, rowid, content) VALUES ('delete', old.id, old.content);
        INSERT INTO messages_fts(rowid, content) VALUES (new.id, new.content);
    END
    """,
)


def install_fulltext_index(connection) -> bool:
    """Create the FTS5 index and its sync triggers.

    An index created over existing rows is rebuilt so older files become
    searchable. Returns False when the SQLite build lacks FTS5; searches then
    fall back to substring matching.
    """
    existed = connection.execute(
        text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'messages_fts'")
    ).first()
    try:
        for statement in FULLTEXT_DDL:
            connection.execute(text(statement))
        if existed is None:
            connection.execute(text("INSERT INTO messages_fts(messages_fts) VALUES ('rebuild')"))
    except OperationalError as e:
        logger.warning("Full-text index unavailable", error=str(e))
        return False
    return True


def create_tables(connection) -> None:
    """Create all tables (and the full-text index) on a sync connection."""
    Base.metadata.create_all(bind=connection)
    install_fulltext_index(connection)
