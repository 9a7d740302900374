"""Conversation store: messages, notes, providers and archive files."""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from bplus.database.connection_sqlite import SQLiteDatabaseManager
from bplus.database.schema_sqlite import (
    ConversationModel,
    MessageModel,
    NoteModel,
    ProviderModel,
    get_current_timestamp,
)
from bplus.search.models import GenericProviderConfig, NativeProviderConfig, provider_config_from_row

logger = structlog.get_logger(__name__)

DEFAULT_CONVERSATION_TITLE = "New Conversation"


class StorageError(Exception):
    """Raised when the store cannot satisfy a request."""


class ConversationStore:
    """Async access to the active conversation database.

    Reads go straight to the database; writes are serialized through a single
    lock. Individual operations are atomic, sequences of them are not.
    """

    def __init__(self, db_manager: SQLiteDatabaseManager, storage_dir: str | Path, archive_extension: str = ".db"):
        self.db_manager = db_manager
        self.storage_dir = Path(storage_dir)
        self.archive_extension = archive_extension
        self._write_lock = asyncio.Lock()

    # ==================== Conversations ====================

    async def create_conversation(self, title: str | None = None) -> dict[str, Any]:
        async with self._write_lock, self.db_manager.get_session() as session:
            conversation = ConversationModel(title=title or DEFAULT_CONVERSATION_TITLE)
            session.add(conversation)
            await session.commit()
            logger.info("Conversation created", conversation_id=conversation.id)
            return conversation.to_dict()

    async def list_conversations(self) -> list[dict[str, Any]]:
        async with self.db_manager.get_session() as session:
            result = await session.execute(
                select(ConversationModel).order_by(ConversationModel.created_at.desc(), ConversationModel.id.desc())
            )
            return [conversation.to_dict() for conversation in result.scalars().all()]

    async def get_conversation(self, conversation_id: int) -> dict[str, Any] | None:
        """Conversation with its messages (oldest first) and note, or None."""
        async with self.db_manager.get_session() as session:
            conversation = await session.get(ConversationModel, conversation_id)
            if conversation is None:
                return None
            messages = await session.execute(
                select(MessageModel)
                .where(MessageModel.conversation_id == conversation_id)
                .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            )
            note = await session.execute(select(NoteModel).where(NoteModel.conversation_id == conversation_id))
            note_row = note.scalar_one_or_none()
            return {
                **conversation.to_dict(),
                "messages": [message.to_dict() for message in messages.scalars().all()],
                "note_content": note_row.content if note_row else None,
            }

    async def delete_conversation(self, conversation_id: int) -> bool:
        async with self._write_lock, self.db_manager.get_session() as session:
            result = await session.execute(delete(ConversationModel).where(ConversationModel.id == conversation_id))
            await session.commit()
            return result.rowcount > 0

    async def save_note(self, conversation_id: int, content: str) -> None:
        """Create or replace the note attached to a conversation."""
        async with self._write_lock, self.db_manager.get_session() as session:
            if await session.get(ConversationModel, conversation_id) is None:
                raise StorageError(f"Conversation {conversation_id} does not exist")
            result = await session.execute(select(NoteModel).where(NoteModel.conversation_id == conversation_id))
            note = result.scalar_one_or_none()
            if note is None:
                session.add(NoteModel(conversation_id=conversation_id, content=content))
            else:
                note.content = content
                note.updated_at = get_current_timestamp()
            await session.commit()

    # ==================== Messages ====================

    async def append_message(
        self,
        conversation_id: int,
        role: str,
        content: str,
        sources: str | None = None,
    ) -> int:
        """
        Append a message to a conversation.

        Args:
            conversation_id: Target conversation
            role: "user" or "assistant"
            content: Message text
            sources: Serialized result set used as provenance

        Returns:
            The new message id

        Raises:
            StorageError: If the conversation does not exist or the write fails
        """
        async with self._write_lock, self.db_manager.get_session() as session:
            if await session.get(ConversationModel, conversation_id) is None:
                raise StorageError(f"Conversation {conversation_id} does not exist")
            message = MessageModel(conversation_id=conversation_id, role=role, content=content, sources=sources)
            session.add(message)
            try:
                await session.commit()
            except Exception as e:
                await session.rollback()
                raise StorageError(f"Failed to append message: {e}") from e
            return message.id

    async def load_history(self, conversation_id: int) -> list[dict[str, str]]:
        """Prior turns oldest-first, without a trailing user message.

        The trailing user entry is assumed to be the query currently being
        answered, which callers send separately.
        """
        async with self.db_manager.get_session() as session:
            result = await session.execute(
                select(MessageModel.role, MessageModel.content)
                .where(MessageModel.conversation_id == conversation_id)
                .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            )
            history = [{"role": row.role, "content": row.content} for row in result.all()]

        if history and history[-1]["role"] == "user":
            history.pop()
        return history

    # ==================== Providers ====================

    async def list_providers(self) -> list[dict[str, Any]]:
        async with self.db_manager.get_session() as session:
            result = await session.execute(select(ProviderModel).order_by(ProviderModel.id.asc()))
            return [provider.to_dict() for provider in result.scalars().all()]

    async def add_provider(self, **fields: Any) -> dict[str, Any]:
        async with self._write_lock, self.db_manager.get_session() as session:
            provider = ProviderModel(**fields)
            session.add(provider)
            await session.commit()
            logger.info("Provider added", provider_id=provider.id, name=provider.name, kind=provider.kind)
            return provider.to_dict()

    async def delete_provider(self, provider_id: int) -> bool:
        async with self._write_lock, self.db_manager.get_session() as session:
            result = await session.execute(delete(ProviderModel).where(ProviderModel.id == provider_id))
            await session.commit()
            return result.rowcount > 0

    async def list_enabled_providers(
        self, selected_ids: Iterable[int] | None = None
    ) -> list[NativeProviderConfig | GenericProviderConfig]:
        """Resolved provider configurations in id order.

        With ``selected_ids`` only those providers are returned; otherwise every
        enabled provider is. Rows that do not resolve are skipped.
        """
        selected = list(selected_ids) if selected_ids else []
        query = select(ProviderModel).order_by(ProviderModel.id.asc())
        if selected:
            query = query.where(ProviderModel.id.in_(selected))
        else:
            query = query.where(ProviderModel.enabled.is_(True))

        async with self.db_manager.get_session() as session:
            rows = (await session.execute(query)).scalars().all()

        configs = []
        for row in rows:
            config = provider_config_from_row(row)
            if config is not None:
                configs.append(config)
        return configs

    # ==================== Archive Files ====================

    def _archive_path(self, filename: str) -> Path:
        name = Path(filename).name
        if not name:
            raise StorageError("Archive filename is empty")
        if not name.endswith(self.archive_extension):
            name += self.archive_extension
        return self.storage_dir / name

    async def save_archive(self, filename: str) -> str:
        """Copy the active store into the storage directory; returns the file name.

        The copy is written to a temporary file first and only replaces an
        existing archive of the same name once it is complete.
        """
        path = self._archive_path(filename)
        async with self._write_lock:
            if path.resolve() == self.db_manager.db_path.resolve():
                raise StorageError("Cannot overwrite the active database")
            engine = self.db_manager.engine
            if engine is None:
                raise StorageError("Database engine not initialized")
            path.parent.mkdir(parents=True, exist_ok=True)
            # VACUUM INTO accepts an existing file only if it is empty.
            fd, partial_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".partial", dir=path.parent)
            os.close(fd)
            partial = Path(partial_name)
            try:
                async with engine.connect() as conn:
                    conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                    await conn.exec_driver_sql("VACUUM INTO ?", (str(partial),))
                os.replace(partial, path)
            except SQLAlchemyError as e:
                raise StorageError(f"Failed to save archive {path.name}: {e}") from e
            finally:
                partial.unlink(missing_ok=True)
        logger.info("Archive saved", archive=str(path))
        return path.name

    async def load_archive(self, filename: str) -> str:
        """Make a saved archive the active store; returns the file name."""
        path = self._archive_path(filename)
        if not path.is_file():
            raise StorageError(f"Archive {path.name} does not exist")
        async with self._write_lock:
            await self.db_manager.switch_database(path)
        logger.info("Archive loaded", archive=str(path))
        return path.name

    def list_archive_files(self) -> list[str]:
        if not self.storage_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self.storage_dir.iterdir()
            if path.is_file() and path.suffix == self.archive_extension
        )
