"""Full-text search over saved conversation archives.

Every archive file in the storage directory is opened read-only and searched
in two stages: notes first (few, pre-summarized hits), then messages. Message
hits are capped at one per conversation and each surviving hit is expanded
into a short transcript of its neighbouring messages.
"""

import asyncio
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from bplus.search.base import DEFAULT_TIMEOUT, SearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

ENGINE_NAME = "local_archive"
UNTITLED_CONVERSATION = "Archived conversation"


@dataclass(frozen=True)
class RawHit:
    """A message matching the query inside one archive."""

    message_id: int
    conversation_id: int
    created_at: str


def diversify_hits(hits: Iterable[RawHit]) -> list[RawHit]:
    """Keep only the first hit seen for each conversation, preserving order."""
    seen: set[int] = set()
    diverse = []
    for hit in hits:
        if hit.conversation_id in seen:
            continue
        seen.add(hit.conversation_id)
        diverse.append(hit)
    return diverse


def fts_match_expression(query: str) -> str:
    """Quote every token so user input cannot inject FTS5 query syntax."""
    tokens = query.split()
    return " ".join('"' + token.replace('"', '""') + '"' for token in tokens)


def format_transcript(rows: Iterable) -> str:
    """Render context rows as ``[timestamp] ROLE: content`` lines."""
    return "\n".join(f"[{row.created_at}] {str(row.role).upper()}: {row.content}" for row in rows)


def archive_locator(archive: Path, conversation_id: int, message_id: int | None = None) -> str:
    """Synthetic URL pointing at a conversation (and message) inside an archive."""
    base = f"archive://{archive.name}/conversations/{conversation_id}"
    if message_id is None:
        return f"{base}#notes"
    return f"{base}#message-{message_id}"


class ArchiveReader:
    """Read-only view of a single archive file."""

    def __init__(self, path: Path):
        self.path = path
        uri = f"{path.resolve().as_uri()}?mode=ro"
        self.engine = create_engine(
            "sqlite://",
            creator=lambda: sqlite3.connect(uri, uri=True, check_same_thread=False),
            poolclass=NullPool,
        )

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def search_notes(self, conn: Connection, query: str, limit: int) -> list[SearchResult]:
        # instr() is case-sensitive, like the default BINARY collation.
        sql = text(
            """
            SELECT n.conversation_id, n.content, c.title
            FROM notes n
            JOIN conversations c ON c.id = n.conversation_id
            WHERE instr(n.content, :q) > 0 OR instr(c.title, :q) > 0
            ORDER BY n.updated_at DESC
            LIMIT :limit
            """
        )
        try:
            rows = conn.execute(sql, {"q": query, "limit": limit}).all()
        except OperationalError as e:
            logger.debug("Archive has no searchable notes", archive=self.path.name, error=str(e))
            return []

        return [
            SearchResult(
                title=f"Notes: {row.title or UNTITLED_CONVERSATION}",
                url=archive_locator(self.path, row.conversation_id),
                content=row.content,
                engine=ENGINE_NAME,
            )
            for row in rows
        ]

    def has_fulltext_index(self, conn: Connection) -> bool:
        row = conn.execute(
            text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'messages_fts'")
        ).first()
        return row is not None

    def search_messages(self, conn: Connection, query: str, limit: int) -> list[RawHit]:
        """Return message hits newest first."""
        rows = None
        match = fts_match_expression(query)
        if match and self.has_fulltext_index(conn):
            sql = text(
                """
                SELECT m.id, m.conversation_id, m.created_at
                FROM messages_fts
                JOIN messages m ON m.id = messages_fts.rowid
                WHERE messages_fts MATCH :match
                ORDER BY m.created_at DESC, m.id DESC
                LIMIT :limit
                """
            )
            try:
                rows = conn.execute(sql, {"match": match, "limit": limit}).all()
            except OperationalError as e:
                logger.debug("Full-text query failed; using substring search", archive=self.path.name, error=str(e))

        if rows is None:
            sql = text(
                """
                SELECT id, conversation_id, created_at
                FROM messages
                WHERE instr(content, :q) > 0
                ORDER BY created_at DESC, id DESC
                LIMIT :limit
                """
            )
            rows = conn.execute(sql, {"q": query, "limit": limit}).all()

        return [RawHit(message_id=row.id, conversation_id=row.conversation_id, created_at=str(row.created_at)) for row in rows]

    def context_window(self, conn: Connection, hit: RawHit, radius: int) -> list:
        sql = text(
            """
            SELECT id, role, content, created_at
            FROM messages
            WHERE conversation_id = :cid AND id BETWEEN :lo AND :hi
            ORDER BY created_at ASC, id ASC
            """
        )
        params = {"cid": hit.conversation_id, "lo": hit.message_id - radius, "hi": hit.message_id + radius}
        return conn.execute(sql, params).all()

    def conversation_title(self, conn: Connection, conversation_id: int) -> str:
        row = conn.execute(
            text("SELECT title FROM conversations WHERE id = :cid"), {"cid": conversation_id}
        ).first()
        return row.title if row and row.title else UNTITLED_CONVERSATION


class LocalArchiveSearchProvider(SearchProvider):
    """Searches notes and messages of every archive in the storage directory."""

    engine = ENGINE_NAME

    def __init__(
        self,
        storage_dir: str | Path,
        extension: str = ".db",
        note_limit: int = 3,
        raw_hit_limit: int = 100,
        context_radius: int = 3,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(timeout=timeout)
        self.storage_dir = Path(storage_dir)
        self.extension = extension if extension.startswith(".") else f".{extension}"
        self.note_limit = note_limit
        self.raw_hit_limit = raw_hit_limit
        self.context_radius = context_radius

    def discover_archives(self) -> list[Path]:
        """List archive files in the storage directory, sorted by name."""
        if not self.storage_dir.is_dir():
            return []
        return sorted(
            path for path in self.storage_dir.iterdir() if path.is_file() and path.suffix == self.extension
        )

    def search_archive(self, path: Path, query: str) -> list[SearchResult]:
        """Search one archive; raises if the file cannot be read."""
        with ArchiveReader(path) as reader, reader.engine.connect() as conn:
            results = reader.search_notes(conn, query, self.note_limit)

            raw_hits = reader.search_messages(conn, query, self.raw_hit_limit)
            hits = diversify_hits(raw_hits)
            for hit in hits:
                rows = reader.context_window(conn, hit, self.context_radius)
                if not rows:
                    continue
                results.append(
                    SearchResult(
                        title=reader.conversation_title(conn, hit.conversation_id),
                        url=archive_locator(path, hit.conversation_id, hit.message_id),
                        content=format_transcript(rows),
                        engine=ENGINE_NAME,
                    )
                )

        logger.debug(
            "Archive searched",
            archive=path.name,
            raw_hits=len(raw_hits),
            diverse_hits=len(hits),
            results_count=len(results),
        )
        return results

    def search_all(self, query: str) -> list[SearchResult]:
        """Blocking scan of every archive; unreadable files are skipped."""
        if not query.strip():
            return []

        results: list[SearchResult] = []
        archives = self.discover_archives()
        for path in archives:
            try:
                results.extend(self.search_archive(path, query))
            except (SQLAlchemyError, sqlite3.Error, OSError) as e:
                logger.warning("Skipping unreadable archive", archive=str(path), error=str(e))

        logger.info("Local archive search completed", query=query, archives=len(archives), results_count=len(results))
        return results

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        return await asyncio.to_thread(self.search_all, query)
