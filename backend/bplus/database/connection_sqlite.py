"""SQLite database connection management with async support.

Uses aiosqlite for async operations and SQLAlchemy for ORM.
"""

from pathlib import Path

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from bplus.database.schema_sqlite import create_tables

logger = structlog.get_logger(__name__)


def create_sqlite_engine(db_path: str | Path, echo: bool = False) -> AsyncEngine:
    """Create SQLite AsyncEngine with foreign keys enabled."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=echo,
        poolclass=NullPool,  # SQLite doesn't need connection pooling
        connect_args={
            "check_same_thread": False,
            "timeout": 30,  # Wait up to 30s for locks
        },
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        cursor.close()

    return engine


class SQLiteDatabaseManager:
    """Owns the engine of the active conversation store.

    The active file can be swapped at runtime (loading a saved archive);
    callers must fetch sessions through ``get_session`` each time rather than
    holding on to the engine.
    """

    def __init__(self, db_path: str | Path, echo: bool = False):
        self.db_path = Path(db_path)
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker | None = None

    async def init_engine(self) -> None:
        """Open the active database and make sure its schema exists."""
        try:
            self.engine = create_sqlite_engine(self.db_path, echo=self.echo)
            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            await self.create_tables()
            logger.info("SQLite engine initialized", db_path=str(self.db_path))
        except Exception as e:
            logger.error("Failed to initialize SQLite engine", db_path=str(self.db_path), error=str(e))
            raise

    async def close_engine(self) -> None:
        """Close SQLAlchemy engine."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("SQLite engine closed", db_path=str(self.db_path))

    async def switch_database(self, db_path: str | Path) -> None:
        """Make another database file the active store."""
        await self.close_engine()
        self.db_path = Path(db_path)
        await self.init_engine()

    def get_session(self) -> AsyncSession:
        """Get SQLAlchemy async session."""
        if not self.session_factory:
            raise RuntimeError("Database engine not initialized")
        return self.session_factory()

    async def create_tables(self) -> None:
        """Create all tables in the database."""
        async with self.engine.begin() as conn:
            await conn.run_sync(create_tables)
        logger.debug("Database tables ensured", db_path=str(self.db_path))
