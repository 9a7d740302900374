"""FastAPI application initialization and configuration."""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bplus import __version__
from bplus.api.routes import (
    conversations_router,
    health_router,
    models_router,
    providers_router,
    research_router,
    suggest_router,
)
from bplus.chat.orchestrator import SynthesisOrchestrator
from bplus.config.logging_config import configure_logging
from bplus.config.settings import get_settings
from bplus.database.connection_sqlite import SQLiteDatabaseManager
from bplus.database.repository import ConversationStore
from bplus.search.dispatcher import RetrievalDispatcher

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    configure_logging(debug_mode=settings.debug, log_level=settings.log_level)
    logger.info("Starting up bplus search API...")

    logger.info("Initializing conversation store...", db_path=settings.sqlite_db_path)
    db_manager = SQLiteDatabaseManager(settings.sqlite_db_path, echo=settings.debug)
    await db_manager.init_engine()
    store = ConversationStore(db_manager, storage_dir=settings.storage_dir, archive_extension=settings.archive_extension)

    dispatcher = RetrievalDispatcher(settings)
    orchestrator = SynthesisOrchestrator(store=store, dispatcher=dispatcher, settings=settings)

    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.orchestrator = orchestrator
    app.state.active_tasks: dict[str, asyncio.Task] = {}

    logger.info("bplus search API started", storage_dir=settings.storage_dir, llm_mode=settings.llm_mode)

    yield

    logger.info("Shutting down bplus search API...")
    pending = list(app.state.active_tasks.values())
    if pending:
        # Let in-flight answers finish persisting before the engine goes away.
        await asyncio.wait(pending, timeout=settings.llm_timeout)
    await db_manager.close_engine()
    logger.info("bplus search API shutdown complete")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    app = FastAPI(
        title="bplus search API",
        description="Metasearch across web engines, custom JSON APIs and saved conversations, with streamed LLM summaries",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(conversations_router)
    app.include_router(providers_router)
    app.include_router(research_router)
    app.include_router(suggest_router)
    app.include_router(models_router)

    logger.info("FastAPI app created")

    return app


app = create_app()
