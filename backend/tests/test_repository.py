"""Tests for the SQLite conversation store."""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from bplus.database.connection_sqlite import SQLiteDatabaseManager
from bplus.database.repository import ConversationStore, StorageError
from bplus.search.archive_provider import LocalArchiveSearchProvider
from bplus.search.models import GenericProviderConfig, NativeAdapter, NativeProviderConfig


async def open_store(tmp_path) -> ConversationStore:
    manager = SQLiteDatabaseManager(tmp_path / "active.sqlite")
    await manager.init_engine()
    return ConversationStore(manager, storage_dir=tmp_path, archive_extension=".db")


@pytest.mark.asyncio
async def test_conversation_lifecycle(tmp_path):
    store = await open_store(tmp_path)
    try:
        created = await store.create_conversation("Rust questions")
        await store.append_message(created["id"], "user", "what is ownership")
        await store.append_message(created["id"], "assistant", "Ownership is...", sources="[]")
        await store.save_note(created["id"], "first note")
        await store.save_note(created["id"], "revised note")

        conversation = await store.get_conversation(created["id"])
        assert conversation["title"] == "Rust questions"
        assert [message["role"] for message in conversation["messages"]] == ["user", "assistant"]
        assert conversation["messages"][1]["sources"] == "[]"
        assert conversation["note_content"] == "revised note"

        assert [item["id"] for item in await store.list_conversations()] == [created["id"]]
        assert await store.delete_conversation(created["id"]) is True
        assert await store.get_conversation(created["id"]) is None
        assert await store.delete_conversation(created["id"]) is False
    finally:
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_writes_to_missing_conversation_fail(tmp_path):
    store = await open_store(tmp_path)
    try:
        with pytest.raises(StorageError):
            await store.append_message(404, "user", "hello")
        with pytest.raises(StorageError):
            await store.save_note(404, "note")
    finally:
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_load_history_drops_trailing_user_turn(tmp_path):
    store = await open_store(tmp_path)
    try:
        cid = (await store.create_conversation())["id"]
        await store.append_message(cid, "user", "q1")
        await store.append_message(cid, "assistant", "a1")
        await store.append_message(cid, "user", "q2")

        assert await store.load_history(cid) == [
            {"role": "user", "content": "q1"},
            {"role": "assistant", "content": "a1"},
        ]

        await store.append_message(cid, "assistant", "a2")
        assert (await store.load_history(cid))[-1] == {"role": "assistant", "content": "a2"}
    finally:
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_list_enabled_providers(tmp_path):
    store = await open_store(tmp_path)
    try:
        web = await store.add_provider(name="Web", kind="native", api_url="duckduckgo")
        custom = await store.add_provider(
            name="Custom",
            kind="generic",
            api_url="https://api.example/?q={q}",
            api_headers='{"X-Key": "k"}',
            result_path="items",
            url_path="link",
        )
        off = await store.add_provider(name="Off", kind="native", api_url="wiki", enabled=False)
        await store.add_provider(name="Broken", kind="native", api_url="altavista")

        enabled = await store.list_enabled_providers()
        assert [config.name for config in enabled] == ["Web", "Custom"]
        assert isinstance(enabled[0], NativeProviderConfig)
        assert isinstance(enabled[1], GenericProviderConfig)
        assert enabled[1].headers == {"X-Key": "k"}

        selected = await store.list_enabled_providers([off["id"], web["id"]])
        assert [config.id for config in selected] == [web["id"], off["id"]]
        assert selected[1].adapter is NativeAdapter.WIKIPEDIA

        assert await store.delete_provider(custom["id"]) is True
        assert [item["name"] for item in await store.list_providers()] == ["Web", "Off", "Broken"]
    finally:
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_saved_archive_is_searchable_and_loadable(tmp_path):
    store = await open_store(tmp_path)
    try:
        cid = (await store.create_conversation("Async Rust"))["id"]
        await store.append_message(cid, "user", "how does tokio schedule tasks")

        name = await store.save_archive("snapshot")
        assert name == "snapshot.db"
        assert store.list_archive_files() == ["snapshot.db"]

        results = LocalArchiveSearchProvider(storage_dir=tmp_path).search_all("tokio")
        assert [result.title for result in results] == ["Async Rust"]
        assert results[0].url == f"archive://snapshot.db/conversations/{cid}#message-1"

        await store.load_archive("snapshot.db")
        assert [item["title"] for item in await store.list_conversations()] == ["Async Rust"]

        with pytest.raises(StorageError):
            await store.save_archive("snapshot")
        with pytest.raises(StorageError):
            await store.load_archive("missing.db")
    finally:
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_failed_save_keeps_previous_archive(tmp_path):
    store = await open_store(tmp_path)
    active_engine = store.db_manager.engine
    broken = tmp_path / "broken.sqlite"
    broken.write_bytes(b"this is not a sqlite database" * 10)
    broken_engine = create_async_engine(f"sqlite+aiosqlite:///{broken}")
    try:
        await store.create_conversation("Kept")
        await store.save_archive("snapshot")
        before = (tmp_path / "snapshot.db").read_bytes()

        store.db_manager.engine = broken_engine
        with pytest.raises(StorageError):
            await store.save_archive("snapshot")

        assert (tmp_path / "snapshot.db").read_bytes() == before
        assert not list(tmp_path.glob("*.partial"))
    finally:
        store.db_manager.engine = active_engine
        await broken_engine.dispose()
        await store.db_manager.close_engine()


@pytest.mark.asyncio
async def test_save_replaces_existing_archive(tmp_path):
    store = await open_store(tmp_path)
    try:
        await store.create_conversation("First")
        await store.save_archive("snapshot")
        await store.create_conversation("Second")
        await store.save_archive("snapshot.db")

        assert store.list_archive_files() == ["snapshot.db"]
        await store.load_archive("snapshot")
        titles = {item["title"] for item in await store.list_conversations()}
        assert titles == {"First", "Second"}
    finally:
        await store.db_manager.close_engine()
