"""Tests for full-text search over saved conversation archives."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, insert

from bplus.database.schema_sqlite import (
    Base,
    ConversationModel,
    MessageModel,
    NoteModel,
    create_tables,
)
from bplus.search.archive_provider import (
    ArchiveReader,
    LocalArchiveSearchProvider,
    RawHit,
    archive_locator,
    diversify_hits,
    fts_match_expression,
)


def build_archive(
    path: Path,
    conversations: list[dict],
    messages: list[dict],
    notes: list[dict] | None = None,
    fulltext: bool = True,
) -> Path:
    """Write an archive file with explicit ids and timestamps."""
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        if fulltext:
            create_tables(conn)
        else:
            Base.metadata.create_all(bind=conn)
        conn.execute(insert(ConversationModel.__table__), conversations)
        conn.execute(insert(MessageModel.__table__), messages)
        if notes:
            conn.execute(insert(NoteModel.__table__), notes)
    engine.dispose()
    return path


def conversation(cid: int, title: str) -> dict:
    return {"id": cid, "title": title, "created_at": "2024-01-01 09:00:00"}


def message(mid: int, cid: int, content: str, second: int | None = None, role: str = "user") -> dict:
    return {
        "id": mid,
        "conversation_id": cid,
        "role": role,
        "content": content,
        "sources": None,
        "created_at": f"2024-01-01 10:00:{second if second is not None else mid:02d}",
    }


def provider_for(storage_dir: Path) -> LocalArchiveSearchProvider:
    return LocalArchiveSearchProvider(storage_dir=storage_dir, extension=".db", timeout=5.0)


def test_diversify_keeps_first_hit_per_conversation():
    hits = [
        RawHit(message_id=10, conversation_id=1, created_at="t6"),
        RawHit(message_id=9, conversation_id=1, created_at="t5"),
        RawHit(message_id=8, conversation_id=1, created_at="t4"),
        RawHit(message_id=7, conversation_id=2, created_at="t3"),
        RawHit(message_id=6, conversation_id=3, created_at="t2"),
        RawHit(message_id=5, conversation_id=2, created_at="t1"),
    ]
    diverse = diversify_hits(hits)
    assert [(hit.conversation_id, hit.message_id) for hit in diverse] == [(1, 10), (2, 7), (3, 6)]


def test_fts_match_expression_quotes_tokens():
    assert fts_match_expression('rust "ownership" OR') == '"rust" """ownership""" "OR"'
    assert fts_match_expression("   ") == ""


def test_archive_locator(tmp_path):
    path = tmp_path / "2024.db"
    assert archive_locator(path, 4) == "archive://2024.db/conversations/4#notes"
    assert archive_locator(path, 4, 17) == "archive://2024.db/conversations/4#message-17"


def test_one_result_per_conversation_newest_first(tmp_path):
    build_archive(
        tmp_path / "history.db",
        conversations=[conversation(1, "Alpha"), conversation(2, "Beta"), conversation(3, "Gamma")],
        messages=[
            message(1, 2, "borrow checker notes", second=50),
            message(2, 3, "borrow checker again", second=51),
            message(3, 2, "borrow checker in beta", second=52),
            message(4, 1, "borrow checker first", second=53),
            message(5, 1, "borrow checker second", second=54),
            message(6, 1, "borrow checker third", second=55),
        ],
    )

    results = provider_for(tmp_path).search_all("borrow")

    assert [result.title for result in results] == ["Alpha", "Beta", "Gamma"]
    assert results[0].url == "archive://history.db/conversations/1#message-6"
    assert results[1].url == "archive://history.db/conversations/2#message-3"
    assert all(result.engine == "local_archive" for result in results)


def test_context_window_spans_three_messages_each_side(tmp_path):
    messages = [
        message(i, 1, f"line {i:02d}" + (" needle" if i == 6 else ""), role="user" if i % 2 else "assistant")
        for i in range(1, 12)
    ]
    build_archive(tmp_path / "ctx.db", conversations=[conversation(1, "Context")], messages=messages)

    results = provider_for(tmp_path).search_all("needle")

    assert len(results) == 1
    transcript = results[0].content
    for included in range(3, 10):
        assert f"line {included:02d}" in transcript
    assert "line 02" not in transcript
    assert "line 10" not in transcript
    assert transcript.splitlines()[0] == "[2024-01-01 10:00:03] USER: line 03"
    assert "[2024-01-01 10:00:06] ASSISTANT: line 06 needle" in transcript


def test_context_window_stays_inside_conversation(tmp_path):
    build_archive(
        tmp_path / "mixed.db",
        conversations=[conversation(1, "One"), conversation(2, "Two")],
        messages=[
            message(1, 1, "first conversation"),
            message(2, 2, "second conversation needle"),
            message(3, 1, "first conversation again"),
        ],
    )

    results = provider_for(tmp_path).search_all("needle")

    assert len(results) == 1
    assert "first conversation" not in results[0].content


def test_notes_come_first_and_are_capped(tmp_path):
    conversations = [conversation(cid, f"Topic {cid}") for cid in range(1, 6)]
    notes = [
        {"id": cid, "conversation_id": cid, "content": f"kernel summary {cid}", "updated_at": f"2024-02-0{cid} 00:00:00"}
        for cid in range(1, 6)
    ]
    build_archive(
        tmp_path / "notes.db",
        conversations=conversations,
        messages=[message(1, 1, "kernel question")],
        notes=notes,
    )

    results = provider_for(tmp_path).search_all("kernel")

    note_results = [result for result in results if result.url.endswith("#notes")]
    assert len(note_results) == 3
    assert results[:3] == note_results
    assert note_results[0].title == "Notes: Topic 5"
    assert results[3].url == "archive://notes.db/conversations/1#message-1"


def test_substring_fallback_without_fulltext_index(tmp_path):
    path = build_archive(
        tmp_path / "plain.db",
        conversations=[conversation(1, "Plain")],
        messages=[message(1, 1, "tokio runtime internals"), message(2, 1, "unrelated")],
        fulltext=False,
    )

    with ArchiveReader(path) as reader, reader.engine.connect() as conn:
        assert reader.has_fulltext_index(conn) is False

    results = provider_for(tmp_path).search_all("runtime")
    assert [result.url for result in results] == ["archive://plain.db/conversations/1#message-1"]


def test_unreadable_archive_is_skipped(tmp_path):
    (tmp_path / "a_broken.db").write_bytes(b"this is not a sqlite database" * 10)
    build_archive(
        tmp_path / "b_good.db",
        conversations=[conversation(1, "Good")],
        messages=[message(1, 1, "still searchable")],
    )

    results = provider_for(tmp_path).search_all("searchable")

    assert [result.title for result in results] == ["Good"]


def test_only_archive_extension_is_discovered(tmp_path):
    build_archive(tmp_path / "keep.db", conversations=[conversation(1, "Keep")], messages=[message(1, 1, "x")])
    (tmp_path / "active.sqlite").write_bytes(b"")
    (tmp_path / "readme.txt").write_text("x")

    assert [path.name for path in provider_for(tmp_path).discover_archives()] == ["keep.db"]


def test_missing_storage_dir_and_blank_query(tmp_path):
    assert provider_for(tmp_path / "absent").search_all("anything") == []
    assert provider_for(tmp_path).search_all("   ") == []


def test_archives_are_opened_read_only(tmp_path):
    path = build_archive(tmp_path / "ro.db", conversations=[conversation(1, "RO")], messages=[message(1, 1, "x")])
    before = path.read_bytes()

    provider_for(tmp_path).search_all("x")

    assert path.read_bytes() == before


@pytest.mark.asyncio
async def test_async_search_runs_scan(tmp_path):
    build_archive(
        tmp_path / "async.db",
        conversations=[conversation(1, "Async")],
        messages=[message(1, 1, "await the future")],
    )

    results = await provider_for(tmp_path).search("future")

    assert [result.title for result in results] == ["Async"]
