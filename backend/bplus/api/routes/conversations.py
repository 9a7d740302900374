"""Conversation endpoints, including the streaming query turn."""

import asyncio
from uuid import uuid4

import structlog
from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from bplus.api.models.conversations import ConversationCreateRequest, NoteRequest, QueryRequest
from bplus.database.repository import StorageError
from bplus.streaming.sse import SearchStreamingGenerator

router = APIRouter(prefix="/api/conversations", tags=["conversations"])
logger = structlog.get_logger(__name__)


@router.get("")
async def list_conversations(app_request: Request):
    """List all conversations, newest first."""
    return await app_request.app.state.store.list_conversations()


@router.post("")
async def create_conversation(conversation_request: ConversationCreateRequest, app_request: Request):
    """Create a new conversation."""
    return await app_request.app.state.store.create_conversation(conversation_request.title)


@router.get("/{conversation_id}")
async def get_conversation(conversation_id: int, app_request: Request):
    """Get a conversation with its messages and note."""
    conversation = await app_request.app.state.store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(conversation_id: int, app_request: Request):
    """Delete a conversation with its messages and note."""
    if not await app_request.app.state.store.delete_conversation(conversation_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return Response(status_code=204)


@router.put("/{conversation_id}/notes")
async def save_note(conversation_id: int, note_request: NoteRequest, app_request: Request):
    """Create or replace the notes of a conversation."""
    try:
        await app_request.app.state.store.save_note(conversation_id, note_request.content)
    except StorageError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Notes saved"}


@router.post("/{conversation_id}/query")
async def query_conversation(conversation_id: int, query_request: QueryRequest, app_request: Request):
    """Search, then stream a summary as server-sent events.

    The work runs in a background task: if the client disconnects, forwarding
    stops but the answer is still stored.
    """
    orchestrator = app_request.app.state.orchestrator
    active_tasks: dict[str, asyncio.Task] = app_request.app.state.active_tasks
    session_id = str(uuid4())
    stream_generator = SearchStreamingGenerator(conversation_id)

    logger.info("Query stream request", conversation_id=conversation_id, query=query_request.query[:100])

    async def run_task():
        try:
            async for event in orchestrator.run(conversation_id, query_request.to_synthesis_request()):
                stream_generator.emit(event)
        except asyncio.CancelledError:
            logger.info("Query task cancelled", session_id=session_id)
            raise
        except Exception as exc:
            logger.error("Query stream failed", error=str(exc), exc_info=True)
            stream_generator.emit_error(str(exc))
        finally:
            stream_generator.finish()
            active_tasks.pop(session_id, None)

    active_tasks[session_id] = asyncio.create_task(run_task())

    return StreamingResponse(
        stream_generator.stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Session-ID": session_id,
        },
    )
