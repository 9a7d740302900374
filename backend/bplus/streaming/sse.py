"""SSE streaming for search-and-summarize requests."""

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class StreamEventType(str, Enum):
    """Types of events pushed to the caller, in emission order."""

    RESULTS = "results"
    SUMMARY_START = "summary-start"
    SUMMARY_CHUNK = "summary-chunk"
    ERROR = "error"
    SUMMARY_DONE = "summary-done"


@dataclass(frozen=True)
class StreamEvent:
    """One event of a request's one-way event sequence."""

    type: StreamEventType
    data: Any = field(default_factory=dict)

    def to_sse(self) -> str:
        """Render as a named SSE frame."""
        return f"event: {self.type.value}\ndata: {json.dumps(self.data, ensure_ascii=False)}\n\n"


class StreamingGenerator:
    """Base streaming generator with async queue."""

    def __init__(self):
        self.queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._finished = False

    def add(self, data: str) -> None:
        """Add data to stream."""
        if not self._finished:
            self.queue.put_nowait(data)

    def finish(self) -> None:
        """Signal stream completion."""
        if not self._finished:
            self._finished = True
            self.queue.put_nowait(None)

    async def stream(self):
        """Async generator for streaming data."""
        while True:
            data = await self.queue.get()
            if data is None:
                break
            yield data


class SearchStreamingGenerator(StreamingGenerator):
    """Forwards orchestrator events as SSE frames."""

    def __init__(self, conversation_id: int):
        super().__init__()
        self.conversation_id = conversation_id

    def emit(self, event: StreamEvent) -> None:
        """Queue one event."""
        if event.type is StreamEventType.ERROR:
            logger.warning("Search stream error", conversation_id=self.conversation_id, error=event.data)
        self.add(event.to_sse())

    def emit_error(self, message: str) -> None:
        self.emit(StreamEvent(StreamEventType.ERROR, {"message": message}))
