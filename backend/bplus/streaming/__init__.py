"""Streaming module for SSE support."""

from bplus.streaming.sse import (
    SearchStreamingGenerator,
    StreamEvent,
    StreamEventType,
    StreamingGenerator,
)

__all__ = [
    "StreamingGenerator",
    "SearchStreamingGenerator",
    "StreamEvent",
    "StreamEventType",
]
