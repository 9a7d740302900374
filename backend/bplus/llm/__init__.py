"""LLM backends used for summarization."""

from bplus.llm.streaming import CompletionChunk, stream_completion

__all__ = ["CompletionChunk", "stream_completion"]
