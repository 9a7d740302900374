"""Search, then summarize: the per-request pipeline behind the query stream."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import AsyncIterator, Callable, Protocol, Sequence

import structlog

from bplus.chat.prompts import NO_RESULTS_NOTICE, build_grounding_prompt
from bplus.config.settings import Settings
from bplus.llm.streaming import CompletionChunk, stream_completion
from bplus.search.models import GenericProviderConfig, NativeProviderConfig, SearchResult, Timeframe
from bplus.streaming.sse import StreamEvent, StreamEventType

logger = structlog.get_logger(__name__)

ProviderConfigs = Sequence[NativeProviderConfig | GenericProviderConfig]
CompletionStreamer = Callable[[str, str, str, list, str], AsyncIterator[CompletionChunk]]


class MessageStore(Protocol):
    async def append_message(
        self, conversation_id: int, role: str, content: str, sources: str | None = None
    ) -> int: ...

    async def load_history(self, conversation_id: int) -> list[dict[str, str]]: ...

    async def list_enabled_providers(self, selected_ids: list[int] | None = None) -> ProviderConfigs: ...


class Retriever(Protocol):
    async def retrieve(
        self, providers: ProviderConfigs, query: str, timeframe: Timeframe | None = None
    ) -> list[SearchResult]: ...


class SynthesisState(str, Enum):
    """Lifecycle of one request, used for logging."""

    START = "start"
    SEARCHING = "searching"
    SUMMARIZING = "summarizing"
    DONE = "done"
    ERRORED_BUT_RECORDED = "errored_but_recorded"


@dataclass
class SynthesisRequest:
    """What the caller asked for in one query turn."""

    query: str
    provider: str
    model: str
    system_prompt: str | None = None
    timeframe: Timeframe | None = None
    provider_ids: list[int] | None = None


def serialize_results(results: list[SearchResult]) -> list[dict]:
    return [result.model_dump() for result in results]


class SynthesisOrchestrator:
    """Persists the user turn, retrieves, streams a summary and persists it."""

    def __init__(
        self,
        store: MessageStore,
        dispatcher: Retriever,
        settings: Settings,
        completion_streamer: CompletionStreamer | None = None,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.settings = settings
        self.completion_streamer = completion_streamer or partial(stream_completion, settings=settings)

    async def _append(self, conversation_id: int, role: str, content: str, sources: str | None = None) -> int:
        """Best-effort write; returns 0 when the store refuses it."""
        try:
            return await self.store.append_message(conversation_id, role, content, sources)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to persist message", conversation_id=conversation_id, role=role, error=str(e))
            return 0

    async def _providers(self, selected_ids: list[int] | None) -> ProviderConfigs:
        try:
            return await self.store.list_enabled_providers(selected_ids)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to load providers; using defaults", error=str(e))
            return []

    async def _history(self, conversation_id: int) -> list[dict[str, str]]:
        try:
            return await self.store.load_history(conversation_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Failed to load history", conversation_id=conversation_id, error=str(e))
            return []

    async def run(self, conversation_id: int, request: SynthesisRequest) -> AsyncIterator[StreamEvent]:
        """
        Answer one query, yielding events as they become available.

        Emits ``results`` first, then either the no-results notice or
        ``summary-start`` followed by chunks and errors, and always ends with
        ``summary-done`` carrying the stored assistant message id (0 if the
        write failed). Never raises for backend or storage failures.
        """
        log = logger.bind(conversation_id=conversation_id, query=request.query[:100])
        state = SynthesisState.START
        log.info("Synthesis started", state=state.value)

        await self._append(conversation_id, "user", request.query)

        state = SynthesisState.SEARCHING
        providers = await self._providers(request.provider_ids)
        results = await self.dispatcher.retrieve(providers, request.query, request.timeframe)
        results = results[: self.settings.max_results]
        serialized = serialize_results(results)
        log.info("Search finished", state=state.value, results_count=len(results))

        yield StreamEvent(StreamEventType.RESULTS, serialized)

        state = SynthesisState.SUMMARIZING
        if not results:
            yield StreamEvent(StreamEventType.SUMMARY_CHUNK, {"text": NO_RESULTS_NOTICE})
            message_id = await self._append(conversation_id, "assistant", NO_RESULTS_NOTICE, "[]")
            log.info("Synthesis finished without results", state=SynthesisState.DONE.value, message_id=message_id)
            yield StreamEvent(StreamEventType.SUMMARY_DONE, {"messageId": message_id})
            return

        history = await self._history(conversation_id)
        user_prompt = build_grounding_prompt(request.query, results)
        system_prompt = request.system_prompt or self.settings.default_system_prompt

        yield StreamEvent(StreamEventType.SUMMARY_START, {})

        buffer: list[str] = []
        errors = 0
        message_id = 0
        try:
            stream = self.completion_streamer(request.provider, request.model, system_prompt, history, user_prompt)
            async for chunk in stream:
                if chunk.error:
                    errors += 1
                    yield StreamEvent(StreamEventType.ERROR, {"message": chunk.error})
                    continue
                buffer.append(chunk.text)
                yield StreamEvent(StreamEventType.SUMMARY_CHUNK, {"text": chunk.text})
        except Exception as e:
            errors += 1
            log.error("Completion stream raised", error=str(e))
            yield StreamEvent(StreamEventType.ERROR, {"message": str(e)})
        finally:
            # Runs on normal completion and when the consumer stops early.
            message_id = await self._append(
                conversation_id, "assistant", "".join(buffer), json.dumps(serialized, ensure_ascii=False)
            )

        state = SynthesisState.ERRORED_BUT_RECORDED if errors else SynthesisState.DONE
        log.info("Synthesis finished", state=state.value, message_id=message_id, chars=sum(map(len, buffer)))
        yield StreamEvent(StreamEventType.SUMMARY_DONE, {"messageId": message_id})
