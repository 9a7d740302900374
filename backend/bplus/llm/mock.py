"""Mock chat model for offline use and tests."""

from __future__ import annotations

import re
from typing import Any, AsyncIterator, Iterator, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult


class MockChatModel(BaseChatModel):
    """Minimal chat model that returns deterministic, streamable responses."""

    model_name: str = "mock"

    @property
    def _llm_type(self) -> str:
        return "mock-chat"

    def _generate(
        self,
        messages: List[BaseMessage],
        stop: Optional[List[str]] = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> ChatResult:
        content = self._compose_response(messages)
        return ChatResult(generations=[ChatGeneration(message=AIMessage(content=content))])

    def _stream(
        self,
        messages: List[BaseMessage],
        stop: Optional[List[str]] = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> Iterator[ChatGenerationChunk]:
        for piece in _split_words(self._compose_response(messages)):
            yield ChatGenerationChunk(message=AIMessageChunk(content=piece))

    async def _astream(
        self,
        messages: List[BaseMessage],
        stop: Optional[List[str]] = None,
        run_manager: Any = None,
        **kwargs: Any,
    ) -> AsyncIterator[ChatGenerationChunk]:
        for piece in _split_words(self._compose_response(messages)):
            yield ChatGenerationChunk(message=AIMessageChunk(content=piece))

    def _compose_response(self, messages: List[BaseMessage]) -> str:
        if not messages:
            return "Mock response."

        last_text = str(getattr(messages[-1], "content", ""))
        if "search results" not in last_text.lower():
            return "Mock response based on provided context."

        query = self._extract_query(last_text)
        titles = re.findall(r"^\[[^\]]+\] (.+)$", last_text, re.MULTILINE)
        lines = [f"Summary for {query}:"]
        for title in titles[:3]:
            lines.append(f"- {title}")
        if not titles:
            lines.append("- The provided results mention the topic.")
        return "\n".join(lines)

    def _extract_query(self, text: str) -> str:
        match = re.search(r'latest prompt: "(.+?)"', text)
        if match:
            return match.group(1).strip()
        return "the query"


def _split_words(text: str) -> list[str]:
    return re.findall(r"\S+\s*", text) or [text]
