"""Token streaming from the configured LLM backend."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator

import aiohttp
import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from bplus.config.settings import Settings
from bplus.llm.factory import create_chat_model

logger = structlog.get_logger(__name__)

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class CompletionChunk:
    """One streamed piece of completion text, or an error notice."""

    text: str = ""
    error: str | None = None


def build_messages(system_prompt: str, history: list[dict[str, str]], user_prompt: str) -> list[BaseMessage]:
    """System prompt, then prior turns, then the grounding prompt."""
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    for turn in history:
        if turn.get("role") == "assistant":
            messages.append(AIMessage(content=turn.get("content", "")))
        else:
            messages.append(HumanMessage(content=turn.get("content", "")))
    messages.append(HumanMessage(content=user_prompt))
    return messages


def _chunk_text(content: Any) -> str:
    # Anthropic streams content blocks; OpenAI streams plain strings.
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(block.get("text", "") for block in content if isinstance(block, dict))
    return ""


def parse_google_event(line: str) -> str:
    """Extract the text of one ``data:`` line from Google's SSE stream."""
    if not line.startswith("data:"):
        return ""
    try:
        payload = json.loads(line[len("data:"):].strip())
    except json.JSONDecodeError:
        return ""
    parts = []
    for candidate in payload.get("candidates") or []:
        for part in (candidate.get("content") or {}).get("parts") or []:
            parts.append(part.get("text", ""))
    return "".join(parts)


async def _stream_langchain(
    provider: str,
    model: str,
    settings: Settings,
    messages: list[BaseMessage],
) -> AsyncIterator[CompletionChunk]:
    llm = create_chat_model(provider, model, settings)
    async for chunk in llm.astream(messages):
        text = _chunk_text(chunk.content)
        if text:
            yield CompletionChunk(text=text)


async def _stream_google(
    model: str,
    settings: Settings,
    system_prompt: str,
    history: list[dict[str, str]],
    user_prompt: str,
) -> AsyncIterator[CompletionChunk]:
    if not settings.google_api_key:
        raise ValueError("Google API key not configured")

    model_id = model.removeprefix("models/")
    url = f"{GOOGLE_API_BASE}/models/{model_id}:streamGenerateContent"
    contents = [
        {"role": "model" if turn.get("role") == "assistant" else "user", "parts": [{"text": turn.get("content", "")}]}
        for turn in history
    ]
    contents.append({"role": "user", "parts": [{"text": user_prompt}]})
    body = {"contents": contents, "systemInstruction": {"parts": [{"text": system_prompt}]}}

    timeout = aiohttp.ClientTimeout(total=settings.llm_timeout)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        params = {"alt": "sse", "key": settings.google_api_key}
        async with session.post(url, params=params, json=body) as response:
            if response.status != 200:
                detail = await response.text()
                raise RuntimeError(f"Google API returned {response.status}: {detail[:300]}")
            async for raw_line in response.content:
                text = parse_google_event(raw_line.decode("utf-8", errors="replace").strip())
                if text:
                    yield CompletionChunk(text=text)


async def stream_completion(
    provider: str,
    model: str,
    system_prompt: str,
    history: list[dict[str, str]],
    user_prompt: str,
    settings: Settings,
) -> AsyncIterator[CompletionChunk]:
    """
    Stream completion text from an LLM backend.

    Never raises: a backend failure is yielded as a chunk carrying ``error``
    and ends the stream. Chunks already yielded stand.

    Args:
        provider: Backend name (openai, openrouter, lmstudio, anthropic, google, mock)
        model: Model identifier for the backend
        system_prompt: System instruction
        history: Prior turns, oldest first
        user_prompt: Grounding prompt for this turn
        settings: Application settings
    """
    provider = (provider or "").strip().lower()
    logger.info("LLM stream started", provider=provider, model=model, history_turns=len(history))
    try:
        if provider == "google" and settings.llm_mode != "mock":
            stream = _stream_google(model, settings, system_prompt, history, user_prompt)
        else:
            stream = _stream_langchain(provider, model, settings, build_messages(system_prompt, history, user_prompt))
        async for chunk in stream:
            yield chunk
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error("LLM stream failed", provider=provider, model=model, error=str(e))
        yield CompletionChunk(error=str(e))
