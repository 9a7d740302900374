"""Tests for completion streaming and model listing."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from bplus.config.settings import Settings
from bplus.llm.models import _google_models, _openai_models, list_models
from bplus.llm.streaming import build_messages, parse_google_event, stream_completion


def live_settings(**overrides) -> Settings:
    return Settings(_env_file=None, llm_mode="live", openai_api_key=None, google_api_key=None, **overrides)


async def drain(stream):
    return [chunk async for chunk in stream]


def test_build_messages_orders_system_history_prompt():
    messages = build_messages(
        "system",
        [{"role": "user", "content": "q1"}, {"role": "assistant", "content": "a1"}],
        "grounded prompt",
    )
    assert [type(message) for message in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert messages[-1].content == "grounded prompt"


def test_parse_google_event():
    line = 'data: {"candidates": [{"content": {"parts": [{"text": "Hel"}, {"text": "lo"}]}}]}'
    assert parse_google_event(line) == "Hello"
    assert parse_google_event("data: not-json") == ""
    assert parse_google_event(": keep-alive") == ""
    assert parse_google_event('data: {"usageMetadata": {}}') == ""


@pytest.mark.asyncio
async def test_mock_backend_streams_text():
    settings = Settings(_env_file=None, llm_mode="mock")
    prompt = 'Based on the following search results, answer my latest prompt: "tokio".\n\nSearch Results:\n[web] Tokio docs'

    chunks = await drain(stream_completion("openai", "gpt-4o", "sys", [], prompt, settings))

    assert all(chunk.error is None for chunk in chunks)
    assert "".join(chunk.text for chunk in chunks) == "Summary for tokio:\n- Tokio docs"


@pytest.mark.asyncio
async def test_unsupported_backend_yields_error_chunk():
    chunks = await drain(stream_completion("altavista", "m", "sys", [], "prompt", live_settings()))

    assert len(chunks) == 1
    assert "Unsupported LLM provider" in chunks[0].error


@pytest.mark.asyncio
async def test_missing_credentials_yield_error_chunk():
    openai_chunks = await drain(stream_completion("openai", "gpt-4o", "sys", [], "prompt", live_settings()))
    google_chunks = await drain(stream_completion("google", "gemini-pro", "sys", [], "prompt", live_settings()))

    assert openai_chunks[0].error == "OpenAI API key not configured"
    assert google_chunks[0].error == "Google API key not configured"


@pytest.mark.asyncio
async def test_list_models_in_mock_mode():
    settings = Settings(_env_file=None, llm_mode="mock")
    assert await list_models("openai", settings) == [{"id": "mock", "name": "Mock"}]


@pytest.mark.asyncio
async def test_list_models_unconfigured_backend_is_empty():
    assert await list_models("openai", live_settings()) == []
    assert await list_models("altavista", live_settings()) == []


def test_model_list_parsers_filter():
    openai = {"data": [{"id": "gpt-4o"}, {"id": "whisper-1"}, {"id": "o1-mini"}]}
    assert [model["id"] for model in _openai_models(openai)] == ["gpt-4o", "o1-mini"]

    google = {
        "models": [
            {"name": "models/gemini-pro", "displayName": "Gemini Pro", "supportedGenerationMethods": ["generateContent"]},
            {"name": "models/embedding", "displayName": "Embed", "supportedGenerationMethods": ["embedContent"]},
        ]
    }
    assert _google_models(google) == [{"id": "models/gemini-pro", "name": "Gemini Pro"}]
