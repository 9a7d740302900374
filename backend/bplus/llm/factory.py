"""LLM factory for the summarization backends."""

from __future__ import annotations

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from bplus.config.settings import Settings
from bplus.llm.mock import MockChatModel

logger = structlog.get_logger(__name__)

OPENAI_API_BASE = "https://api.openai.com/v1"
OPENROUTER_API_BASE = "https://openrouter.ai/api/v1"


def create_chat_model(
    provider: str,
    model_name: str,
    settings: Settings,
    temperature: float = 0.4,
) -> BaseChatModel:
    """Create a streaming-capable chat model for an OpenAI-compatible or Anthropic backend."""
    if settings.llm_mode == "mock" or provider == "mock":
        logger.info("using_mock_llm")
        return MockChatModel()

    if provider in {"openai", "openrouter", "lmstudio", "local"}:
        if provider == "openai":
            base_url, api_key, headers = OPENAI_API_BASE, settings.openai_api_key, None
            if not api_key:
                raise ValueError("OpenAI API key not configured")
        elif provider == "openrouter":
            base_url, api_key = OPENROUTER_API_BASE, settings.openrouter_api_key
            if not api_key:
                raise ValueError("OpenRouter API key not configured")
            headers = {
                "HTTP-Referer": settings.openrouter_http_referer,
                "X-Title": settings.openrouter_x_title,
            }
        else:
            base_url, api_key, headers = settings.lmstudio_api_base, "not-needed", None

        llm_kwargs = {
            "model": model_name,
            "api_key": api_key,
            "base_url": base_url,
            "temperature": temperature,
            "timeout": settings.llm_timeout,
        }
        if headers:
            llm_kwargs["default_headers"] = headers

        logger.debug("creating_openai_compatible_model", provider=provider, model=model_name)
        return ChatOpenAI(**llm_kwargs)

    if provider in {"anthropic", "claude"}:
        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key not configured")

        logger.debug("creating_anthropic_model", model=model_name)
        return ChatAnthropic(
            model=model_name,
            api_key=settings.anthropic_api_key,
            temperature=temperature,
            timeout=settings.llm_timeout,
        )

    raise ValueError(f"Unsupported LLM provider: {provider}")
