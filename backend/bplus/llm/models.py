"""Model listing per LLM backend."""

import asyncio
from typing import Any, Callable

import aiohttp
import structlog

from bplus.config.settings import Settings
from bplus.llm.factory import OPENAI_API_BASE, OPENROUTER_API_BASE
from bplus.llm.streaming import GOOGLE_API_BASE

logger = structlog.get_logger(__name__)

LIST_TIMEOUT = 15.0


def _openai_models(data: Any) -> list[dict[str, str]]:
    models = []
    for item in (data or {}).get("data") or []:
        model_id = item.get("id") or ""
        if model_id.startswith(("gpt", "o1")):
            models.append({"id": model_id, "name": model_id})
    return models


def _openrouter_models(data: Any) -> list[dict[str, str]]:
    return [
        {"id": item.get("id") or "", "name": item.get("name") or item.get("id") or ""}
        for item in (data or {}).get("data") or []
    ]


def _lmstudio_models(data: Any) -> list[dict[str, str]]:
    return [{"id": item.get("id") or "", "name": item.get("id") or ""} for item in (data or {}).get("data") or []]


def _google_models(data: Any) -> list[dict[str, str]]:
    return [
        {"id": item.get("name") or "", "name": item.get("displayName") or ""}
        for item in (data or {}).get("models") or []
        if "generateContent" in (item.get("supportedGenerationMethods") or [])
    ]


def _endpoint(provider: str, settings: Settings) -> tuple[str, dict[str, str], Callable[[Any], list]] | None:
    if provider == "openai" and settings.openai_api_key:
        return f"{OPENAI_API_BASE}/models", {"Authorization": f"Bearer {settings.openai_api_key}"}, _openai_models
    if provider == "openrouter" and settings.openrouter_api_key:
        return (
            f"{OPENROUTER_API_BASE}/models",
            {"Authorization": f"Bearer {settings.openrouter_api_key}"},
            _openrouter_models,
        )
    if provider in {"lmstudio", "local"} and settings.lmstudio_api_base:
        return f"{settings.lmstudio_api_base.rstrip('/')}/models", {}, _lmstudio_models
    if provider == "google" and settings.google_api_key:
        return f"{GOOGLE_API_BASE}/models?key={settings.google_api_key}", {}, _google_models
    return None


async def list_models(provider: str, settings: Settings) -> list[dict[str, str]]:
    """List models for a backend; unknown or unconfigured backends yield []."""
    if provider == "mock" or settings.llm_mode == "mock":
        return [{"id": "mock", "name": "Mock"}]

    endpoint = _endpoint(provider, settings)
    if endpoint is None:
        return []
    url, headers, parse = endpoint

    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=LIST_TIMEOUT)) as session:
            async with session.get(url, headers=headers) as response:
                response.raise_for_status()
                return parse(await response.json(content_type=None))
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.warning("Model listing failed", provider=provider, error=str(e))
        return []
