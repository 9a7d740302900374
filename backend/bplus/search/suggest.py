"""Query autocomplete aggregated from several public suggestion endpoints."""

import asyncio
from collections import Counter
from typing import Any, Callable

import aiohttp
import structlog

logger = structlog.get_logger(__name__)

SUGGEST_TIMEOUT = 5.0


def _second_element_strings(data: Any) -> list[str]:
    # DuckDuckGo (type=list), Brave and Wikipedia opensearch answer [query, [suggestions...], ...]
    if isinstance(data, list) and len(data) > 1 and isinstance(data[1], list):
        return [item for item in data[1] if isinstance(item, str)]
    return []


def _qwant_strings(data: Any) -> list[str]:
    # {"data": {"items": [{"value": ...}, ...]}}
    payload = data.get("data") if isinstance(data, dict) else None
    items = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []
    return [item["value"] for item in items if isinstance(item, dict) and isinstance(item.get("value"), str)]


SUGGEST_SOURCES: list[tuple[str, str, dict[str, str], Callable[[Any], list[str]]]] = [
    ("ddg", "https://duckduckgo.com/ac/", {"type": "list"}, _second_element_strings),
    ("brave", "https://search.brave.com/api/suggest", {}, _second_element_strings),
    ("qwant", "https://api.qwant.com/v3/suggest", {"locale": "en_US", "version": "2"}, _qwant_strings),
    (
        "wiki",
        "https://en.wikipedia.org/w/api.php",
        {"action": "opensearch", "format": "json", "formatversion": "2", "namespace": "0", "limit": "10"},
        _second_element_strings,
    ),
]


def rank_suggestions(per_source: list[list[str]], limit: int = 10) -> list[str]:
    """Order suggestions by how many sources proposed them; ties keep first-seen order."""
    counts: Counter[str] = Counter()
    for suggestions in per_source:
        counts.update(suggestions)
    return [suggestion for suggestion, _ in counts.most_common(limit)]


async def _fetch_source(
    session: aiohttp.ClientSession,
    name: str,
    url: str,
    params: dict[str, str],
    parse: Callable[[Any], list[str]],
    query: str,
) -> list[str]:
    query_param = "search" if name == "wiki" else "q"
    try:
        async with session.get(url, params={**params, query_param: query}) as response:
            response.raise_for_status()
            return parse(await response.json(content_type=None))
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError, AttributeError, KeyError) as e:
        logger.debug("Suggestion source failed", source=name, error=str(e))
        return []


async def suggest(query: str, user_agent: str, limit: int = 10) -> list[str]:
    """Return up to ``limit`` completions for ``query``; blank queries yield none."""
    if not query.strip():
        return []

    async with aiohttp.ClientSession(
        headers={"User-Agent": user_agent},
        timeout=aiohttp.ClientTimeout(total=SUGGEST_TIMEOUT),
    ) as session:
        per_source = await asyncio.gather(
            *(_fetch_source(session, name, url, params, parse, query) for name, url, params, parse in SUGGEST_SOURCES)
        )

    return rank_suggestions(per_source, limit)
