"""Wikipedia search API provider."""

from typing import Any
from urllib.parse import quote

import structlog

from bplus.search.base import HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_ARTICLE_URL = "https://en.wikipedia.org/wiki/"


def article_url(title: str) -> str:
    """Build the canonical article URL for a page title."""
    return WIKIPEDIA_ARTICLE_URL + quote(title.replace(" ", "_"), safe="_")


def strip_highlights(snippet: str) -> str:
    """Remove the search-match highlight markup from an API snippet."""
    return snippet.replace('<span class="searchmatch">', "").replace("</span>", "")


def parse_results(data: Any) -> list[SearchResult]:
    """Shape a ``list=search`` API response into results."""
    if not isinstance(data, dict):
        return []
    items = (data.get("query") or {}).get("search") or []
    results = []
    for item in items:
        title = item.get("title") or ""
        if not title:
            continue
        results.append(
            SearchResult(
                title=title,
                url=article_url(title),
                content=strip_highlights(item.get("snippet") or ""),
                engine="wikipedia",
            )
        )
    return results


class WikipediaSearchProvider(HttpSearchProvider):
    """Encyclopedia search through the MediaWiki API."""

    engine = "wikipedia"

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        params = {
            "action": "query",
            "list": "search",
            "utf8": "1",
            "format": "json",
            "srsearch": query,
            "srlimit": "10",
        }
        data = await self._get_json(WIKIPEDIA_API_URL, params=params)
        results = parse_results(data)
        logger.info("Wikipedia search completed", query=query, results_count=len(results))
        return results
