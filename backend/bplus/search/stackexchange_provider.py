"""StackExchange (Stack Overflow) search provider."""

from typing import Any

import structlog

from bplus.search.base import HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

STACKEXCHANGE_SEARCH_URL = "https://api.stackexchange.com/2.3/search/advanced"


def parse_results(data: Any) -> list[SearchResult]:
    """Shape an ``/search/advanced`` response; the vote score becomes the content."""
    if not isinstance(data, dict):
        return []
    results = []
    for item in data.get("items") or []:
        link = item.get("link") or ""
        if not link:
            continue
        results.append(
            SearchResult(
                title=item.get("title") or "",
                url=link,
                content=f"Score: {item.get('score', 0)}",
                engine="stackexchange",
            )
        )
    return results


class StackExchangeSearchProvider(HttpSearchProvider):
    """Q&A search restricted to answered, accepted Stack Overflow questions."""

    engine = "stackexchange"

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        params = {
            "order": "desc",
            "sort": "relevance",
            "accepted": "True",
            "answers": "1",
            "q": query,
            "site": "stackoverflow",
            "filter": "default",
        }
        data = await self._get_json(STACKEXCHANGE_SEARCH_URL, params=params)
        results = parse_results(data)
        logger.info("StackExchange search completed", query=query, results_count=len(results))
        return results
