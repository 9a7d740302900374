"""Reddit search provider."""

from typing import Any

import structlog

from bplus.search.base import HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"
REDDIT_BASE_URL = "https://www.reddit.com"
MAX_BODY_CHARS = 200

_TIMEFRAME_WINDOWS = {
    Timeframe.DAY: "day",
    Timeframe.WEEK: "week",
    Timeframe.MONTH: "month",
}


def parse_results(data: Any) -> list[SearchResult]:
    """Shape a Reddit listing into results, truncating post bodies."""
    if not isinstance(data, dict):
        return []
    children = (data.get("data") or {}).get("children") or []
    results = []
    for child in children:
        post = child.get("data") or {}
        permalink = post.get("permalink") or ""
        if not permalink:
            continue
        results.append(
            SearchResult(
                title=post.get("title") or "",
                url=REDDIT_BASE_URL + permalink,
                content=(post.get("selftext") or "")[:MAX_BODY_CHARS],
                engine="reddit",
            )
        )
    return results


class RedditSearchProvider(HttpSearchProvider):
    """Forum search over Reddit's public JSON listing."""

    engine = "reddit"

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        params = {
            "q": query,
            "sort": "relevance",
            "t": _TIMEFRAME_WINDOWS.get(timeframe, "all"),
            "limit": "10",
        }
        data = await self._get_json(REDDIT_SEARCH_URL, params=params)
        results = parse_results(data)
        logger.info("Reddit search completed", query=query, results_count=len(results))
        return results
