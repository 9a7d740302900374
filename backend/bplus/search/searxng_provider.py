"""SearXNG search provider implementation."""

from typing import Any

import aiohttp
import structlog

from bplus.search.base import DEFAULT_TIMEOUT, HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)


def parse_results(data: Any) -> list[SearchResult]:
    """Shape a SearXNG JSON response into results."""
    if not isinstance(data, dict):
        return []
    results = []
    for idx, item in enumerate(data.get("results") or []):
        if not isinstance(item, dict) or not item.get("url"):
            logger.debug("Skipping result without URL", index=idx)
            continue
        results.append(
            SearchResult(
                title=item.get("title") or "",
                url=item["url"],
                content=item.get("content") or "",
                engine="searxng",
            )
        )
    return results


class SearXNGSearchProvider(HttpSearchProvider):
    """SearXNG metasearch engine provider."""

    engine = "searxng"

    def __init__(
        self,
        instance_url: str,
        user_agent: str,
        timeout: float = DEFAULT_TIMEOUT,
        username: str | None = None,
        password: str | None = None,
    ):
        """
        Initialize SearXNG provider.

        Args:
            instance_url: SearXNG instance URL (e.g., http://localhost:8080); empty disables it
            user_agent: User agent sent with requests
            timeout: Request timeout in seconds
            username: Optional basic auth user
            password: Optional basic auth password
        """
        super().__init__(user_agent=user_agent, timeout=timeout)
        self.instance_url = (instance_url or "").rstrip("/")
        self.auth = aiohttp.BasicAuth(username, password) if username and password else None

    def _build_params(self, query: str, timeframe: Timeframe | None) -> dict[str, str]:
        params = {"q": query, "format": "json"}
        if timeframe is not None:
            params["time_range"] = timeframe.value
        return params

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        if not self.instance_url:
            logger.info("SearXNG instance URL not configured; skipping", query=query)
            return []

        url = f"{self.instance_url}/search"
        params = self._build_params(query, timeframe)
        logger.info("SearXNG search request", url=url, query=query, time_range=params.get("time_range"))

        data = await self._get_json(url, params=params, auth=self.auth)
        results = parse_results(data)

        logger.info(
            "SearXNG search completed",
            query=query,
            results_count=len(results),
            number_of_results_from_api=data.get("number_of_results", 0) if isinstance(data, dict) else 0,
        )
        return results
