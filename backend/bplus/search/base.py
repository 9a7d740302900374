"""Base search provider interface."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
import structlog

from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 12.0


class SearchProvider(ABC):
    """Abstract base class for search providers.

    Subclasses implement ``_search``. The public ``search`` bounds it by the
    provider timeout and turns every failure into an empty result list, so a
    single broken provider never aborts a retrieval pass.
    """

    engine: str = "unknown"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    async def search(self, query: str, timeframe: Timeframe | None = None) -> list[SearchResult]:
        """
        Search for a query without ever raising.

        Args:
            query: Search query string
            timeframe: Optional recency filter

        Returns:
            List of results, empty on timeout or error
        """
        try:
            results = await asyncio.wait_for(self._search(query, timeframe), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Search provider timed out", engine=self.engine, query=query, timeout=self.timeout)
            return []
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Search provider failed", engine=self.engine, query=query, error=str(e))
            return []

        logger.debug("Search provider finished", engine=self.engine, query=query, results_count=len(results))
        return results

    @abstractmethod
    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        """Run the provider-specific search; may raise."""


class HttpSearchProvider(SearchProvider):
    """Search provider that talks to a remote HTTP endpoint."""

    def __init__(self, user_agent: str, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(timeout=timeout)
        self.user_agent = user_agent

    def _session(self, headers: dict[str, str] | None = None, auth: aiohttp.BasicAuth | None = None):
        merged = {"User-Agent": self.user_agent}
        if headers:
            merged.update(headers)
        return aiohttp.ClientSession(
            headers=merged,
            auth=auth,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )

    async def _get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        async with self._session() as session:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.text()

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        auth: aiohttp.BasicAuth | None = None,
    ) -> Any:
        async with self._session(headers=headers, auth=auth) as session:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                # Some APIs answer JSON with a text/javascript or text/html type.
                return await response.json(content_type=None)
