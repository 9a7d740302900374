"""Bundle provider that queries every public native engine at once."""

import asyncio

import structlog

from bplus.search.base import DEFAULT_TIMEOUT, SearchProvider
from bplus.search.models import SearchResult, Timeframe
from bplus.search.ranking import deduplicate_by_url, merge_results, rank_by_title_match

logger = structlog.get_logger(__name__)


class NativeBundleSearchProvider(SearchProvider):
    """Fans out to a fixed set of engines and merges their results."""

    engine = "native"

    def __init__(self, engines: list[SearchProvider], timeout: float = DEFAULT_TIMEOUT):
        # Children enforce their own timeouts; leave headroom for the join.
        super().__init__(timeout=timeout + 1.0)
        self.engines = engines

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        per_engine = await asyncio.gather(*(engine.search(query, timeframe) for engine in self.engines))
        unique = deduplicate_by_url(merge_results(per_engine))
        logger.info(
            "Native bundle search completed",
            query=query,
            engines=[engine.engine for engine in self.engines],
            results_count=len(unique),
        )
        return rank_by_title_match(unique, query)
