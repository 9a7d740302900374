"""Concurrent retrieval across configured providers."""

import asyncio
from typing import Callable, Sequence

import structlog

from bplus.config.settings import Settings
from bplus.search.base import SearchProvider
from bplus.search.factory import create_search_provider
from bplus.search.models import (
    GenericProviderConfig,
    NativeProviderConfig,
    SearchResult,
    Timeframe,
    default_provider_config,
)
from bplus.search.ranking import deduplicate_by_url, merge_results, rank_by_title_match

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[NativeProviderConfig | GenericProviderConfig, Settings], SearchProvider]


class RetrievalDispatcher:
    """Runs every configured provider for a query and merges the results."""

    def __init__(self, settings: Settings, provider_factory: ProviderFactory = create_search_provider):
        self.settings = settings
        self.provider_factory = provider_factory

    async def _run_provider(
        self,
        config: NativeProviderConfig | GenericProviderConfig,
        query: str,
        timeframe: Timeframe | None,
    ) -> list[SearchResult]:
        # Providers already fail soft; this also covers construction errors.
        try:
            provider = self.provider_factory(config, self.settings)
            return await provider.search(query, timeframe)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Provider crashed", provider=config.name, provider_id=config.id, error=str(e))
            return []

    async def retrieve(
        self,
        providers: Sequence[NativeProviderConfig | GenericProviderConfig],
        query: str,
        timeframe: Timeframe | None = None,
    ) -> list[SearchResult]:
        """
        Query all providers concurrently, then deduplicate and rank.

        Args:
            providers: Provider configurations in iteration order
            query: Search query
            timeframe: Optional recency filter

        Returns:
            Deduplicated results, title matches first
        """
        configs = list(providers) or [default_provider_config()]

        per_provider = await asyncio.gather(*(self._run_provider(config, query, timeframe) for config in configs))

        merged = merge_results(per_provider)
        unique = deduplicate_by_url(merged)
        ranked = rank_by_title_match(unique, query)

        logger.info(
            "Retrieval completed",
            query=query,
            providers=[config.name for config in configs],
            per_provider_counts=[len(results) for results in per_provider],
            merged_count=len(merged),
            unique_count=len(unique),
        )
        return ranked
