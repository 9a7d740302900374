"""Declarative JSON API search provider."""

from typing import Any
from urllib.parse import quote

import structlog

from bplus.search.base import DEFAULT_TIMEOUT, HttpSearchProvider
from bplus.search.models import QUERY_PLACEHOLDER, GenericProviderConfig, SearchResult, Timeframe
from bplus.search.path_extractor import extract, resolve

logger = structlog.get_logger(__name__)

UNTITLED = "No Title"


def build_request_url(url_template: str, query: str) -> str:
    """Substitute the escaped query into the ``{q}`` placeholder."""
    return url_template.replace(QUERY_PLACEHOLDER, quote(query, safe=""))


def extract_results(config: GenericProviderConfig, payload: Any) -> list[SearchResult]:
    """Turn a decoded API response into results using the configured paths.

    Items whose URL path yields nothing are dropped.
    """
    items = resolve(payload, config.result_path)
    if not isinstance(items, list):
        logger.debug("Generic provider result path is not a list", provider=config.name, path=config.result_path)
        return []

    results = []
    for item in items:
        url = extract(item, config.url_path)
        if not url:
            continue
        results.append(
            SearchResult(
                title=extract(item, config.title_path) or UNTITLED,
                url=url,
                content=extract(item, config.content_path),
                engine=config.name,
            )
        )
    return results


class GenericSearchProvider(HttpSearchProvider):
    """Runs a user-declared JSON search API."""

    def __init__(self, config: GenericProviderConfig, user_agent: str, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(user_agent=user_agent, timeout=timeout)
        self.config = config
        self.engine = config.name

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        url = build_request_url(self.config.url_template, query)
        payload = await self._get_json(url, headers=self.config.headers)
        results = extract_results(self.config, payload)
        logger.info("Generic provider search completed", provider=self.config.name, query=query, results_count=len(results))
        return results
