"""Mojeek HTML search provider."""

import structlog
from bs4 import BeautifulSoup

from bplus.search.base import HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

MOJEEK_SEARCH_URL = "https://www.mojeek.com/search"


def parse_results(html: str) -> list[SearchResult]:
    """Parse a Mojeek results page."""
    soup = BeautifulSoup(html, "html.parser")
    results = []
    for element in soup.select("div.results .result, ul.results-standard li"):
        anchor = element.select_one("a")
        if anchor is None or not anchor.get("href"):
            continue
        snippet = element.select_one("p.s")
        results.append(
            SearchResult(
                title=anchor.get_text().strip(),
                url=anchor["href"],
                content=snippet.get_text().strip() if snippet else "",
                engine="mojeek",
            )
        )
    return results


class MojeekSearchProvider(HttpSearchProvider):
    """Alternate general web engine; ignores the timeframe."""

    engine = "mojeek"

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        html = await self._get_text(MOJEEK_SEARCH_URL, params={"q": query})
        results = parse_results(html)
        logger.info("Mojeek search completed", query=query, results_count=len(results))
        return results
