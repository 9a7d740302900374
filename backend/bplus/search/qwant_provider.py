"""Qwant web search provider."""

import structlog
from bs4 import BeautifulSoup

from bplus.search.base import HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

QWANT_SEARCH_URL = "https://www.qwant.com/"


def parse_results(html: str) -> list[SearchResult]:
    """Parse the result cards of a Qwant page.

    Qwant renders most of its page client-side; only cards present in the
    served HTML are picked up.
    """
    soup = BeautifulSoup(html, "html.parser")
    results = []
    for card in soup.select('[data-testid="result-card"]'):
        anchor = card.select_one("a[href]")
        if anchor is None or not anchor["href"]:
            continue
        snippet = card.select_one("p")
        results.append(
            SearchResult(
                title=anchor.get_text().strip(),
                url=anchor["href"],
                content=snippet.get_text().strip() if snippet else "",
                engine="qwant",
            )
        )
    return results


class QwantSearchProvider(HttpSearchProvider):
    """Secondary general web engine; ignores the timeframe."""

    engine = "qwant"

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        html = await self._get_text(QWANT_SEARCH_URL, params={"q": query, "t": "web"})
        results = parse_results(html)
        logger.info("Qwant search completed", query=query, results_count=len(results))
        return results
