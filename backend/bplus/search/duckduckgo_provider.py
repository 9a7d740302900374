"""DuckDuckGo HTML search provider (primary web engine)."""

from urllib.parse import parse_qs, urlparse

import structlog
from bs4 import BeautifulSoup

from bplus.search.base import DEFAULT_TIMEOUT, HttpSearchProvider
from bplus.search.models import SearchResult, Timeframe

logger = structlog.get_logger(__name__)

DUCKDUCKGO_HTML_URL = "https://duckduckgo.com/html/"

_TIMEFRAME_FILTERS = {
    Timeframe.DAY: "d",
    Timeframe.WEEK: "w",
    Timeframe.MONTH: "m",
}


def timeframe_filter(timeframe: Timeframe | None) -> str | None:
    """Return DuckDuckGo's ``df`` value for a timeframe, if any."""
    if timeframe is None:
        return None
    return _TIMEFRAME_FILTERS.get(timeframe)


def _unwrap_redirect(href: str) -> str:
    # Result links go through /l/?uddg=<target> on the HTML endpoint.
    parsed = urlparse(href)
    if parsed.path.startswith("/l/"):
        target = parse_qs(parsed.query).get("uddg")
        if target:
            return target[0]
    return href


def parse_results(html: str) -> list[SearchResult]:
    """Parse a DuckDuckGo HTML results page."""
    soup = BeautifulSoup(html, "html.parser")
    results = []
    for element in soup.select(".result"):
        anchor = element.select_one("a.result__a")
        if anchor is None:
            continue
        url = _unwrap_redirect(anchor.get("href") or "")
        if not url:
            continue
        snippet = element.select_one(".result__snippet")
        results.append(
            SearchResult(
                title=anchor.get_text().strip(),
                url=url,
                content=snippet.get_text().strip() if snippet else "",
                engine="duckduckgo",
            )
        )
    return results


class DuckDuckGoSearchProvider(HttpSearchProvider):
    """Scrapes DuckDuckGo's HTML endpoint."""

    engine = "duckduckgo"

    def __init__(self, user_agent: str, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(user_agent=user_agent, timeout=timeout)

    async def _search(self, query: str, timeframe: Timeframe | None) -> list[SearchResult]:
        params = {"q": query, "kp": "1"}
        df = timeframe_filter(timeframe)
        if df:
            params["df"] = df
        html = await self._get_text(DUCKDUCKGO_HTML_URL, params=params)
        results = parse_results(html)
        logger.info("DuckDuckGo search completed", query=query, results_count=len(results))
        return results
