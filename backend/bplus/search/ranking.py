"""Merging, deduplication and ranking of provider results."""

from typing import Iterable

from bplus.search.models import SearchResult


def merge_results(result_lists: Iterable[list[SearchResult]]) -> list[SearchResult]:
    """Concatenate per-provider lists in provider order."""
    merged: list[SearchResult] = []
    for results in result_lists:
        merged.extend(results)
    return merged


def deduplicate_by_url(results: Iterable[SearchResult]) -> list[SearchResult]:
    """Drop results whose exact URL was already seen; the first one wins."""
    seen: set[str] = set()
    unique = []
    for result in results:
        if result.url in seen:
            continue
        seen.add(result.url)
        unique.append(result)
    return unique


def rank_by_title_match(results: list[SearchResult], query: str) -> list[SearchResult]:
    """Stable partition: titles containing the query (case-insensitive) first."""
    needle = query.lower()
    matching = [result for result in results if needle in result.title.lower()]
    rest = [result for result in results if needle not in result.title.lower()]
    return matching + rest
