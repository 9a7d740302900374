"""Grounding prompt construction."""

from bplus.search.models import SearchResult

NO_RESULTS_NOTICE = "No search results found to summarize."

SNIPPET_SEPARATOR = "\n\n---\n\n"


def format_snippets(results: list[SearchResult]) -> str:
    """Render results as ``[engine] title / URL / Snippet`` blocks."""
    return SNIPPET_SEPARATOR.join(
        f"[{result.engine}] {result.title}\nURL: {result.url}\nSnippet: {result.content}" for result in results
    )


def build_grounding_prompt(query: str, results: list[SearchResult]) -> str:
    """Compose the single prompt that anchors the answer in the search results."""
    return (
        "Based on the following search results, write a clear, concise summary answering "
        f'my latest prompt: "{query}".\n\n'
        f"Search Results:\n{format_snippets(results)}"
    )
