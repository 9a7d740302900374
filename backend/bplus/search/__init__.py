"""Search providers, retrieval dispatch and ranking."""

from bplus.search.dispatcher import RetrievalDispatcher
from bplus.search.factory import create_search_provider
from bplus.search.models import (
    GenericProviderConfig,
    NativeAdapter,
    NativeProviderConfig,
    SearchResult,
    Timeframe,
)

__all__ = [
    "RetrievalDispatcher",
    "create_search_provider",
    "SearchResult",
    "Timeframe",
    "NativeAdapter",
    "NativeProviderConfig",
    "GenericProviderConfig",
]
