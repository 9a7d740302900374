"""Search provider factory."""

import structlog

from bplus.config.settings import Settings
from bplus.search.archive_provider import LocalArchiveSearchProvider
from bplus.search.base import SearchProvider
from bplus.search.duckduckgo_provider import DuckDuckGoSearchProvider
from bplus.search.generic_provider import GenericSearchProvider
from bplus.search.models import GenericProviderConfig, NativeAdapter, NativeProviderConfig
from bplus.search.mojeek_provider import MojeekSearchProvider
from bplus.search.native_provider import NativeBundleSearchProvider
from bplus.search.qwant_provider import QwantSearchProvider
from bplus.search.reddit_provider import RedditSearchProvider
from bplus.search.searxng_provider import SearXNGSearchProvider
from bplus.search.stackexchange_provider import StackExchangeSearchProvider
from bplus.search.wikipedia_provider import WikipediaSearchProvider

logger = structlog.get_logger(__name__)

# Engines queried by the "native" bundle.
BUNDLED_ENGINES = (
    NativeAdapter.DUCKDUCKGO,
    NativeAdapter.MOJEEK,
    NativeAdapter.QWANT,
    NativeAdapter.WIKIPEDIA,
    NativeAdapter.REDDIT,
    NativeAdapter.STACKEXCHANGE,
)


def create_native_provider(adapter: NativeAdapter, settings: Settings) -> SearchProvider:
    """
    Create the built-in adapter selected by ``adapter``.

    Args:
        adapter: Native adapter identifier
        settings: Application settings

    Returns:
        Configured SearchProvider instance
    """
    timeout = settings.provider_timeout
    user_agent = settings.user_agent

    if adapter is NativeAdapter.LOCAL_ARCHIVE:
        return LocalArchiveSearchProvider(
            storage_dir=settings.storage_dir,
            extension=settings.archive_extension,
            note_limit=settings.archive_note_limit,
            raw_hit_limit=settings.archive_raw_hit_limit,
            context_radius=settings.archive_context_radius,
            timeout=timeout,
        )
    if adapter is NativeAdapter.DUCKDUCKGO:
        return DuckDuckGoSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.SEARXNG:
        return SearXNGSearchProvider(
            instance_url=settings.searxng_url,
            user_agent=user_agent,
            timeout=timeout,
            username=settings.auth_username,
            password=settings.auth_password,
        )
    if adapter is NativeAdapter.WIKIPEDIA:
        return WikipediaSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.REDDIT:
        return RedditSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.STACKEXCHANGE:
        return StackExchangeSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.MOJEEK:
        return MojeekSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.QWANT:
        return QwantSearchProvider(user_agent=user_agent, timeout=timeout)
    if adapter is NativeAdapter.NATIVE:
        engines = [create_native_provider(engine, settings) for engine in BUNDLED_ENGINES]
        return NativeBundleSearchProvider(engines=engines, timeout=timeout)

    raise ValueError(f"Unknown native adapter: {adapter}")


def create_search_provider(config: NativeProviderConfig | GenericProviderConfig, settings: Settings) -> SearchProvider:
    """Create the adapter for a resolved provider configuration."""
    if isinstance(config, GenericProviderConfig):
        return GenericSearchProvider(config=config, user_agent=settings.user_agent, timeout=settings.provider_timeout)
    return create_native_provider(config.adapter, settings)
