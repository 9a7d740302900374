"""Search result and provider configuration models."""

import json
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

QUERY_PLACEHOLDER = "{q}"


class SearchResult(BaseModel):
    """Single search result produced by a provider adapter."""

    title: str = Field(..., description="Result title")
    url: str = Field(..., description="Result URL, identity key within one retrieval pass")
    content: str = Field(default="", description="Snippet or transcript text")
    engine: str = Field(..., description="Engine that produced the result")


class Timeframe(str, Enum):
    """Recency filter understood by the adapters."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def parse_timeframe(raw: str | None) -> Timeframe | None:
    """Map a raw request value onto a timeframe; unknown values mean no filter."""
    if not raw:
        return None
    try:
        return Timeframe(raw.strip().lower())
    except ValueError:
        return None


class NativeAdapter(str, Enum):
    """Built-in adapters selectable from a native provider configuration."""

    LOCAL_ARCHIVE = "local_archive"
    DUCKDUCKGO = "duckduckgo"
    SEARXNG = "searxng"
    WIKIPEDIA = "wikipedia"
    REDDIT = "reddit"
    STACKEXCHANGE = "stackexchange"
    MOJEEK = "mojeek"
    QWANT = "qwant"
    NATIVE = "native"


# Identifiers older configurations stored in ``api_url`` for native providers.
_LEGACY_NATIVE_IDS = {
    "local": NativeAdapter.LOCAL_ARCHIVE,
    "archive": NativeAdapter.LOCAL_ARCHIVE,
    "ddg": NativeAdapter.DUCKDUCKGO,
    "web": NativeAdapter.DUCKDUCKGO,
    "searx": NativeAdapter.SEARXNG,
    "wiki": NativeAdapter.WIKIPEDIA,
    "stackoverflow": NativeAdapter.STACKEXCHANGE,
}


class NativeProviderConfig(BaseModel):
    """Provider backed by one of the built-in adapters."""

    model_config = {"frozen": True}

    kind: Literal["native"] = "native"
    id: int
    name: str
    adapter: NativeAdapter
    enabled: bool = True


class GenericProviderConfig(BaseModel):
    """Provider described declaratively as a JSON search API."""

    model_config = {"frozen": True}

    kind: Literal["generic"] = "generic"
    id: int
    name: str
    url_template: str
    headers: dict[str, str] = Field(default_factory=dict)
    result_path: Optional[str] = None
    title_path: Optional[str] = None
    url_path: Optional[str] = None
    content_path: Optional[str] = None
    enabled: bool = True


ProviderConfig = Annotated[
    Union[NativeProviderConfig, GenericProviderConfig],
    Field(discriminator="kind"),
]


def default_provider_config() -> NativeProviderConfig:
    """Configuration used when no provider is configured or selected."""
    return NativeProviderConfig(id=0, name="Local Archive", adapter=NativeAdapter.LOCAL_ARCHIVE)


def resolve_native_adapter(identifier: str | None) -> NativeAdapter | None:
    """Resolve the symbolic identifier stored for a native provider."""
    if not identifier:
        return None
    key = identifier.strip().lower()
    try:
        return NativeAdapter(key)
    except ValueError:
        return _LEGACY_NATIVE_IDS.get(key)


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse the serialized header map of a generic provider.

    Accepts a JSON object or ``Key: Value`` lines. Anything unparseable yields
    an empty map.
    """
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        headers = {}
        for line in raw.splitlines():
            name, sep, value = line.partition(":")
            if sep and name.strip():
                headers[name.strip()] = value.strip()
        return headers
    if not isinstance(data, dict):
        return {}
    return {str(key): str(value) for key, value in data.items() if value is not None}


def provider_config_from_row(row: Any) -> NativeProviderConfig | GenericProviderConfig | None:
    """Resolve a stored provider row into its tagged configuration.

    The stored shape keeps one ``api_url`` column that is either a native
    adapter identifier or a URL template. Rows that cannot be resolved return
    None.
    """
    kind = (getattr(row, "kind", None) or "").strip().lower()
    api_url = getattr(row, "api_url", None) or ""
    enabled = bool(getattr(row, "enabled", True))

    if kind == "native":
        adapter = resolve_native_adapter(api_url)
        if adapter is None:
            logger.warning("Unknown native adapter", provider_id=row.id, identifier=api_url)
            return None
        return NativeProviderConfig(id=row.id, name=row.name, adapter=adapter, enabled=enabled)

    if kind == "generic":
        if QUERY_PLACEHOLDER not in api_url:
            logger.warning("Generic provider URL lacks {q} placeholder", provider_id=row.id, url=api_url)
            return None
        return GenericProviderConfig(
            id=row.id,
            name=row.name,
            url_template=api_url,
            headers=parse_headers(getattr(row, "api_headers", None)),
            result_path=getattr(row, "result_path", None),
            title_path=getattr(row, "title_path", None),
            url_path=getattr(row, "url_path", None),
            content_path=getattr(row, "content_path", None),
            enabled=enabled,
        )

    logger.warning("Unknown provider kind", provider_id=getattr(row, "id", None), kind=kind)
    return None
