"""Tests for the declarative JSON provider and provider configuration."""

from types import SimpleNamespace

import pytest

from bplus.search.generic_provider import GenericSearchProvider, build_request_url, extract_results
from bplus.search.models import (
    GenericProviderConfig,
    NativeAdapter,
    NativeProviderConfig,
    parse_headers,
    provider_config_from_row,
    resolve_native_adapter,
)


def make_config(**overrides) -> GenericProviderConfig:
    fields = {
        "id": 3,
        "name": "Acme API",
        "url_template": "https://api.acme.example/search?query={q}",
        "result_path": "data.hits",
        "title_path": "name",
        "url_path": "link",
        "content_path": "summary",
    }
    fields.update(overrides)
    return GenericProviderConfig(**fields)


def test_build_request_url_percent_encodes_query():
    url = build_request_url("https://api.example/s?q={q}&n=5", "rust & c++/ownership")
    assert url == "https://api.example/s?q=rust%20%26%20c%2B%2B%2Fownership&n=5"


def test_extract_results_maps_paths():
    payload = {
        "data": {
            "hits": [
                {"name": "Borrowing", "link": "https://r.example/borrow", "summary": "References"},
                {"name": "Lifetimes", "link": "https://r.example/life", "summary": 42},
            ]
        }
    }
    results = extract_results(make_config(), payload)

    assert [result.title for result in results] == ["Borrowing", "Lifetimes"]
    assert results[1].content == "42"
    assert all(result.engine == "Acme API" for result in results)


def test_extract_results_defaults_missing_title():
    payload = {"data": {"hits": [{"link": "https://r.example/x"}]}}
    results = extract_results(make_config(), payload)
    assert results[0].title == "No Title"
    assert results[0].content == ""


def test_extract_results_drops_items_without_url():
    payload = {"data": {"hits": [{"name": "No link"}, {"name": "Empty", "link": ""}, {"link": "https://ok.example"}]}}
    results = extract_results(make_config(), payload)
    assert [result.url for result in results] == ["https://ok.example"]


def test_extract_results_requires_list_at_result_path():
    assert extract_results(make_config(), {"data": {"hits": {"name": "x"}}}) == []
    assert extract_results(make_config(), {"other": []}) == []


def test_empty_result_path_uses_top_level_array():
    config = make_config(result_path=None)
    results = extract_results(config, [{"name": "Top", "link": "https://t.example"}])
    assert results[0].title == "Top"


@pytest.mark.asyncio
async def test_generic_provider_fails_soft_on_transport_error(monkeypatch):
    provider = GenericSearchProvider(config=make_config(), user_agent="test-agent", timeout=1.0)

    async def broken_get_json(*args, **kwargs):
        raise ValueError("not json")

    monkeypatch.setattr(provider, "_get_json", broken_get_json)
    assert await provider.search("rust") == []


@pytest.mark.asyncio
async def test_generic_provider_substitutes_query(monkeypatch):
    provider = GenericSearchProvider(
        config=make_config(headers={"X-Api-Key": "secret"}), user_agent="test-agent", timeout=1.0
    )
    seen = {}

    async def fake_get_json(url, params=None, headers=None, auth=None):
        seen["url"] = url
        seen["headers"] = headers
        return {"data": {"hits": [{"name": "Hit", "link": "https://hit.example"}]}}

    monkeypatch.setattr(provider, "_get_json", fake_get_json)
    results = await provider.search("rust ownership")

    assert seen["url"] == "https://api.acme.example/search?query=rust%20ownership"
    assert seen["headers"] == {"X-Api-Key": "secret"}
    assert results[0].engine == "Acme API"


def test_parse_headers_accepts_json_and_lines():
    assert parse_headers('{"Authorization": "Bearer t", "X-N": 2}') == {"Authorization": "Bearer t", "X-N": "2"}
    assert parse_headers("Authorization: Bearer t\nX-Trace: on") == {"Authorization": "Bearer t", "X-Trace": "on"}
    assert parse_headers("") == {}
    assert parse_headers("[1, 2]") == {}


def test_resolve_native_adapter_accepts_legacy_ids():
    assert resolve_native_adapter("duckduckgo") is NativeAdapter.DUCKDUCKGO
    assert resolve_native_adapter(" WIKI ") is NativeAdapter.WIKIPEDIA
    assert resolve_native_adapter("local") is NativeAdapter.LOCAL_ARCHIVE
    assert resolve_native_adapter("altavista") is None


def row(**fields):
    defaults = {
        "id": 1,
        "name": "Row",
        "kind": "native",
        "api_url": "duckduckgo",
        "api_headers": None,
        "result_path": None,
        "title_path": None,
        "url_path": None,
        "content_path": None,
        "enabled": True,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_provider_config_from_native_row():
    config = provider_config_from_row(row(api_url="reddit"))
    assert isinstance(config, NativeProviderConfig)
    assert config.adapter is NativeAdapter.REDDIT


def test_provider_config_from_generic_row():
    config = provider_config_from_row(
        row(kind="generic", api_url="https://x.example/?q={q}", api_headers='{"K": "V"}', url_path="u")
    )
    assert isinstance(config, GenericProviderConfig)
    assert config.headers == {"K": "V"}
    assert config.url_path == "u"


def test_provider_config_rejects_unresolvable_rows():
    assert provider_config_from_row(row(api_url="altavista")) is None
    assert provider_config_from_row(row(kind="generic", api_url="https://x.example/?q=fixed")) is None
    assert provider_config_from_row(row(kind="ftp")) is None
