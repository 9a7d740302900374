"""Test doubles for providers, the conversation store and the LLM backend."""

from tests.mocks.mock_llm import ScriptedCompletion
from tests.mocks.mock_search import (
    FailingSearchProvider,
    SlowSearchProvider,
    StaticSearchProvider,
    make_result,
    provider_factory_for,
)
from tests.mocks.mock_store import InMemoryStore

__all__ = [
    "ScriptedCompletion",
    "StaticSearchProvider",
    "FailingSearchProvider",
    "SlowSearchProvider",
    "make_result",
    "provider_factory_for",
    "InMemoryStore",
]
