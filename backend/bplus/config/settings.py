"""Application settings with environment variable support."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

DEFAULT_SYSTEM_PROMPT = (
    "You are a research assistant. Answer using the supplied search results, "
    "cite sources by title or URL when useful, and say so when the results do not "
    "contain the answer."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3001, description="API port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    # Storage Settings
    storage_dir: str = Field(default=".", description="Directory holding saved archive files")
    archive_extension: str = Field(default=".db", description="File extension of saved archives")
    sqlite_db_path: str = Field(default="./bplus_active.sqlite", description="Active conversation store")

    # Search Settings
    searxng_url: str = Field(default="", description="SearXNG instance URL (empty disables the adapter)")
    auth_username: Optional[str] = Field(default=None, description="Basic auth user for SearXNG")
    auth_password: Optional[str] = Field(default=None, description="Basic auth password for SearXNG")
    provider_timeout: float = Field(default=12.0, description="Per-provider search timeout in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent for outbound search requests")
    max_results: int = Field(default=15, description="Max merged results handed to the summarizer")
    suggest_limit: int = Field(default=10, description="Max autocomplete suggestions")

    # Local Archive Search
    archive_note_limit: int = Field(default=3, description="Max note hits per archive file")
    archive_raw_hit_limit: int = Field(default=100, description="Max raw message hits before diversity filter")
    archive_context_radius: int = Field(default=3, description="Sibling messages on each side of a hit")

    # LLM Settings
    llm_mode: Literal["live", "mock"] = Field(default="live", description="LLM mode: live or mock")
    llm_timeout: float = Field(default=120.0, description="LLM request timeout in seconds")
    default_system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="System prompt fallback")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    google_api_key: Optional[str] = Field(default=None, description="Google Generative Language API key")
    lmstudio_api_base: str = Field(default="http://localhost:1234/v1", description="LM Studio base URL")
    openrouter_http_referer: str = Field(default="http://localhost:3001", description="HTTP-Referer for OpenRouter")
    openrouter_x_title: str = Field(default="Bplus Search", description="X-Title for OpenRouter")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
