"""Provider configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from bplus.search.models import QUERY_PLACEHOLDER, resolve_native_adapter


class ProviderCreateRequest(BaseModel):
    """Request model for registering a search provider.

    For native providers ``api_url`` names the built-in adapter; for generic
    providers it is a URL template containing ``{q}``.
    """

    name: str = Field(..., min_length=1)
    kind: Literal["native", "generic"] = "generic"
    api_url: str = Field(..., min_length=1)
    api_headers: str | None = Field(default=None, description="JSON object or 'Key: Value' lines")
    result_path: str | None = None
    title_path: str | None = None
    url_path: str | None = None
    content_path: str | None = None
    enabled: bool = True

    @model_validator(mode="after")
    def check_api_url(self) -> "ProviderCreateRequest":
        if self.kind == "generic" and QUERY_PLACEHOLDER not in self.api_url:
            raise ValueError("Generic provider api_url must contain a {q} placeholder")
        if self.kind == "native" and resolve_native_adapter(self.api_url) is None:
            raise ValueError(f"Unknown native adapter: {self.api_url}")
        return self
