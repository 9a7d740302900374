"""Conversation and query models."""

from pydantic import BaseModel, ConfigDict, Field

from bplus.chat.orchestrator import SynthesisRequest
from bplus.search.models import parse_timeframe


class ConversationCreateRequest(BaseModel):
    """Request model for creating a conversation."""

    title: str | None = Field(default=None, description="Conversation title")


class NoteRequest(BaseModel):
    """Request model for saving conversation notes."""

    content: str


class QueryRequest(BaseModel):
    """Search-and-summarize request for one conversation turn."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, description="User query")
    timeframe: str | None = Field(default=None, description="day, week or month; anything else means no filter")
    providers: list[int] | None = Field(default=None, description="Selected provider ids")
    provider: str = Field(..., description="LLM backend")
    model: str = Field(..., description="Model identifier for the LLM backend")
    system_prompt: str | None = Field(default=None, alias="systemPrompt", description="System prompt")

    def to_synthesis_request(self) -> SynthesisRequest:
        return SynthesisRequest(
            query=self.query,
            provider=self.provider,
            model=self.model,
            system_prompt=self.system_prompt,
            timeframe=parse_timeframe(self.timeframe),
            provider_ids=self.providers,
        )
