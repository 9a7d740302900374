"""API request/response models."""

from bplus.api.models.conversations import ConversationCreateRequest, NoteRequest, QueryRequest
from bplus.api.models.health import HealthResponse
from bplus.api.models.providers import ProviderCreateRequest
from bplus.api.models.research import ArchiveFileRequest

__all__ = [
    "ConversationCreateRequest",
    "NoteRequest",
    "QueryRequest",
    "HealthResponse",
    "ProviderCreateRequest",
    "ArchiveFileRequest",
]
