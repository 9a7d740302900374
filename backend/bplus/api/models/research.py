"""Archive file models."""

from pydantic import BaseModel, Field


class ArchiveFileRequest(BaseModel):
    """Save or load an archive by file name."""

    filename: str = Field(..., min_length=1)
