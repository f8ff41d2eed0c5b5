"""Uploaded file schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MAX_FILE_NAME_LENGTH = 255


class UploadedFile(BaseModel):
    """A user supplied trading journal.

    ``content`` holds text for text files and base64 for binary ones.
    Wire names follow the store API (``type``, ``isBinary``, ``fileSize``...).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", description="Caller assigned identifier, name plus upload timestamp")
    name: str = Field(default="")
    mime_type: str = Field(default="", alias="type")
    content: str = Field(default="")
    is_binary: bool = Field(default=False, alias="isBinary")
    size_bytes: Optional[int] = Field(default=None, alias="fileSize")
    uploaded_at: Optional[datetime] = Field(default=None, alias="uploadDate")
    last_accessed_at: Optional[datetime] = Field(default=None, alias="lastAccessed")

    def to_wire(self) -> dict:
        """Serialize with the store API field names."""
        return self.model_dump(by_alias=True, mode="json")


class FileCreatedResponse(BaseModel):
    message: str = "File uploaded successfully"
    id: str


__all__ = ["FileCreatedResponse", "MAX_FILE_NAME_LENGTH", "UploadedFile"]
