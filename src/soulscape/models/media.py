"""Media API data models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadIntentRequest(BaseModel):
    """Request model for an upload intent."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName", max_length=1024)
    content_type: str = Field(..., alias="contentType", max_length=255)
    folder: Optional[str] = Field(None, max_length=1024)
    image_base64: Optional[str] = Field(None, alias="imageBase64")
    target_bytes: Optional[int] = Field(None, alias="targetBytes", gt=0)


class PresignedUploadResponse(BaseModel):
    """Response for the direct-upload path: the client PUTs to upload_url."""

    model_config = ConfigDict(populate_by_name=True)

    upload_url: str = Field(..., alias="uploadUrl")
    cdn_url: str = Field(..., alias="cdnUrl")
    key: str
    expires_in: int = Field(..., alias="expiresIn", description="Signed URL TTL (seconds)")
    required_headers: dict[str, str] = Field(default_factory=dict, alias="requiredHeaders")


class StoredUploadResponse(BaseModel):
    """Response for the compress-and-store path: the object already exists."""

    model_config = ConfigDict(populate_by_name=True)

    cdn_url: str = Field(..., alias="cdnUrl")
    key: str
    bytes: int
    original_bytes: int = Field(..., alias="originalBytes")
    target_bytes: int = Field(..., alias="targetBytes")


class StoredObject(BaseModel):
    """An object enumerated from the store."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str
    public_url: str = Field(..., alias="cdnUrl")
    last_modified: Optional[datetime] = Field(None, alias="lastModified")
    size_bytes: int = Field(..., alias="size")


class ListingResponse(BaseModel):
    """One page of a media listing."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[StoredObject]
    next_token: Optional[str] = Field(None, alias="nextToken")
