"""Response models for the files API (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from filegate.storage.base import StoredObjectMetadata


class _CamelModel(BaseModel):
    model_config = {"populate_by_name": True}


class UploadedFile(_CamelModel):
    key: str
    original_name: str = Field(alias="originalName")
    size: int
    mime_type: str = Field(alias="mimeType")
    uploaded_at: datetime = Field(alias="uploadedAt")


class FileInfo(_CamelModel):
    key: str
    size: int
    content_type: str = Field(alias="contentType")
    original_name: str = Field(alias="originalName")
    last_modified: datetime | None = Field(default=None, alias="lastModified")
    etag: str | None = None

    @classmethod
    def from_metadata(cls, info: StoredObjectMetadata) -> FileInfo:
        return cls(
            key=info.key,
            size=info.size_bytes,
            content_type=info.content_type,
            original_name=info.original_name,
            last_modified=info.last_modified,
            etag=info.etag,
        )


class PresignedUrl(_CamelModel):
    url: str
    expires_in: int = Field(alias="expiresIn")


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "File uploaded successfully"
    data: UploadedFile


class FileInfoResponse(BaseModel):
    success: bool = True
    data: FileInfo


class PresignedUrlResponse(BaseModel):
    success: bool = True
    data: PresignedUrl
