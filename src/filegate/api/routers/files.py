"""File upload and delivery endpoints.

- POST /files/upload         - validate, key, and store one file
- GET  /files/{key}/info     - stored metadata
- GET  /files/{key}/url      - presigned download URL
- GET  /files/{key}/stream   - content, streamed from the store
- GET  /files/{key}          - content, buffered
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from starlette.responses import Response

from filegate.api.deps import get_gateway, get_upload_validator
from filegate.api.responses import ObjectStreamResponse, file_headers
from filegate.api.schemas import (
    FileInfo,
    FileInfoResponse,
    PresignedUrl,
    PresignedUrlResponse,
    UploadedFile,
    UploadResponse,
)
from filegate.security.deps import require_principal
from filegate.storage.gateway import ObjectStoreGateway
from filegate.uploads.keys import generate_key
from filegate.uploads.validator import UploadCandidate, UploadValidator

router = APIRouter(
    prefix="/files",
    tags=["Files"],
    dependencies=[Depends(require_principal)],
)

Gateway = Annotated[ObjectStoreGateway, Depends(get_gateway)]


async def _read_candidate(file: UploadFile | None, max_size_bytes: int) -> UploadCandidate | None:
    """Turn a multipart file into an UploadCandidate.

    At most ``max_size_bytes + 1`` bytes are read, which is enough for the
    size check to reject anything larger.
    """
    if file is None or not file.filename:
        return None
    content = await file.read(max_size_bytes + 1)
    size = file.size if file.size is not None else len(content)
    return UploadCandidate(
        original_name=file.filename,
        mime_type=file.content_type or "application/octet-stream",
        size_bytes=size,
        content=content,
    )


@router.post("/upload", status_code=201, response_model=UploadResponse)
async def upload_file(
    gateway: Gateway,
    validator: Annotated[UploadValidator, Depends(get_upload_validator)],
    file: Annotated[UploadFile | None, File()] = None,
) -> UploadResponse:
    """Validate and store one uploaded file."""
    candidate = await _read_candidate(file, validator.policy.max_size_bytes)
    validator.validate(candidate)
    assert candidate is not None

    key = generate_key(candidate.original_name)
    stored_key = await gateway.put(
        key,
        candidate.content,
        len(candidate.content),
        candidate.mime_type,
        candidate.original_name,
    )

    return UploadResponse(
        data=UploadedFile(
            key=stored_key,
            original_name=candidate.original_name,
            size=len(candidate.content),
            mime_type=candidate.mime_type,
            uploaded_at=datetime.now(UTC),
        )
    )


@router.get("/{key}/info", response_model=FileInfoResponse)
async def get_file_info(key: str, gateway: Gateway) -> FileInfoResponse:
    """Return stored metadata for a file."""
    info = await gateway.stat(key)
    return FileInfoResponse(data=FileInfo.from_metadata(info))


@router.get("/{key}/url", response_model=PresignedUrlResponse)
async def get_download_url(
    key: str,
    request: Request,
    gateway: Gateway,
    expires: Annotated[int | None, Query(description="URL lifetime in seconds")] = None,
) -> PresignedUrlResponse:
    """Return a short-lived presigned download URL."""
    expiry = expires if expires is not None else request.app.state.settings.presign_default_expiry
    url = await gateway.presign(key, expiry)
    return PresignedUrlResponse(data=PresignedUrl(url=url, expires_in=expiry))


@router.get("/{key}/stream")
async def stream_file(key: str, gateway: Gateway) -> ObjectStreamResponse:
    """Stream file content straight from the store."""
    info = await gateway.stat(key)
    stream = await gateway.open_stream(key)
    try:
        return ObjectStreamResponse(stream, info)
    except Exception:
        await stream.aclose()
        raise


@router.get("/{key}")
async def get_file(key: str, gateway: Gateway) -> Response:
    """Return file content with inline Content-Disposition."""
    info = await gateway.stat(key)
    content = await gateway.get_buffer(key)
    return Response(
        content=content,
        media_type=info.content_type,
        headers=file_headers(info, content_length=len(content)),
    )
