"""S3-compatible object store gateway.

Sole owner of all traffic to the remote store for one bucket. Supports:
- AWS S3
- MinIO
- Cloudflare R2
- Any S3-compatible object storage

The gateway keeps one long-lived aioboto3 client opened by ``start()`` and
no other mutable state, so a single instance serves concurrent requests.
Every operation that takes a key re-sanitizes it, whatever the caller did
upstream.

Store calls are not retried. Transient failures (connection resets, 5xx)
surface as WriteFailed / LookupFailed / SignFailed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any, cast

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from filegate.config import Settings
from filegate.errors import (
    BucketProvisioningFailed,
    InvalidExpiry,
    LookupFailed,
    ObjectNotFound,
    SignFailed,
    StorageError,
    WriteFailed,
)
from filegate.observability.logging import file_fields
from filegate.storage.base import (
    ORIGINAL_NAME_META_KEY,
    StoredObjectMetadata,
    decode_original_name,
    encode_original_name,
)
from filegate.uploads.mime import guess_mime_type
from filegate.uploads.sanitizer import sanitize

if TYPE_CHECKING:
    import aioboto3

logger = logging.getLogger(__name__)

MAX_PRESIGN_EXPIRY = 24 * 60 * 60  # 24 hours

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404", "NoSuchBucket"})
_BUCKET_EXISTS_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})
_AUTH_FAILURE_STATUSES = frozenset({401, 403})

_STORE_ERRORS = (ClientError, BotoCoreError)


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


def is_not_found(error: Exception) -> bool:
    """Return True if a store error means the object (or bucket) is absent.

    Store error surfaces are only partly structured: S3 reports a code,
    HEAD requests only carry a status, and some providers put the signal
    in free text. All three are treated as the same condition. Credential
    and permission failures (401/403) are never not-found, whatever their
    message says.
    """
    if _error_code(error) in _NOT_FOUND_CODES:
        return True
    status = None
    if isinstance(error, ClientError):
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    if status == 404:
        return True
    if status in _AUTH_FAILURE_STATUSES:
        return False
    return "does not exist" in str(error).lower()


class ObjectStream:
    """Chunked reader over one GetObject response body.

    The stream owns the body from the moment GetObject returns. ``aclose()``
    releases the underlying connection even if iteration never started.
    Reaching the end of the body or a read error closes it too.
    """

    def __init__(
        self,
        key: str,
        body: Any,
        chunk_size: int,
        on_error: Callable[[str, Exception], StorageError],
    ):
        self.key = key
        self.chunk_size = chunk_size
        self._body = body
        self._on_error = on_error
        self.closed = False

    def __aiter__(self) -> ObjectStream:
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration
        try:
            chunk = await self._body.read(self.chunk_size)
        except _STORE_ERRORS as e:
            await self.aclose()
            raise self._on_error(self.key, e) from e
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        return cast(bytes, chunk)

    async def aclose(self) -> None:
        """Release the response body. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self._body.close()

    async def __aenter__(self) -> ObjectStream:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


class ObjectStoreGateway:
    """Gateway to one bucket of an S3-compatible store.

    Configuration via:
    - bucket: bucket name (created on start if absent)
    - endpoint_url: for non-AWS S3-compatible services
    - region_name: region used for signing and bucket creation
    - credentials: explicit key pair or AWS SDK defaults
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region_name: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        chunk_size: int = 64 * 1024,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.chunk_size = chunk_size
        self._session: "aioboto3.Session | None" = None
        self._client: Any = None
        self._exit_stack: AsyncExitStack | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ObjectStoreGateway:
        return cls(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            chunk_size=settings.s3_read_chunk_size,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _create_client(self) -> Any:
        """Return an async context manager yielding an S3 client."""
        if self._session is None:
            import aioboto3

            self._session = aioboto3.Session(
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
                region_name=self.region_name,
            )
        return self._session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            config=Config(signature_version="s3v4"),
        )

    @property
    def started(self) -> bool:
        return self._client is not None

    async def start(self) -> None:
        """Open the store client and make sure the bucket exists.

        Must complete before the gateway serves traffic. Any failure closes
        the client again and raises BucketProvisioningFailed.
        """
        if self._client is not None:
            return

        stack = AsyncExitStack()
        try:
            self._client = await stack.enter_async_context(self._create_client())
            await self.ensure_bucket()
        except BucketProvisioningFailed:
            self._client = None
            await stack.aclose()
            raise
        except _STORE_ERRORS as e:
            self._client = None
            await stack.aclose()
            raise BucketProvisioningFailed(self.bucket, str(e)) from e

        self._exit_stack = stack
        logger.info(f"Object store gateway ready (bucket={self.bucket})")

    async def close(self) -> None:
        """Close the store client."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
        self._exit_stack = None
        self._client = None

    async def __aenter__(self) -> ObjectStoreGateway:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _require_client(self) -> Any:
        if self._client is None:
            raise RuntimeError("ObjectStoreGateway.start() must be awaited before use")
        return self._client

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist. Safe to call repeatedly."""
        client = self._require_client()
        try:
            await client.head_bucket(Bucket=self.bucket)
            logger.debug(f"Bucket exists: {self.bucket}")
            return
        except _STORE_ERRORS as e:
            if not is_not_found(e):
                raise BucketProvisioningFailed(self.bucket, str(e)) from e

        params: dict[str, Any] = {"Bucket": self.bucket}
        if self.region_name and self.region_name != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region_name}

        try:
            await client.create_bucket(**params)
        except _STORE_ERRORS as e:
            if _error_code(e) in _BUCKET_EXISTS_CODES:
                logger.info(f"Bucket already created by another process: {self.bucket}")
                return
            raise BucketProvisioningFailed(self.bucket, str(e)) from e

        logger.info("Created bucket", extra=file_fields(bucket=self.bucket))

    async def ping(self) -> bool:
        """Return True if the bucket is reachable."""
        if self._client is None:
            return False
        try:
            await self._client.head_bucket(Bucket=self.bucket)
        except _STORE_ERRORS as e:
            logger.warning(f"Object store ping failed: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def put(
        self,
        key: str,
        content: bytes,
        size: int,
        content_type: str,
        original_name: str,
    ) -> str:
        """Store an object and return the key it was written under.

        The write is a single PutObject call: the object is either fully
        present afterwards or absent.
        """
        safe_key = sanitize(key)
        client = self._require_client()

        try:
            await client.put_object(
                Bucket=self.bucket,
                Key=safe_key,
                Body=content,
                ContentLength=size,
                ContentType=content_type,
                ACL="private",
                Metadata={ORIGINAL_NAME_META_KEY: encode_original_name(original_name)},
            )
        except _STORE_ERRORS as e:
            logger.error(
                f"Failed to upload object: {e}",
                extra=file_fields(bucket=self.bucket, key=safe_key, size_bytes=size),
            )
            raise WriteFailed(str(e)) from e

        logger.info(
            "Uploaded object",
            extra=file_fields(
                bucket=self.bucket, key=safe_key, size_bytes=size, content_type=content_type
            ),
        )
        return safe_key

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _lookup_error(self, key: str, error: Exception) -> StorageError:
        if is_not_found(error):
            return ObjectNotFound(key)
        logger.error(
            f"Object store lookup failed: {error}",
            extra=file_fields(bucket=self.bucket, key=key),
        )
        return LookupFailed(str(error))

    async def stat(self, key: str) -> StoredObjectMetadata:
        """Return the stored metadata of an object.

        Raises:
            ObjectNotFound: If the object does not exist
            LookupFailed: For any other store error
        """
        safe_key = sanitize(key)
        client = self._require_client()

        try:
            response = await client.head_object(Bucket=self.bucket, Key=safe_key)
        except _STORE_ERRORS as e:
            raise self._lookup_error(safe_key, e) from e

        user_metadata = response.get("Metadata") or {}
        encoded_name = user_metadata.get(ORIGINAL_NAME_META_KEY) or safe_key
        etag = (response.get("ETag") or "").strip('"') or None

        return StoredObjectMetadata(
            key=safe_key,
            content_type=response.get("ContentType") or guess_mime_type(safe_key),
            original_name=decode_original_name(encoded_name),
            original_name_encoded=encoded_name,
            size_bytes=int(response.get("ContentLength", 0)),
            last_modified=response.get("LastModified"),
            etag=etag,
        )

    async def exists(self, key: str) -> bool:
        """Check whether an object exists."""
        try:
            await self.stat(key)
        except ObjectNotFound:
            return False
        return True

    async def get_buffer(self, key: str) -> bytes:
        """Read a whole object into memory.

        Memory use is bounded by the upload size ceiling. If that ceiling is
        raised substantially, callers should move to ``open_stream``.
        """
        async with await self.open_stream(key) as stream:
            return b"".join([chunk async for chunk in stream])

    async def open_stream(self, key: str) -> ObjectStream:
        """Open an object for streaming.

        The GetObject request is issued before returning, so a missing key
        raises ObjectNotFound here rather than mid-response. The caller owns
        the returned stream and must close it, iterated or not.
        """
        safe_key = sanitize(key)
        client = self._require_client()
        try:
            response = await client.get_object(Bucket=self.bucket, Key=safe_key)
        except _STORE_ERRORS as e:
            raise self._lookup_error(safe_key, e) from e
        return ObjectStream(
            safe_key,
            response["Body"],
            chunk_size=self.chunk_size,
            on_error=self._lookup_error,
        )

    # ------------------------------------------------------------------
    # Presigned URLs
    # ------------------------------------------------------------------

    async def presign(self, key: str, expiry_seconds: int = 60) -> str:
        """Generate a time-limited download URL for an existing object.

        Args:
            key: Object key
            expiry_seconds: URL lifetime, 1 second to 24 hours

        Raises:
            InvalidExpiry: If expiry is out of range
            ObjectNotFound: If the object does not exist
            SignFailed: For any other store error
        """
        if expiry_seconds <= 0 or expiry_seconds > MAX_PRESIGN_EXPIRY:
            raise InvalidExpiry(expiry_seconds)

        safe_key = sanitize(key)
        client = self._require_client()

        try:
            await client.head_object(Bucket=self.bucket, Key=safe_key)
            url = await client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": safe_key},
                ExpiresIn=expiry_seconds,
            )
        except _STORE_ERRORS as e:
            if is_not_found(e):
                raise ObjectNotFound(safe_key) from e
            logger.error(
                f"Failed to presign: {e}", extra=file_fields(bucket=self.bucket, key=safe_key)
            )
            raise SignFailed(str(e)) from e

        return cast(str, url)
