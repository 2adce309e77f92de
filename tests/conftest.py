"""Global pytest configuration and fixtures.

Provides an in-memory stand-in for the aioboto3 S3 client so the gateway
and the HTTP surface can be exercised without a running store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from hashlib import md5
from typing import Any

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError

from filegate.config import Settings
from filegate.storage.gateway import ObjectStoreGateway


def client_error(code: str, status: int, operation: str, message: str = "") -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@dataclass
class FakeObject:
    body: bytes
    content_type: str | None
    metadata: dict[str, str]
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def etag(self) -> str:
        return f'"{md5(self.body).hexdigest()}"'  # nosec B324 - mirrors S3 ETag


class FakeBody:
    """Mimics aiobotocore's StreamingBody: chunked read() and close().

    With ``error`` set, the first read succeeds and the next one raises it,
    like a connection dropping mid-download.
    """

    def __init__(self, data: bytes, error: Exception | None = None) -> None:
        self._data = data
        self._offset = 0
        self.error = error
        self.reads = 0
        self.closed = False

    async def read(self, amt: int | None = None) -> bytes:
        self.reads += 1
        if self.error is not None and self.reads > 1:
            raise self.error
        if amt is None:
            amt = len(self._data) - self._offset
        chunk = self._data[self._offset : self._offset + amt]
        self._offset += len(chunk)
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeS3Client:
    """In-memory S3 client covering the calls the gateway makes."""

    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, FakeObject]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, Exception] = {}
        self.read_failure: Exception | None = None
        self.bodies: list[FakeBody] = []
        self.entered = 0
        self.exited = 0

    async def __aenter__(self) -> "FakeS3Client":
        self.entered += 1
        return self

    async def __aexit__(self, *_args: object) -> None:
        self.exited += 1

    def fail(self, operation: str, error: Exception) -> None:
        """Make the next calls to ``operation`` raise ``error``."""
        self.failures[operation] = error

    def fail_read(self, error: Exception) -> None:
        """Make bodies returned by get_object fail after their first chunk."""
        self.read_failure = error

    def _record(self, operation: str, params: dict[str, Any]) -> None:
        self.calls.append((operation, params))
        if operation in self.failures:
            raise self.failures[operation]

    def _bucket(self, name: str, operation: str) -> dict[str, FakeObject]:
        if name not in self.buckets:
            raise client_error("NoSuchBucket", 404, operation, "The specified bucket does not exist")
        return self.buckets[name]

    async def head_bucket(self, **params: Any) -> dict[str, Any]:
        self._record("head_bucket", params)
        if params["Bucket"] not in self.buckets:
            raise client_error("404", 404, "HeadBucket", "Not Found")
        return {}

    async def create_bucket(self, **params: Any) -> dict[str, Any]:
        self._record("create_bucket", params)
        if params["Bucket"] in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", 409, "CreateBucket")
        self.buckets[params["Bucket"]] = {}
        return {}

    async def put_object(self, **params: Any) -> dict[str, Any]:
        self._record("put_object", params)
        bucket = self._bucket(params["Bucket"], "PutObject")
        obj = FakeObject(
            body=bytes(params["Body"]),
            content_type=params.get("ContentType"),
            metadata=dict(params.get("Metadata") or {}),
        )
        bucket[params["Key"]] = obj
        return {"ETag": obj.etag}

    async def head_object(self, **params: Any) -> dict[str, Any]:
        self._record("head_object", params)
        bucket = self._bucket(params["Bucket"], "HeadObject")
        obj = bucket.get(params["Key"])
        if obj is None:
            raise client_error("404", 404, "HeadObject", "Not Found")
        response: dict[str, Any] = {
            "ContentLength": len(obj.body),
            "LastModified": obj.last_modified,
            "ETag": obj.etag,
            "Metadata": obj.metadata,
        }
        if obj.content_type is not None:
            response["ContentType"] = obj.content_type
        return response

    async def get_object(self, **params: Any) -> dict[str, Any]:
        self._record("get_object", params)
        bucket = self._bucket(params["Bucket"], "GetObject")
        obj = bucket.get(params["Key"])
        if obj is None:
            raise client_error("NoSuchKey", 404, "GetObject", "The specified key does not exist.")
        body = FakeBody(obj.body, error=self.read_failure)
        self.bodies.append(body)
        return {
            "Body": body,
            "ContentLength": len(obj.body),
            "ContentType": obj.content_type,
            "Metadata": obj.metadata,
        }

    async def generate_presigned_url(
        self, operation: str, Params: dict[str, Any], ExpiresIn: int
    ) -> str:
        self._record("generate_presigned_url", {"Params": Params, "ExpiresIn": ExpiresIn})
        return (
            f"http://fake-s3.local/{Params['Bucket']}/{Params['Key']}"
            f"?X-Amz-Expires={ExpiresIn}&X-Amz-Signature=fake"
        )


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def make_gateway(fake_s3: FakeS3Client, monkeypatch: pytest.MonkeyPatch):
    """Factory for gateways wired to the in-memory client."""

    def _make(**kwargs: Any) -> ObjectStoreGateway:
        gateway = ObjectStoreGateway(bucket=kwargs.pop("bucket", "files"), **kwargs)
        monkeypatch.setattr(gateway, "_create_client", lambda: fake_s3)
        return gateway

    return _make


@pytest_asyncio.fixture
async def gateway(make_gateway):
    """A started gateway over an empty in-memory bucket."""
    gw = make_gateway()
    await gw.start()
    yield gw
    await gw.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        env="dev",
        s3_bucket="files",
        enable_rate_limiting=False,
        enable_hsts=False,
        oidc_issuer=None,
        oidc_jwt_secret=None,
    )
