"""Object storage for filegate.

One gateway per process brokers every read and write against a single
bucket of an S3-compatible store (MinIO, AWS S3, R2). Original filenames
travel as percent-encoded user metadata on the object itself; nothing is
cached locally.
"""

from filegate.storage.base import (
    StoredObjectMetadata,
    decode_original_name,
    encode_original_name,
)
from filegate.storage.gateway import MAX_PRESIGN_EXPIRY, ObjectStoreGateway, is_not_found

__all__ = [
    "MAX_PRESIGN_EXPIRY",
    "ObjectStoreGateway",
    "StoredObjectMetadata",
    "decode_original_name",
    "encode_original_name",
    "is_not_found",
]
