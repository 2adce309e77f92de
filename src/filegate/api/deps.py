"""Shared FastAPI dependencies for filegate routers.

The gateway and the validator are process-wide objects created in the app
factory and kept on ``app.state``; routers receive them by reference.
"""

from __future__ import annotations

from fastapi import Request

from filegate.storage.gateway import ObjectStoreGateway
from filegate.uploads.validator import UploadValidator


def get_gateway(request: Request) -> ObjectStoreGateway:
    """FastAPI dependency returning the object store gateway."""
    gateway: ObjectStoreGateway = request.app.state.gateway
    return gateway


def get_upload_validator(request: Request) -> UploadValidator:
    """FastAPI dependency returning the upload validator."""
    validator: UploadValidator = request.app.state.upload_validator
    return validator
