"""FastAPI application factory for filegate.

Creates the application with:
- /files endpoints for upload, metadata, presigned links, and delivery
- Kubernetes health probes
- Lifecycle management for the object store connection
- Optional bearer token authentication
- Result-envelope error handling
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException
from starlette.types import ExceptionHandler

from filegate.api.errors import (
    filegate_exception_handler,
    generic_exception_handler,
    http_exception_handler,
)
from filegate.api.middleware import (
    CORSConfig,
    CorrelationMiddleware,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    SlidingWindowRateLimiter,
    add_cors_middleware,
)
from filegate.api.routers import files, health
from filegate.config import Settings
from filegate.config import settings as default_settings
from filegate.errors import FileGateError
from filegate.observability import configure_logging
from filegate.security.oidc import build_token_validator
from filegate.storage.gateway import ObjectStoreGateway
from filegate.uploads.policy import UploadPolicy
from filegate.uploads.validator import UploadValidator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup the gateway opens its client and makes sure the bucket
    exists; a failure here aborts startup. On shutdown the store client and
    the rate limiter's Redis connection are closed.
    """
    settings: Settings = app.state.settings
    gateway: ObjectStoreGateway = app.state.gateway
    rate_limiter: SlidingWindowRateLimiter | None = app.state.rate_limiter

    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )

    logger.info(f"Starting filegate ({settings.env}), bucket {gateway.bucket!r}")
    await gateway.start()
    if app.state.token_validator is None:
        logger.warning("Bearer token validation is disabled; /files is open")
    logger.info("filegate startup complete")

    yield

    logger.info("Shutting down filegate")
    await gateway.close()
    if rate_limiter is not None:
        await rate_limiter.aclose()
    logger.info("filegate shutdown complete")


def create_app(
    settings: Settings | None = None,
    gateway: ObjectStoreGateway | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``settings`` and ``gateway`` default to the process configuration; tests
    pass their own to run against an in-memory store.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="filegate",
        description="Validated file uploads and delivery over S3-compatible storage",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.gateway = gateway or ObjectStoreGateway.from_settings(settings)
    app.state.upload_validator = UploadValidator(UploadPolicy.from_settings(settings))
    app.state.token_validator = build_token_validator(settings)
    app.state.rate_limiter = (
        SlidingWindowRateLimiter.from_settings(settings) if settings.enable_rate_limiting else None
    )

    if app.state.rate_limiter is not None:
        app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)

    if settings.enable_security_headers:
        app.add_middleware(
            SecurityHeadersMiddleware,
            enable_hsts=settings.enable_hsts,
            hsts_max_age=settings.hsts_max_age,
            csp_policy=settings.csp_policy,
        )

    # Wraps throttling so rejected requests still carry and log their IDs
    app.add_middleware(CorrelationMiddleware)

    # Outermost, so preflight requests and 429s carry CORS headers
    add_cors_middleware(app, CORSConfig.from_origins(settings.cors_allow_origins))

    app.add_exception_handler(FileGateError, cast(ExceptionHandler, filegate_exception_handler))
    app.add_exception_handler(HTTPException, cast(ExceptionHandler, http_exception_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(files.router)

    return app
