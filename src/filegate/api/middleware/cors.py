"""CORS (Cross-Origin Resource Sharing) middleware configuration.

Security notes:
- Never use "*" for origins in production with credentials
- Be restrictive with allowed methods and headers
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from filegate.config import split_csv


@dataclass
class CORSConfig:
    """CORS configuration settings."""

    allow_origins: list[str] = field(default_factory=lambda: ["*"])

    # Only what the files API serves
    allow_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])

    allow_headers: list[str] = field(
        default_factory=lambda: [
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Requested-With",
            "X-Request-ID",
            "X-Correlation-ID",
        ]
    )

    allow_credentials: bool = False

    # Browsers need these to read download metadata from the response
    expose_headers: list[str] = field(
        default_factory=lambda: [
            "X-Request-ID",
            "X-Correlation-ID",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Content-Disposition",
            "Content-Length",
        ]
    )

    # Preflight cache (10 minutes default)
    max_age: int = 600

    @classmethod
    def from_origins(cls, origins: str) -> CORSConfig:
        """Create config from a comma-separated origin list.

        Credentials are only allowed with an explicit origin list.
        """
        allowed = split_csv(origins) or ["*"]
        return cls(allow_origins=allowed, allow_credentials="*" not in allowed)


def add_cors_middleware(app: FastAPI, config: CORSConfig | None = None) -> None:
    """Add CORS middleware to the FastAPI application."""
    config = config or CORSConfig()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allow_origins,
        allow_credentials=config.allow_credentials,
        allow_methods=config.allow_methods,
        allow_headers=config.allow_headers,
        expose_headers=config.expose_headers,
        max_age=config.max_age,
    )
