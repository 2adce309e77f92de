"""Bearer token validation for filegate.

Validates JWT access tokens issued by an external identity provider
(Supabase Auth, Keycloak, Auth0, ...). Supports:
- JWKS signature verification (RS256/ES256) with cached key sets
- Shared-secret verification (HS256), as used by Supabase projects
- Token expiry validation
- Issuer and audience validation when configured

The gateway only needs to know that a request is authenticated; the
resulting Principal is attached to the request and to log records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from filegate.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class OIDCConfig:
    """Identity provider configuration."""

    issuer: str | None = None
    audience: str | None = None
    jwks_uri: str | None = None
    shared_secret: str | None = None
    jwks_cache_seconds: int = 3600

    def __post_init__(self) -> None:
        """Derive the JWKS URI from the issuer when no secret is used."""
        if self.jwks_uri is None and self.issuer and not self.shared_secret:
            self.jwks_uri = f"{self.issuer.rstrip('/')}/.well-known/jwks.json"


@dataclass
class Principal:
    """Authenticated caller extracted from a validated token."""

    sub: str
    email: str | None = None
    role: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


class InvalidTokenError(Exception):
    """Raised when token validation fails."""

    pass


class TokenValidator:
    """Validates JWT tokens from the identity provider."""

    def __init__(self, config: OIDCConfig):
        self.config = config
        self._jwks: dict[str, Any] | None = None
        self._jwks_fetched_at: datetime | None = None

    async def validate_token(self, token: str) -> Principal:
        """Validate a JWT and return the principal.

        Args:
            token: The JWT access token (without "Bearer " prefix)

        Raises:
            InvalidTokenError: If token is invalid
        """
        key: Any
        if self.config.shared_secret:
            key = self.config.shared_secret
            algorithms = ["HS256"]
        else:
            key = await self._get_jwks()
            algorithms = ["RS256", "ES256"]

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={"verify_exp": True, "verify_aud": self.config.audience is not None},
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenError("Invalid token: missing subject")

        return Principal(
            sub=subject,
            email=payload.get("email"),
            role=payload.get("role"),
            claims=payload,
        )

    async def _get_jwks(self) -> dict[str, Any]:
        """Get JWKS keys, with caching."""
        now = datetime.now(UTC)
        if self._jwks is not None and self._jwks_fetched_at is not None:
            age = (now - self._jwks_fetched_at).total_seconds()
            if age < self.config.jwks_cache_seconds:
                return self._jwks

        if not self.config.jwks_uri:
            raise InvalidTokenError("No JWKS URI configured")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.config.jwks_uri, timeout=10.0)
                response.raise_for_status()
                self._jwks = response.json()
                self._jwks_fetched_at = now
                logger.info(f"Fetched JWKS from {self.config.jwks_uri}")
                return self._jwks
        except (httpx.HTTPError, ValueError) as e:
            if self._jwks is not None:
                logger.warning(f"Failed to refresh JWKS, using cached: {e}")
                return self._jwks
            raise InvalidTokenError(f"Failed to fetch JWKS: {e}") from e


def build_token_validator(settings: Settings) -> TokenValidator | None:
    """Build a validator from settings.

    Returns None if neither an issuer nor a shared secret is configured,
    which disables authentication.
    """
    if not settings.auth_enabled:
        return None

    return TokenValidator(
        OIDCConfig(
            issuer=settings.oidc_issuer,
            audience=settings.oidc_audience,
            jwks_uri=settings.oidc_jwks_uri,
            shared_secret=settings.oidc_jwt_secret,
            jwks_cache_seconds=settings.oidc_jwks_cache_seconds,
        )
    )
