"""Authentication for filegate: bearer token validation against an external IdP."""

from filegate.security.deps import require_principal
from filegate.security.oidc import (
    InvalidTokenError,
    OIDCConfig,
    Principal,
    TokenValidator,
    build_token_validator,
)

__all__ = [
    "InvalidTokenError",
    "OIDCConfig",
    "Principal",
    "TokenValidator",
    "build_token_validator",
    "require_principal",
]
