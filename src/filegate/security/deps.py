"""FastAPI security dependencies for filegate.

Usage:
    @router.get("/files/{key}")
    async def get_file(principal: Principal | None = Depends(require_principal)):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from filegate.observability.logging import user_id_var
from filegate.security.oidc import InvalidTokenError, Principal, TokenValidator


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_principal(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal | None:
    """Require a valid bearer token when authentication is configured.

    Returns None if no token validator is configured (authentication
    disabled). Raises 401 if the header is missing, malformed, or the
    token does not validate.
    """
    validator: TokenValidator | None = getattr(request.app.state, "token_validator", None)
    if validator is None:
        return None

    if authorization is None:
        raise _unauthorized("Authentication token not provided")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token:
        raise _unauthorized("Invalid authorization header format")

    try:
        principal = await validator.validate_token(token)
    except InvalidTokenError as e:
        raise _unauthorized(str(e))

    request.state.principal = principal
    user_id_var.set(principal.sub)
    return principal
