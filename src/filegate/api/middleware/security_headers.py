"""Security response headers for filegate.

Served uploads are untrusted content, so every response carries:
- X-Content-Type-Options: nosniff (browsers must honour the stored type)
- X-Frame-Options and Referrer-Policy
- Strict-Transport-Security when enabled (only behind HTTPS)
- Content-Security-Policy when a policy is configured

The ``server`` header is dropped.
"""

from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# Default CSP for API-only applications
DEFAULT_API_CSP = "default-src 'none'; frame-ancestors 'none'"


def security_headers(
    enable_hsts: bool = False,
    hsts_max_age: int = 31536000,
    csp_policy: str | None = None,
) -> dict[str, str]:
    """Return the fixed header set added to every response."""
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }
    if enable_hsts:
        headers["Strict-Transport-Security"] = f"max-age={hsts_max_age}; includeSubDomains"
    if csp_policy:
        headers["Content-Security-Policy"] = csp_policy
    return headers


class SecurityHeadersMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = False,
        hsts_max_age: int = 31536000,
        csp_policy: str | None = None,
    ) -> None:
        self.app = app
        self.headers = security_headers(enable_hsts, hsts_max_age, csp_policy)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                response_headers.update(self.headers)
                if "server" in response_headers:
                    del response_headers["server"]
            await send(message)

        await self.app(scope, receive, send_with_headers)
