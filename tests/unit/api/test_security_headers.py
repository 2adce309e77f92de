"""Tests for security headers and CORS middleware."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.responses import Response, StreamingResponse

from filegate.api.middleware.cors import CORSConfig, add_cors_middleware
from filegate.api.middleware.security_headers import (
    DEFAULT_API_CSP,
    SecurityHeadersMiddleware,
    security_headers,
)


@pytest.fixture
def app() -> FastAPI:
    """Create a basic FastAPI app for testing."""
    app = FastAPI()

    @app.get("/test")
    def test_endpoint():
        return {"message": "ok"}

    return app


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    def test_default_headers_added(self, app: FastAPI) -> None:
        """Default security headers are added to all responses."""
        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/test")

        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"

    def test_hsts_disabled_by_default(self, app: FastAPI) -> None:
        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/test")

        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_custom_max_age(self, app: FastAPI) -> None:
        app.add_middleware(SecurityHeadersMiddleware, enable_hsts=True, hsts_max_age=86400)
        client = TestClient(app)

        response = client.get("/test")

        hsts = response.headers["Strict-Transport-Security"]
        assert "max-age=86400" in hsts
        assert "includeSubDomains" in hsts

    def test_csp_custom_policy(self, app: FastAPI) -> None:
        app.add_middleware(SecurityHeadersMiddleware, csp_policy=DEFAULT_API_CSP)
        client = TestClient(app)

        response = client.get("/test")

        assert response.headers["Content-Security-Policy"] == DEFAULT_API_CSP

    def test_csp_not_added_by_default(self, app: FastAPI) -> None:
        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/test")

        assert "Content-Security-Policy" not in response.headers

    def test_headers_on_404(self, app: FastAPI) -> None:
        """Security headers are added even on error responses."""
        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/nonexistent")

        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_server_header_removed(self, app: FastAPI) -> None:
        @app.get("/branded")
        def branded() -> Response:
            return Response("ok", headers={"Server": "uvicorn"})

        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/branded")

        assert "server" not in response.headers

    def test_streamed_response(self, app: FastAPI) -> None:
        async def chunks():
            yield b"a"
            yield b"b"

        @app.get("/stream")
        def stream() -> StreamingResponse:
            return StreamingResponse(chunks(), media_type="image/png")

        app.add_middleware(SecurityHeadersMiddleware)
        client = TestClient(app)

        response = client.get("/stream")

        assert response.content == b"ab"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_header_set(self) -> None:
        assert security_headers() == {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }
        assert "Strict-Transport-Security" in security_headers(enable_hsts=True)


class TestCORS:
    """Tests for CORS configuration."""

    def test_wildcard_disables_credentials(self) -> None:
        config = CORSConfig.from_origins("*")
        assert config.allow_origins == ["*"]
        assert config.allow_credentials is False

    def test_explicit_origins_allow_credentials(self) -> None:
        config = CORSConfig.from_origins("https://app.example.com, https://admin.example.com")
        assert config.allow_origins == ["https://app.example.com", "https://admin.example.com"]
        assert config.allow_credentials is True

    def test_empty_falls_back_to_wildcard(self) -> None:
        assert CORSConfig.from_origins("").allow_origins == ["*"]

    def test_preflight(self, app: FastAPI) -> None:
        add_cors_middleware(app, CORSConfig.from_origins("https://app.example.com"))
        client = TestClient(app)

        response = client.options(
            "/test",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://app.example.com"

    def test_disposition_exposed(self, app: FastAPI) -> None:
        add_cors_middleware(app)
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://anywhere.example"})

        assert "Content-Disposition" in response.headers["access-control-expose-headers"]
