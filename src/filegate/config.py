from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_csv(value: str) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FILEGATE_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "filegate"
    env: str = "dev"
    host: str = "0.0.0.0"  # nosec B104 - intentional for container deployments
    port: int = 3000
    log_level: str = "INFO"

    # Object store (S3-compatible: MinIO, AWS S3, R2, ...)
    s3_bucket: str = Field(default="files", validation_alias="S3_BUCKET")
    s3_endpoint_url: str | None = Field(default=None, validation_alias="S3_ENDPOINT_URL")
    s3_region: str = Field(default="us-east-1", validation_alias="S3_REGION")
    s3_access_key_id: str | None = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, validation_alias="AWS_SECRET_ACCESS_KEY")
    s3_read_chunk_size: int = Field(default=64 * 1024, validation_alias="S3_READ_CHUNK_SIZE")

    # Upload policy
    upload_max_size_bytes: int = Field(
        default=10 * 1024 * 1024, validation_alias="UPLOAD_MAX_SIZE_BYTES"
    )  # 10MB
    upload_allowed_extensions: str = Field(
        default="jpg,jpeg,png,gif,pdf,doc,docx",
        validation_alias="UPLOAD_ALLOWED_EXTENSIONS",
    )
    upload_allowed_mime_types: str = Field(
        default=(
            "image/jpeg,image/jpg,image/png,image/gif,application/pdf,application/msword,"
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        ),
        validation_alias="UPLOAD_ALLOWED_MIME_TYPES",
    )
    upload_blocked_extensions: str = Field(
        default="exe,com,bat,cmd,sh,msi,js,jar,vbs,ps1,php,py,rb",
        validation_alias="UPLOAD_BLOCKED_EXTENSIONS",
    )

    # Presigned download links
    presign_default_expiry: int = Field(default=60, validation_alias="PRESIGN_DEFAULT_EXPIRY")

    # Bearer token validation (optional; disabled when neither issuer nor secret is set)
    oidc_issuer: str | None = Field(default=None, validation_alias="OIDC_ISSUER")
    oidc_audience: str | None = Field(default=None, validation_alias="OIDC_AUDIENCE")
    oidc_jwks_uri: str | None = Field(default=None, validation_alias="OIDC_JWKS_URI")
    oidc_jwt_secret: str | None = Field(default=None, validation_alias="OIDC_JWT_SECRET")
    oidc_jwks_cache_seconds: int = Field(default=3600, validation_alias="OIDC_JWKS_CACHE_SECONDS")

    # Redis (rate limiting)
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    # Rate Limiting
    enable_rate_limiting: bool = Field(default=True, validation_alias="ENABLE_RATE_LIMITING")
    rate_limit_requests: int = Field(default=100, validation_alias="RATE_LIMIT_REQUESTS")
    rate_limit_window: int = Field(default=60, validation_alias="RATE_LIMIT_WINDOW")

    # CORS
    cors_allow_origins: str = Field(default="*", validation_alias="CORS_ALLOW_ORIGINS")

    # Security Headers
    enable_security_headers: bool = Field(default=True, validation_alias="ENABLE_SECURITY_HEADERS")
    enable_hsts: bool = Field(default=True, validation_alias="ENABLE_HSTS")
    hsts_max_age: int = Field(default=31536000, validation_alias="HSTS_MAX_AGE")  # 1 year
    csp_policy: str | None = Field(default=None, validation_alias="CSP_POLICY")

    @property
    def auth_enabled(self) -> bool:
        return bool(self.oidc_issuer or self.oidc_jwt_secret)


settings = Settings()
