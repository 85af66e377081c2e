"""Settings read from the environment (and an optional .env file)."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Universe backend settings.

    Only the Supabase URL and secret key are required; everything else has
    a development default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="universe-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins",
    )

    # Auth redirects
    auth_redirect_url: str = Field(
        default="http://localhost:5173",
        description="Redirect URL after email verification and password reset",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_jwt_secret: str = Field(default="", description="Legacy HS256 JWT secret for token verification")
    supabase_signing_key_jwk: str = Field(
        default="",
        description="Supabase signing key JWK (JSON string) for ES256 verification; takes precedence over the JWT secret",
    )
    realtime_schema: str = Field(default="public", description="Postgres schema watched by realtime subscriptions")

    # Storage buckets
    avatar_bucket: str = Field(default="avatars", description="Bucket for profile avatars")
    verification_bucket: str = Field(default="verification-documents", description="Bucket for verification documents")
    listing_image_bucket: str = Field(default="listing-images", description="Bucket for listing images")

    # Messaging
    atomic_message_send: bool = Field(
        default=False,
        description="Send messages through the send_message database function instead of insert + update",
    )
    direct_conversation_key_enabled: bool = Field(
        default=False,
        description="Stamp one-to-one conversations with a unique participant-pair key",
    )
    max_message_length: int = Field(default=4000, description="Maximum message length in characters")

    # Moderation
    admin_role: str = Field(default="staff", description="Role checked by has_role() for admin access")

    # Rate limiting
    rate_limit_message_requests: int = Field(default=30, description="Messages a user may send per window")
    rate_limit_form_requests: int = Field(default=5, description="Public form submissions per window")
    rate_limit_window_seconds: int = Field(default=60, description="Rate limit window in seconds")

    # Request limits
    max_request_body_size: int = Field(default=10 * 1024 * 1024, description="Max request body size in bytes")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings; tests reset them with get_settings.cache_clear()."""
    return Settings()
