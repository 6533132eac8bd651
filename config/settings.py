"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_NAME = "excess_music"
DEV_CORS_ORIGINS = ["http://localhost:3001", "http://127.0.0.1:3001"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_name: str = Field(default="Excess-Music-API", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Deployment environment (development/production)"
    )
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=3000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database Configuration
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017/excess_music",
        description="MongoDB connection URI",
    )
    mongodb_db_name: str | None = Field(
        None, description="Database name (defaults to the one in MONGODB_URI)"
    )
    mongodb_timeout_ms: int = Field(
        default=5000, description="Server selection timeout for MongoDB in milliseconds"
    )

    # Admin Authentication
    jwt_secret: str | None = Field(None, description="Secret used to sign admin tokens")
    jwt_expires_days: int = Field(default=30, description="Admin token lifetime in days")
    admin_username: str = Field(default="admin", description="Admin login username")
    admin_password: str = Field(default="admin123", description="Admin login password")
    admin_email: str = Field(default="admin@excessmusic.com", description="Admin email claim")

    # Email Configuration
    email_service: str | None = Field(None, description="Set to 'gmail' to use Gmail SMTP")
    email_user: str | None = Field(None, description="SMTP username")
    email_pass: str | None = Field(None, description="SMTP password")
    email_from: str | None = Field(None, description="Sender address (defaults to EMAIL_USER)")
    email_to: str | None = Field(None, description="Notification recipient (defaults to EMAIL_USER)")
    smtp_host: str = Field(default="localhost", description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_secure: bool = Field(default=False, description="Use implicit TLS for SMTP")

    # Upload Configuration
    upload_dir: Path = Field(default=Path("uploads"), description="Root directory for media files")
    max_upload_size_mb: int = Field(default=50, description="Maximum size per uploaded file")
    max_upload_files: int = Field(default=10, description="Maximum files per upload request")

    # HTTP Configuration
    cors_origins: list[str] = Field(
        default=["https://your-domain.com"], description="Allowed CORS origins in production"
    )
    json_body_limit_mb: int = Field(default=10, description="Maximum JSON body size")

    # Rate Limiting Configuration
    api_rate_limit: int = Field(default=100, description="Max API requests per client per window")
    api_rate_window_seconds: int = Field(default=900, description="API rate limit window")
    contact_rate_limit: int = Field(
        default=3, description="Max contact form submissions per client per window"
    )
    contact_rate_window_seconds: int = Field(default=900, description="Contact rate limit window")
    rate_limit_max_clients: int = Field(
        default=10_000, description="Clients tracked per rate limit scope before LRU eviction"
    )
    trusted_proxies: list[str] = Field(
        default=[], description="Proxy addresses whose X-Forwarded-For header is honoured"
    )

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # PostHog Configuration
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def resolved_db_name(self) -> str:
        """Database name from settings, then from the URI path, then the default."""
        if self.mongodb_db_name:
            return self.mongodb_db_name
        path = self.mongodb_uri.split("://", 1)[-1].split("?", 1)[0]
        if "/" in path:
            name = path.split("/", 1)[1].strip("/")
            if name:
                return name
        return DEFAULT_DB_NAME

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_user and self.email_pass)

    @property
    def resolved_cors_origins(self) -> list[str]:
        if self.environment.lower() == "production":
            return self.cors_origins
        return DEV_CORS_ORIGINS

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
