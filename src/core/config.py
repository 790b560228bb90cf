"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Nest Notifications API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/nest",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # JWT Authentication (tokens are issued by the auth service)
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Shared secret used to verify HS256 session tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)

    # Push provider
    notification_provider: str = Field(
        default="",
        description="Push provider: 'novu', 'none' or empty to auto-detect",
    )
    novu_secret_key: str = Field(default="", description="Novu API secret key")
    novu_app_id: str = Field(default="", description="Novu application identifier")
    novu_base_url: str = Field(
        default="https://api.novu.co",
        description="Novu API base URL (EU or self-hosted endpoints)",
    )

    # Mailer
    mail_provider: str = Field(
        default="",
        description="Mail provider: 'resend', 'none' or empty to auto-detect",
    )
    resend_api_key: str = Field(default="", description="Resend API key")
    mail_from_name: str = Field(default="App")
    mail_from_email: str = Field(default="noreply@example.com")
    mail_reply_to: str | None = Field(default=None)

    # Links rendered into notifications and emails
    app_url: str = Field(default="http://localhost:3000")

    # Notifications
    notification_batch_window_seconds: int = Field(
        default=60,
        description="Window used to derive notification batch keys",
    )
    stream_keepalive_seconds: float = Field(
        default=15.0,
        description="Interval between SSE keep-alive comments",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resolved_push_provider(self) -> str:
        """Push provider to use, falling back to Novu when a key is present."""
        if self.notification_provider in ("novu", "none"):
            return self.notification_provider
        return "novu" if self.novu_secret_key else "none"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resolved_mail_provider(self) -> str:
        """Mail provider to use, falling back to Resend when a key is present."""
        if self.mail_provider in ("resend", "none"):
            return self.mail_provider
        return "resend" if self.resend_api_key else "none"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
