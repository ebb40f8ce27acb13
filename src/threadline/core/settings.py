"""Application settings and configuration.

This module defines all configuration options for the Threadline application.
Settings are loaded from environment variables with sensible defaults and are
frozen after construction: every service receives the same immutable snapshot.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Threadline", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Public URLs used in redirects and outbound mail
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")
    frontend_url: str = Field(default="http://localhost:8080", alias="FRONTEND_URL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./threadline.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    create_tables_on_startup: bool = Field(default=False, alias="CREATE_TABLES_ON_STARTUP")

    # Honour X-Forwarded-For only when running behind a trusted reverse proxy
    trust_proxy_headers: bool = Field(default=False, alias="TRUST_PROXY_HEADERS")

    # Authentication
    allow_new_owners: bool = Field(default=True, alias="ALLOW_NEW_OWNERS")
    wrong_auth_delay_seconds: float = Field(default=1.0, ge=0.0, alias="WRONG_AUTH_DELAY_SECONDS")
    token_bytes: int = Field(default=32, ge=16, le=64, alias="TOKEN_BYTES")

    # Outbound mail; verification is required only when SMTP is configured
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_from_address: str | None = Field(default=None, alias="SMTP_FROM_ADDRESS")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")

    # Spam screening
    akismet_key: str | None = Field(default=None, alias="AKISMET_KEY")
    akismet_timeout_seconds: float = Field(default=5.0, alias="AKISMET_TIMEOUT_SECONDS")

    # Background notification queue
    notification_queue_size: int = Field(default=100, ge=1, alias="NOTIFICATION_QUEUE_SIZE")

    # CORS configuration for embedding sites
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @property
    def smtp_configured(self) -> bool:
        """Return True when outbound mail can be delivered.

        Owner email verification is only enforced when this is the case.
        """
        return bool(self.smtp_host and self.smtp_from_address)

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings snapshot."""
    return settings
