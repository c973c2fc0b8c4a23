"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The only switch that changes behaviour at startup is DATABASE_URL:
when it is absent the service runs on the in-memory backend.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


POSTGRES_SCHEMES = ("postgres", "postgresql")


class DatabaseSettings(BaseSettings):
    """Direct PostgreSQL connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string (DATABASE_URL)"
    )
    ssl: str = Field(
        default="require",
        description="asyncpg ssl mode; 'disable' turns TLS off"
    )
    pool_min_size: int = Field(default=1, ge=1)
    pool_max_size: int = Field(default=5, ge=1, le=50)

    @property
    def is_postgres(self) -> bool:
        """True when a usable PostgreSQL connection string is configured."""
        if not self.url:
            return False
        return urlsplit(self.url).scheme in POSTGRES_SCHEMES

    @property
    def redacted_url(self) -> str:
        """Connection string with the password masked, safe for logs."""
        if not self.url:
            return ""
        parts = urlsplit(self.url)
        if parts.password:
            netloc = parts.netloc.replace(f":{parts.password}@", ":***@")
            return parts._replace(netloc=netloc).geturl()
        return self.url

    @property
    def ssl_option(self):
        """Value for asyncpg's ``ssl`` argument."""
        if self.ssl.lower() in ("disable", "false", "off", ""):
            return False
        return self.ssl


class SupabaseSettings(BaseSettings):
    """Supabase REST (PostgREST) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: Optional[str] = Field(
        default=None,
        description="Project URL, e.g. https://<ref>.supabase.co"
    )
    anon_key: Optional[str] = Field(
        default=None,
        description="Project API key sent as apikey/Bearer"
    )

    def resolve_url(self, database_url: Optional[str]) -> Optional[str]:
        """
        Get the project URL for REST calls.

        Falls back to deriving it from a Supabase connection string
        whose host is db.<ref>.supabase.co.
        """
        if self.url:
            return self.url.rstrip("/")
        if not database_url:
            return None

        host = urlsplit(database_url).hostname or ""
        if host.startswith("db.") and host.endswith(".supabase.co"):
            ref = host[len("db."):-len(".supabase.co")]
            return f"https://{ref}.supabase.co"
        return None


class AuthSettings(BaseSettings):
    """Email allow-list configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    authorized_emails: str = Field(
        default="admin@example.com",
        description="Comma-separated list of emails allowed to sign in"
    )

    @property
    def authorized_emails_list(self) -> list[str]:
        """Get authorized emails as a normalized list."""
        return [
            email.strip().lower()
            for email in self.authorized_emails.split(",")
            if email.strip()
        ]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Interface uvicorn binds to"
    )
    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Port uvicorn listens on"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)"
    )

    # Startup probes
    rest_probe_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for the REST backend read probe"
    )
    direct_probe_timeout_seconds: float = Field(
        default=8.0,
        gt=0,
        description="Timeout for the direct database read probe"
    )

    # Pagination
    default_page_size: int = Field(default=15, ge=1)
    default_unpaid_page_size: int = Field(default=5, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
