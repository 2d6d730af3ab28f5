"""Pydantic models for parsing the config.yaml configuration file.

These models mirror the structure of config.yaml and handle validation and
type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class ConfigurationError(RuntimeError):
    """Raised when the application is misconfigured and must not serve traffic."""


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default=["*"])


class DiscordConfig(BaseModel):
    """Discord OAuth2 application and API client configuration."""

    client_id: str = Field(default="", description="Discord application client ID")
    client_secret: str = Field(
        default="", repr=False, description="Discord application client secret"
    )
    login_path: str = Field(
        default="/auth/discord/login", description="Path that starts a Discord login"
    )
    callback_path: str = Field(
        default="/auth/discord/callback",
        description="Path that turns the external session into a local session",
    )
    signin_path: str = Field(
        default="/signin-discord",
        description="Redirect URI path registered with Discord for the code exchange",
    )
    default_return_url: str = Field(
        default="/", description="Post-login destination when none was requested"
    )
    access_denied_path: str = Field(
        default="/login?error=access_denied",
        description="Where to send users who cancel on the consent screen",
    )
    scopes: list[str] = Field(
        default_factory=lambda: ["identify", "email", "guilds"],
        description="OAuth2 scopes requested from Discord",
    )
    authorization_endpoint: str = Field(
        default="https://discord.com/oauth2/authorize",
        description="Discord authorization endpoint URL",
    )
    token_endpoint: str = Field(
        default="https://discord.com/api/oauth2/token",
        description="Discord token endpoint URL",
    )
    api_base_url: str = Field(
        default="https://discord.com/api/", description="Discord REST API base address"
    )
    user_agent: str = Field(
        default="discord-auth/0.1 (+https://github.com/discord-auth)",
        description="User-Agent header required by the Discord API",
    )
    use_pkce: bool = Field(default=True, description="Use PKCE for the code exchange")
    http_timeout_seconds: float = Field(
        default=10.0, description="Timeout for calls to Discord"
    )
    external_session_ttl_seconds: int = Field(
        default=300, description="Lifetime of the transient external session"
    )
    authorization_session_ttl_seconds: int = Field(
        default=600, description="Lifetime of a pending authorization request"
    )
    guild_cache_ttl_seconds: int = Field(
        default=120, description="How long a user's guild list is cached"
    )
    guild_cache_max_entries: int = Field(
        default=1024, description="Maximum number of cached guild lists"
    )
    rate_limit_max_wait_seconds: float = Field(
        default=3.0, description="Longest Retry-After that is still retried once"
    )
    rate_limit_retry_buffer_seconds: float = Field(
        default=0.5, description="Extra delay added to Retry-After before retrying"
    )

    @computed_field
    @property
    def is_configured(self) -> bool:
        """Whether both OAuth2 credentials are present."""
        return bool(self.client_id and self.client_secret)


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=False, description="Enable Redis session storage")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, repr=False, description="Password for Redis authentication"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if not self.password or "@" in self.url:
            return self.url
        scheme, sep, rest = self.url.partition("://")
        if not sep:
            return self.url
        return f"{scheme}://:{self.password}@{rest}"


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Account store database configuration."""

    url: str = Field(
        default="sqlite:///./discord_auth.db", description="Database connection URL"
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    create_tables: bool = Field(
        default=True, description="Create missing tables at startup"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    public_base_url: str | None = Field(
        default=None,
        description="Externally visible base URL used to build the Discord redirect URI",
    )
    session_max_age: int = Field(
        default=3600, description="Local session maximum age in seconds"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port unless configured explicitly."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class SecurityConfig(BaseModel):
    """Cookie and redirect settings for the login flow."""

    cookie_samesite: Literal["lax", "strict", "none"] = Field(
        default="lax", description="SameSite cookie attribute"
    )
    authorization_cookie_name: str = Field(
        default="discord_auth_request", description="Cookie for the pending authorization"
    )
    external_cookie_name: str = Field(
        default="discord_external", description="Cookie for the transient external session"
    )
    session_cookie_name: str = Field(
        default="user_session_id", description="Cookie for the local session"
    )
    allowed_redirect_hosts: list[str] = Field(
        default_factory=list,
        description="Allowed hosts for absolute return URLs (empty = relative only)",
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    discord: DiscordConfig = Field(
        default_factory=DiscordConfig, description="Discord configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )


def validate_discord_config(config: ConfigData) -> None:
    """Fail fast when the Discord credentials are missing.

    Raises:
        ConfigurationError: If ``client_id`` or ``client_secret`` is empty.
    """
    missing = [
        name
        for name in ("client_id", "client_secret")
        if not getattr(config.discord, name)
    ]
    if missing:
        raise ConfigurationError(
            "Missing Discord configuration: "
            + ", ".join(f"discord.{name}" for name in missing)
            + ". Set DISCORD_CLIENT_ID and DISCORD_CLIENT_SECRET."
        )
