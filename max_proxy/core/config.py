"""
Application configuration models and helpers.

Every component receives the settings group it needs at construction time, so
secrets never live in module globals. All settings objects are frozen.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_OAUTH_CLIENT_ID = "9d1c250a-e61b-44d9-88ed-5944d1962f5e"
DEFAULT_BETA_FLAGS = (
    "oauth-2025-04-20",
    "interleaved-thinking-2025-05-14",
)


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

_FROZEN = SettingsConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class GatewaySettings(BaseSettings):
    """Settings gating client access to this gateway."""

    model_config = _FROZEN

    proxy_secret: str = Field(
        ...,
        alias="PROXY_SECRET",
        description="Shared secret clients must present as Bearer token or x-api-key.",
    )


class OAuthSettings(BaseSettings):
    """OAuth client configuration and provisioned fallback credentials."""

    model_config = _FROZEN

    client_id: str = Field(DEFAULT_OAUTH_CLIENT_ID, alias="CLAUDE_OAUTH_CLIENT_ID")
    refresh_token: Optional[str] = Field(
        None,
        alias="CLAUDE_REFRESH_TOKEN",
        description="Long-lived refresh token used when nothing is cached.",
    )
    access_token: Optional[str] = Field(None, alias="CLAUDE_ACCESS_TOKEN")
    access_token_expires_at: Optional[int] = Field(
        None,
        alias="CLAUDE_ACCESS_TOKEN_EXPIRES_AT",
        description="Expiry of CLAUDE_ACCESS_TOKEN in epoch milliseconds.",
    )
    token_url: str = Field(
        "https://console.anthropic.com/v1/oauth/token", alias="CLAUDE_OAUTH_TOKEN_URL"
    )
    authorize_url: str = Field(
        "https://claude.ai/oauth/authorize", alias="CLAUDE_OAUTH_AUTHORIZE_URL"
    )
    redirect_uri: str = Field(
        "https://console.anthropic.com/oauth/code/callback",
        alias="CLAUDE_OAUTH_REDIRECT_URI",
    )
    scopes: str = Field(
        "org:create_api_key user:profile user:inference", alias="CLAUDE_OAUTH_SCOPES"
    )


class UpstreamSettings(BaseSettings):
    """Configuration for the upstream messages endpoint."""

    model_config = _FROZEN

    api_url: str = Field("https://api.anthropic.com/v1/messages", alias="ANTHROPIC_API_URL")
    api_version: str = Field("2023-06-01", alias="ANTHROPIC_API_VERSION")
    beta_flags: Annotated[tuple[str, ...], NoDecode] = Field(
        DEFAULT_BETA_FLAGS,
        alias="ANTHROPIC_BETA_FLAGS",
        description="Capability flags always sent upstream, comma-separated.",
    )
    client_version: str = Field("2.1.2", alias="CLAUDE_CODE_VERSION")
    version_url: str = Field(
        "https://registry.npmjs.org/@anthropic-ai/claude-code",
        alias="CLAUDE_CODE_VERSION_URL",
    )
    version_lookup_timeout: float = Field(5.0, alias="VERSION_LOOKUP_TIMEOUT")
    version_cache_ttl: int = Field(
        3600,
        alias="VERSION_CACHE_TTL",
        description="Seconds to reuse a looked-up client version; 0 disables caching.",
    )
    tool_prefix: str = Field("mcp_", alias="TOOL_PREFIX")

    @field_validator("beta_flags", mode="before")
    @classmethod
    def _split_flags(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        """Support providing flags as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(flag.strip() for flag in value.split(",") if flag.strip())


class StoreSettings(BaseSettings):
    """Where and how long the credential record is kept."""

    model_config = _FROZEN

    backend: Literal["sqlite", "memory", "dynamodb"] = Field(
        "sqlite", alias="TOKEN_STORE_BACKEND"
    )
    db_path: str = Field("data/token_store.db", alias="TOKEN_STORE_PATH")
    key: str = Field("tokens", alias="TOKEN_STORE_KEY")
    ttl_seconds: int = Field(
        86400,
        alias="TOKEN_STORE_TTL",
        description="Retention of the stored record, unrelated to token expiry.",
    )
    region_name: str = Field("us-east-1", alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(None, alias="DYNAMODB_TABLE_NAME")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _FROZEN

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description="When set, the stored credential record is encrypted at rest.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the gateway."""

    model_config = SettingsConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    host: str = Field("127.0.0.1", alias="HOST")
    port: int = Field(8787, alias="PORT")
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    def secret_values(self) -> tuple[str, ...]:
        """Values that must never appear in log output."""
        candidates = (
            self.gateway.proxy_secret,
            self.oauth.refresh_token,
            self.oauth.access_token,
            self.security.token_encryption_secret,
        )
        return tuple(value for value in candidates if value)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GatewaySettings",
    "OAuthSettings",
    "SecuritySettings",
    "StoreSettings",
    "UpstreamSettings",
    "get_settings",
]
