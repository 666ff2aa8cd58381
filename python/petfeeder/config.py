"""Application settings loaded from environment variables.

Environment Configuration:
    PETFEEDER_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (optional; in-memory store when unset)
    TOKEN_SECRET: HMAC key for session tokens (required in staging/prod)

Identity Provider Configuration (required in staging/prod):
    GOOGLE_CLIENT_ID: OAuth client id
    GOOGLE_CLIENT_SECRET: OAuth client secret
    REDIRECT_URL: Redirect URI registered with the provider
    CLIENT_URL: Comma-separated browser origins allowed by CORS

Relay Configuration:
    DRIVE_API_BASE_URL: Base URL of the remote object API
    MEDIA_CHUNK_BYTES: Max span served for an open-ended range request

Note: local/test fall back to a fixed development TOKEN_SECRET so the app
boots without a .env file. Never rely on it outside a developer machine.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Used only when PETFEEDER_ENV is local or test and TOKEN_SECRET is unset
DEV_TOKEN_SECRET = "petfeeder-dev-token-secret-not-for-production"


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - TOKEN_SECRET, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, REDIRECT_URL are
      required in staging and prod
    - SESSION_TOKEN_TTL_S and MEDIA_CHUNK_BYTES must be >= 1
    """

    petfeeder_env: Environment = Field(default=Environment.LOCAL, alias="PETFEEDER_ENV")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # Session tokens
    token_secret: str | None = Field(default=None, alias="TOKEN_SECRET")
    session_token_ttl_s: int = Field(default=36000, alias="SESSION_TOKEN_TTL_S")

    # Identity provider
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: str | None = Field(default=None, alias="GOOGLE_CLIENT_SECRET")
    redirect_url: str | None = Field(default=None, alias="REDIRECT_URL")
    client_url: str | None = Field(default=None, alias="CLIENT_URL")
    oauth_auth_url: str = Field(
        default="https://accounts.google.com/o/oauth2/v2/auth", alias="OAUTH_AUTH_URL"
    )
    oauth_token_url: str = Field(
        default="https://oauth2.googleapis.com/token", alias="OAUTH_TOKEN_URL"
    )
    oauth_scopes: str = Field(
        default="openid profile email https://www.googleapis.com/auth/drive.readonly",
        alias="OAUTH_SCOPES",
    )
    oauth_state: str = Field(default="standard_oauth", alias="OAUTH_STATE")

    # Remote object API (media relay, folder lookup)
    drive_api_base_url: str = Field(
        default="https://www.googleapis.com/drive/v3", alias="DRIVE_API_BASE_URL"
    )
    media_chunk_bytes: int = Field(default=512 * 1024, alias="MEDIA_CHUNK_BYTES")  # 512 KiB

    # Outbound HTTP client
    upstream_timeout_s: float = Field(default=60.0, alias="UPSTREAM_TIMEOUT_S")
    upstream_connect_timeout_s: float = Field(default=10.0, alias="UPSTREAM_CONNECT_TIMEOUT_S")

    # argon2id work factor for direct-registration credentials
    password_hash_time_cost: int = Field(default=3, alias="PASSWORD_HASH_TIME_COST")
    password_hash_memory_kib: int = Field(default=65536, alias="PASSWORD_HASH_MEMORY_KIB")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure secrets and provider settings exist where they are required."""
        for name, value in (
            ("SESSION_TOKEN_TTL_S", self.session_token_ttl_s),
            ("MEDIA_CHUNK_BYTES", self.media_chunk_bytes),
            ("PASSWORD_HASH_TIME_COST", self.password_hash_time_cost),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

        if self.petfeeder_env in (Environment.STAGING, Environment.PROD):
            missing = []
            if not self.token_secret:
                missing.append("TOKEN_SECRET")
            if not self.google_client_id:
                missing.append("GOOGLE_CLIENT_ID")
            if not self.google_client_secret:
                missing.append("GOOGLE_CLIENT_SECRET")
            if not self.redirect_url:
                missing.append("REDIRECT_URL")
            if missing:
                raise ValueError(
                    f"Missing required settings for PETFEEDER_ENV={self.petfeeder_env.value}: "
                    f"{', '.join(missing)}"
                )

        return self

    @property
    def effective_token_secret(self) -> str:
        """Return the configured signing key, or the development key in local/test."""
        return self.token_secret or DEV_TOKEN_SECRET

    @property
    def client_origin_list(self) -> list[str]:
        """Parse comma-separated CLIENT_URL into a list of origins."""
        if self.client_url:
            return [o.strip().rstrip("/") for o in self.client_url.split(",") if o.strip()]
        return []

    @property
    def scope_list(self) -> list[str]:
        """Split OAUTH_SCOPES on whitespace."""
        return self.oauth_scopes.split()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
