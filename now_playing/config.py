import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # now-playing/


class Settings(BaseSettings):
    """Application settings with validation.

    Spotify access/refresh tokens and the playback cache are deliberately
    not fields here: they are process-wide mutable state, read at call time
    by the state managers (see state_managers.py).
    """

    # API server settings
    api_host: str = Field(default="127.0.0.1", min_length=1, description="API server host")
    api_port: int = Field(ge=1, le=65535, default=8000, description="API server port")
    log_level: str = Field(default="INFO", description="Root log level")

    # Spotify OAuth client - only needed to refresh an expired access token
    spotify_client_id: str = Field(default="", description="Spotify OAuth client ID")
    spotify_client_secret: str = Field(default="", description="Spotify OAuth client secret")
    spotify_api_base_url: str = Field(
        default="https://api.spotify.com/v1", pattern=r"^https?://", description="Spotify Web API base URL"
    )
    spotify_accounts_url: str = Field(
        default="https://accounts.spotify.com/api/token",
        pattern=r"^https?://",
        description="Spotify Accounts token endpoint",
    )

    # Playback cache
    cache_freshness_seconds: int = Field(default=10, ge=0, description="Max cache age served without refetching")
    cache_idle_state: bool = Field(default=False, description="Also cache the 'nothing playing' state")
    token_lifetime_seconds: int = Field(default=60, ge=1, description="Nominal lifetime of a built bearer token")
    persist_access_token: bool = Field(default=False, description="Write refreshed access tokens to .env")

    # HTTP surface
    cors_origins: str = Field(default="http://localhost:3000", description="Comma-separated CORS origins")
    rate_limit: str = Field(default="60/minute", description="slowapi limit for the now-playing endpoint")

    model_config = SettingsConfigDict(
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    @field_validator("api_host", mode="after")
    @classmethod
    def validate_api_host(cls, v: str) -> str:
        """Ensure api_host is not empty or whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("api_host cannot be empty")
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level names a standard logging level."""
        v = v.strip().upper()
        if v not in logging.getLevelNamesMapping():
            raise ValueError(f"log_level must be a standard logging level, got {v!r}")
        return v

    @field_validator("spotify_client_id", "spotify_client_secret", mode="after")
    @classmethod
    def strip_client_credentials(cls, v: str) -> str:
        return v.strip()

    def get_cors_origins(self) -> list[str]:
        """Split cors_origins into a list, dropping blanks."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Singleton settings instance (cached for performance)
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get singleton Settings instance for dependency injection.

    Avoids re-reading the .env file on every request. Use with FastAPI's
    Depends().

    Returns:
        Cached Settings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached Settings instance (used by tests)."""
    global _settings_instance
    _settings_instance = None
