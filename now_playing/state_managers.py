"""State managers for process-wide mutable state.

Spotify credentials and the single-slot playback cache live in the process
configuration (environment variables by default) and are read at call
time. Each manager serializes access to its own keys with an asyncio.Lock;
the cache value and its timestamp are always written together.
"""

import asyncio
import os
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import NamedTuple

from now_playing.exceptions import SpotifyNotAuthenticatedException

ACCESS_TOKEN_KEY = "SPOTIFY_ACCESS_TOKEN"
REFRESH_TOKEN_KEY = "SPOTIFY_REFRESH_TOKEN"
CACHE_KEY = "SPOTIFY_CACHE"
CACHE_TIMESTAMP_KEY = "SPOTIFY_CACHE_TIMEOUT"
CLIENT_ID_KEY = "SPOTIFY_CLIENT_ID"
CLIENT_SECRET_KEY = "SPOTIFY_CLIENT_SECRET"


class SpotifyCredentials(NamedTuple):
    access_token: str
    refresh_token: str


class StoredCache(NamedTuple):
    """Raw cache slot contents, exactly as found in configuration."""

    value: str
    timestamp: str


class StateManager(ABC):
    """Base class for all state managers.

    Subclasses wrap a mutable mapping (``os.environ`` unless one is
    injected) and implement the lifecycle hooks called by the app lifespan.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ
        self._lock = asyncio.Lock()

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class SpotifyAuthManager(StateManager):
    """Owns the Spotify access/refresh token pair.

    Also remembers the last credential failure so readiness checks can flag
    the deployment for operator attention.
    """

    def __init__(self, environ: MutableMapping[str, str] | None = None):
        super().__init__(environ)
        self._credential_error: str | None = None

    async def initialize(self) -> None:
        async with self._lock:
            self._credential_error = None

    async def cleanup(self) -> None:
        async with self._lock:
            self._credential_error = None

    async def get_credentials(self) -> SpotifyCredentials:
        """Read the token pair from configuration.

        Raises:
            SpotifyNotAuthenticatedException: If either token is missing or empty
        """
        async with self._lock:
            access_token = self._environ.get(ACCESS_TOKEN_KEY)
            refresh_token = self._environ.get(REFRESH_TOKEN_KEY)

        if not access_token or not refresh_token:
            missing = [
                key
                for key, value in ((ACCESS_TOKEN_KEY, access_token), (REFRESH_TOKEN_KEY, refresh_token))
                if not value
            ]
            raise SpotifyNotAuthenticatedException(details={"missing": missing})

        return SpotifyCredentials(access_token=access_token, refresh_token=refresh_token)

    async def get_client_credentials(self, default_id: str = "", default_secret: str = "") -> tuple[str, str]:
        """Read the app client id and secret, falling back to the given defaults."""
        async with self._lock:
            client_id = self._environ.get(CLIENT_ID_KEY, "").strip() or default_id
            client_secret = self._environ.get(CLIENT_SECRET_KEY, "").strip() or default_secret
        return client_id, client_secret

    async def has_credentials(self) -> bool:
        async with self._lock:
            return bool(self._environ.get(ACCESS_TOKEN_KEY)) and bool(self._environ.get(REFRESH_TOKEN_KEY))

    async def set_access_token(self, access_token: str) -> None:
        """Overwrite the stored access token; the refresh token is left alone."""
        async with self._lock:
            self._environ[ACCESS_TOKEN_KEY] = access_token

    async def set_refresh_token(self, refresh_token: str) -> None:
        """Store a rotated refresh token issued by the Accounts service."""
        async with self._lock:
            self._environ[REFRESH_TOKEN_KEY] = refresh_token

    async def record_credential_error(self, message: str) -> None:
        async with self._lock:
            self._credential_error = message

    async def clear_credential_error(self) -> None:
        async with self._lock:
            self._credential_error = None

    async def get_credential_error(self) -> str | None:
        """Last recorded credential failure, or None if credentials last worked."""
        async with self._lock:
            return self._credential_error


class PlaybackCacheManager(StateManager):
    """Owns the single-slot playback cache (serialized value + timestamp)."""

    async def initialize(self) -> None:
        # A cache left in the environment by a previous run is still valid
        pass

    async def cleanup(self) -> None:
        pass

    async def read(self) -> StoredCache | None:
        """Return the raw slot, or None if either half has never been written."""
        async with self._lock:
            value = self._environ.get(CACHE_KEY)
            timestamp = self._environ.get(CACHE_TIMESTAMP_KEY)

        if value is None or timestamp is None:
            return None
        return StoredCache(value=value, timestamp=timestamp)

    async def store(self, value: str, timestamp: int) -> None:
        """Overwrite value and timestamp as one operation."""
        async with self._lock:
            self._environ[CACHE_KEY] = value
            self._environ[CACHE_TIMESTAMP_KEY] = str(timestamp)
