"""FastAPI dependencies for dependency injection."""

import httpx
from fastapi import Request

from now_playing.state_managers import PlaybackCacheManager, SpotifyAuthManager


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Get the shared HTTP client from app state.

    Raises:
        RuntimeError: If HTTP client is not initialized.
    """
    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)

    if client is None:
        raise RuntimeError("HTTP client not initialized. This should never happen.")

    return client


async def get_spotify_auth_manager(request: Request) -> SpotifyAuthManager:
    """
    Get the Spotify credential manager from app state.

    Raises:
        RuntimeError: If Spotify auth manager is not initialized.
    """
    manager: SpotifyAuthManager | None = getattr(request.app.state, "spotify_auth_manager", None)

    if manager is None:
        raise RuntimeError("Spotify auth manager not initialized.")

    return manager


async def get_playback_cache_manager(request: Request) -> PlaybackCacheManager:
    """
    Get the playback cache manager from app state.

    Raises:
        RuntimeError: If playback cache manager is not initialized.
    """
    manager: PlaybackCacheManager | None = getattr(request.app.state, "playback_cache_manager", None)

    if manager is None:
        raise RuntimeError("Playback cache manager not initialized.")

    return manager
