"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock

import httpx
import pytest

from now_playing.config import Settings
from now_playing.state_managers import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    PlaybackCacheManager,
    SpotifyAuthManager,
)

NOW = 1_760_868_000


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for Spotify calls."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get = AsyncMock()
    mock_client.post = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def mock_settings():
    """Settings instance with test values, isolated from any .env file."""
    return Settings(
        _env_file=None,
        api_host="127.0.0.1",
        api_port=8000,
        spotify_client_id="test-spotify-client-id",
        spotify_client_secret="test-spotify-client-secret",
    )


@pytest.fixture
def environ():
    """Process configuration stand-in holding a valid token pair."""
    return {
        ACCESS_TOKEN_KEY: "test-access-token",
        REFRESH_TOKEN_KEY: "test-refresh-token",
    }


@pytest.fixture
def auth_manager(environ):
    return SpotifyAuthManager(environ)


@pytest.fixture
def cache_manager(environ):
    return PlaybackCacheManager(environ)


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the UTC clock used by the cache gate and the fetcher."""
    clock = {"now": NOW}

    def fake_now() -> int:
        return clock["now"]

    monkeypatch.setattr("now_playing.cache.utc_timestamp", fake_now)
    monkeypatch.setattr("now_playing.services.spotify_service.utc_timestamp", fake_now)
    return clock


@pytest.fixture
def mock_spotify_playback_response():
    """Currently-playing response for a track."""
    return {
        "timestamp": 1760867990000,
        "context": None,
        "progress_ms": 60750,
        "item": {
            "type": "track",
            "name": "Test Song",
            "artists": [{"name": "First Artist"}, {"name": "Second Artist"}],
            "album": {
                "name": "Test Album",
                "images": [
                    {"url": "https://i.scdn.co/image/large", "width": 640, "height": 640},
                    {"url": "https://i.scdn.co/image/small", "width": 64, "height": 64},
                ],
            },
            "duration_ms": 240999,
            "uri": "spotify:track:test123",
        },
        "currently_playing_type": "track",
        "is_playing": True,
    }


@pytest.fixture
def mock_spotify_episode_response():
    """Currently-playing response for a podcast episode."""
    return {
        "progress_ms": 1000,
        "item": {
            "type": "episode",
            "name": "Test Episode",
            "duration_ms": 1800000,
            "show": {"name": "Test Show"},
        },
        "currently_playing_type": "episode",
        "is_playing": True,
    }


@pytest.fixture
def mock_token_response():
    """Accounts service response to a refresh-token grant."""
    return {
        "access_token": "new-access-token",
        "token_type": "Bearer",
        "scope": "user-read-currently-playing",
        "expires_in": 3600,
    }
