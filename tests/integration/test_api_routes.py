"""Integration tests for the HTTP surface."""

from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from now_playing.config import get_settings
from now_playing.dependencies import get_http_client, get_playback_cache_manager, get_spotify_auth_manager
from now_playing.main import app
from now_playing.state_managers import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY


def _mock_response(status_code: int = 200, json_data: dict | None = None) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"Client error '{status_code}'",
            request=MagicMock(spec=httpx.Request),
            response=response,
        )
    return response


@pytest.fixture
def client(mock_http_client, auth_manager, cache_manager, mock_settings):
    """Test client wired to mocked Spotify and in-memory configuration."""
    app.dependency_overrides[get_http_client] = lambda: mock_http_client
    app.dependency_overrides[get_spotify_auth_manager] = lambda: auth_manager
    app.dependency_overrides[get_playback_cache_manager] = lambda: cache_manager
    app.dependency_overrides[get_settings] = lambda: mock_settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health_endpoint(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data


def test_now_playing_returns_snapshot(client, mock_http_client, frozen_now, mock_spotify_playback_response):
    mock_http_client.get.return_value = _mock_response(200, mock_spotify_playback_response)

    response = client.get("/api/now-playing")

    assert response.status_code == 200
    assert response.json() == {
        "name": "Test Song",
        "artists": ["First Artist", "Second Artist"],
        "album": "Test Album",
        "album_images": [
            {"url": "https://i.scdn.co/image/large", "width": 640, "height": 640},
            {"url": "https://i.scdn.co/image/small", "width": 64, "height": 64},
        ],
        "is_playing": True,
        "progress": 60,
        "song_duration": 240,
        "timestamp": frozen_now["now"],
    }


def test_now_playing_second_request_hits_cache(client, mock_http_client, frozen_now, mock_spotify_playback_response):
    mock_http_client.get.return_value = _mock_response(200, mock_spotify_playback_response)

    first = client.get("/api/now-playing")
    frozen_now["now"] += 5
    second = client.get("/api/now-playing")

    assert first.content == second.content
    mock_http_client.get.assert_called_once()


def test_now_playing_nothing_playing_returns_null(client, mock_http_client, frozen_now):
    mock_http_client.get.return_value = _mock_response(204)

    response = client.get("/api/now-playing")

    assert response.status_code == 200
    assert response.json() is None


def test_now_playing_upstream_failure_returns_null(client, mock_http_client, frozen_now):
    mock_http_client.get.return_value = _mock_response(502)

    response = client.get("/api/now-playing")

    assert response.status_code == 200
    assert response.json() is None


def test_now_playing_missing_credentials_returns_503(client, mock_http_client, environ):
    del environ[ACCESS_TOKEN_KEY]

    response = client.get("/api/now-playing")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "SPOTIFY_NOT_AUTHENTICATED"
    mock_http_client.get.assert_not_called()


def test_now_playing_refresh_rejected_flags_readiness(client, mock_http_client, frozen_now):
    mock_http_client.get.return_value = _mock_response(401)
    mock_http_client.post.return_value = _mock_response(400, {"error": "invalid_grant"})

    response = client.get("/api/now-playing")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "SPOTIFY_TOKEN_REFRESH_FAILED"

    ready = client.get("/health/ready")
    assert ready.status_code == 503
    assert ready.json()["checks"]["spotify_credentials"].startswith("failed")


def test_readiness_ok_with_credentials(client):
    response = client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"http_client": "ok", "spotify_credentials": "ok"}


def test_readiness_without_credentials(client, environ):
    del environ[REFRESH_TOKEN_KEY]

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["spotify_credentials"] == "not_configured"


def test_error_handlers_registered():
    from slowapi.errors import RateLimitExceeded

    from now_playing.exceptions import NowPlayingException

    assert NowPlayingException in app.exception_handlers
    assert RateLimitExceeded in app.exception_handlers


def test_app_state_holds_only_shared_resources(client):
    client.get("/health")

    assert hasattr(app.state, "http_client")
    assert hasattr(app.state, "limiter")
    assert not hasattr(app.state, "request_count")
    assert not hasattr(app.state, "startup_time")
