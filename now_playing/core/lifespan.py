"""Application lifespan management."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI

from now_playing import __version__
from now_playing.logging_config import get_logger, log_with_context
from now_playing.middleware.logging_middleware import redact_sensitive_data
from now_playing.state_managers import PlaybackCacheManager, SpotifyAuthManager

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log upstream requests with redacted sensitive data."""
    log_with_context(
        logger,
        "info",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log upstream responses with redacted sensitive data."""
    log_with_context(
        logger,
        "info",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


def create_http_client() -> httpx.AsyncClient:
    """Shared client for all Spotify calls, with granular timeouts and logging hooks."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=5.0,
            read=10.0,
            write=5.0,
            pool=5.0,
        ),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        follow_redirects=True,
        event_hooks=event_hooks,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - startup and shutdown events.

    Exceptions raised after yield are logged and re-raised so cleanup still
    runs.
    """
    log_with_context(
        logger,
        "info",
        "Starting Now Playing service",
        version=__version__,
        event_type="app_startup",
    )

    client = create_http_client()
    app.state.http_client = client
    log_with_context(logger, "info", "HTTP client initialized", event_type="http_client_ready")

    app.state.spotify_auth_manager = SpotifyAuthManager()
    app.state.playback_cache_manager = PlaybackCacheManager()
    await app.state.spotify_auth_manager.initialize()
    await app.state.playback_cache_manager.initialize()

    if not await app.state.spotify_auth_manager.has_credentials():
        log_with_context(
            logger,
            "warning",
            "Spotify access/refresh token not configured",
            event_type="spotify_credentials_missing",
        )

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(logger, "info", "Shutting down Now Playing service", event_type="app_shutdown")

        await app.state.spotify_auth_manager.cleanup()
        await app.state.playback_cache_manager.cleanup()

        await client.aclose()
        log_with_context(logger, "info", "HTTP client closed", event_type="http_client_cleanup")
