"""Currently-playing API route."""

import httpx
from fastapi import APIRouter, Depends, Request

from now_playing.config import Settings, get_settings
from now_playing.core.middleware import limiter
from now_playing.dependencies import get_http_client, get_playback_cache_manager, get_spotify_auth_manager
from now_playing.models import PlaybackSnapshot
from now_playing.services import spotify_service
from now_playing.state_managers import PlaybackCacheManager, SpotifyAuthManager

router = APIRouter()


def _rate_limit() -> str:
    return get_settings().rate_limit


@router.get(
    "/now-playing",
    response_model=PlaybackSnapshot | None,
    summary="Get the currently playing Spotify track",
    description="""
    Returns the track currently (or most recently) playing on Spotify.

    Served from a 10 second cache when fresh. Returns `null` when nothing
    is playing, an episode is playing, or Spotify could not be reached.
    """,
    responses={
        200: {
            "description": "Current track, or null",
            "content": {
                "application/json": {
                    "example": {
                        "name": "Bohemian Rhapsody",
                        "artists": ["Queen"],
                        "album": "A Night at the Opera",
                        "album_images": [{"url": "https://i.scdn.co/image/abc", "width": 640, "height": 640}],
                        "is_playing": True,
                        "progress": 125,
                        "song_duration": 354,
                        "timestamp": 1760868000,
                    }
                }
            },
        },
        503: {"description": "Spotify credentials missing or refresh token rejected"},
    },
)
@limiter.limit(_rate_limit)
async def get_now_playing(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    auth_manager: SpotifyAuthManager = Depends(get_spotify_auth_manager),
    cache_manager: PlaybackCacheManager = Depends(get_playback_cache_manager),
    settings: Settings = Depends(get_settings),
) -> PlaybackSnapshot | None:
    """Get the current playback snapshot; CredentialError becomes a 503."""
    return await spotify_service.get_current_playing(client, auth_manager, cache_manager, settings)
