"""Spotify currently-playing service.

Serves the playback snapshot from the cache while it is fresh and otherwise
fetches it from the Spotify Web API, refreshing an expired access token
once per request.
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from now_playing.cache import CacheGate, serialize_snapshot, utc_timestamp
from now_playing.config import Settings, get_settings
from now_playing.exceptions import (
    CredentialError,
    SpotifyAPIException,
    SpotifyAuthException,
    SpotifyException,
    SpotifyTokenRefreshException,
)
from now_playing.logging_config import get_logger, log_with_context
from now_playing.models import AlbumImage, PlaybackSnapshot
from now_playing.state_managers import (
    ACCESS_TOKEN_KEY,
    PlaybackCacheManager,
    SpotifyAuthManager,
    SpotifyCredentials,
)
from now_playing.utils.env_updater import get_env_path, update_env_file

logger = get_logger(__name__)

SPOTIFY_SCOPES = ("user-read-currently-playing",)


@dataclass(frozen=True)
class SpotifyToken:
    """Bearer token used for a single round of Spotify calls."""

    access_token: str
    refresh_token: str | None
    expires_in: int
    scopes: tuple[str, ...] = SPOTIFY_SCOPES
    expires_at: float = 0.0

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def build_token(credentials: SpotifyCredentials, lifetime_seconds: int = 60) -> SpotifyToken:
    """Build a short-lived bearer token from the stored token pair.

    The lifetime is nominal: Spotify decides when the access token actually
    expires, which shows up as a 401.
    """
    return SpotifyToken(
        access_token=credentials.access_token,
        refresh_token=credentials.refresh_token,
        expires_in=lifetime_seconds,
        expires_at=time.time() + lifetime_seconds,
    )


async def get_currently_playing(
    client: httpx.AsyncClient,
    token: SpotifyToken,
    settings: Settings | None = None,
) -> dict[str, Any] | None:
    """
    Get the user's currently playing item from Spotify.

    Args:
        client: Shared HTTP client from dependency injection.
        token: Bearer token to authenticate with.
        settings: Settings instance (defaults to singleton)

    Returns:
        Decoded response body, or None when nothing is playing (HTTP 204).

    Raises:
        SpotifyAuthException: If Spotify answers 401.
        SpotifyAPIException: On any other HTTP or transport failure.
    """
    if settings is None:
        settings = get_settings()

    try:
        response = await client.get(
            f"{settings.spotify_api_base_url}/me/player/currently-playing",
            headers=token.headers,
            timeout=10.0,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        if status_code == 401:
            raise SpotifyAuthException(details={"status_code": status_code}) from e
        raise SpotifyAPIException(
            f"Failed to get playback state: {str(e)}",
            status_code=status_code,
            details={"status_code": status_code},
        ) from e
    except httpx.HTTPError as e:
        raise SpotifyAPIException(f"Failed to get playback state: {str(e)}") from e

    if response.status_code == 204:
        return None

    try:
        data = response.json()
    except ValueError as e:
        raise SpotifyAPIException(f"Invalid Spotify playback response: {str(e)}") from e

    if not isinstance(data, dict):
        raise SpotifyAPIException("Invalid Spotify playback response: body is not an object")
    return data


async def refresh_access_token(
    client: httpx.AsyncClient,
    refresh_token: str,
    settings: Settings | None = None,
    client_id: str | None = None,
    client_secret: str | None = None,
) -> SpotifyToken:
    """
    Exchange the refresh token for a new access token.

    Client credentials default to the values in settings.

    Args:
        client: Shared HTTP client from dependency injection.
        refresh_token: Long-lived refresh token.
        settings: Settings instance (defaults to singleton)
        client_id: Spotify app client id (defaults to settings)
        client_secret: Spotify app client secret (defaults to settings)

    Returns:
        Newly issued token. ``refresh_token`` is the rotated one if Spotify
        issued it, else the one passed in.

    Raises:
        SpotifyTokenRefreshException: If client credentials are missing or
            the exchange fails.
    """
    if settings is None:
        settings = get_settings()

    if client_id is None:
        client_id = settings.spotify_client_id
    if client_secret is None:
        client_secret = settings.spotify_client_secret

    if not client_id or not client_secret:
        raise SpotifyTokenRefreshException("Spotify client credentials not configured")

    try:
        response = await client.post(
            settings.spotify_accounts_url,
            auth=(client_id, client_secret),
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            timeout=10.0,
        )
        response.raise_for_status()
        data = response.json()
        access_token = data["access_token"]
        expires_in = int(data.get("expires_in", 3600))
    except httpx.HTTPStatusError as e:
        raise SpotifyTokenRefreshException(
            f"Failed to refetch token: {str(e)}",
            details={"status_code": e.response.status_code},
        ) from e
    except httpx.HTTPError as e:
        raise SpotifyTokenRefreshException(f"Failed to refetch token: {str(e)}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise SpotifyTokenRefreshException(f"Invalid Spotify token response: {str(e)}") from e

    scope = data.get("scope")
    return SpotifyToken(
        access_token=access_token,
        refresh_token=data.get("refresh_token") or refresh_token,
        expires_in=expires_in,
        scopes=tuple(scope.split()) if scope else SPOTIFY_SCOPES,
        expires_at=time.time() + expires_in,
    )


def is_episode(playback: dict[str, Any]) -> bool:
    """Podcast episodes are not supported as snapshots.

    Raises:
        SpotifyAPIException: If the item is present but not an object.
    """
    item = playback.get("item") or {}
    if not isinstance(item, dict):
        raise SpotifyAPIException("Invalid Spotify playback response: item is not an object")
    return playback.get("currently_playing_type") == "episode" or item.get("type") == "episode"


def build_snapshot(playback: dict[str, Any], captured_at: int) -> PlaybackSnapshot | None:
    """Build a snapshot from a currently-playing response.

    Returns None when nothing is playing or the item is an episode.
    Durations are truncated to whole seconds.

    Raises:
        SpotifyAPIException: If the track payload is malformed.
    """
    item = playback.get("item")
    if not item or is_episode(playback):
        return None

    progress_ms = playback.get("progress_ms")
    try:
        album = item["album"]
        return PlaybackSnapshot(
            name=item["name"],
            artists=[artist["name"] for artist in item.get("artists", [])],
            album=album["name"],
            album_images=[
                AlbumImage(url=image["url"], width=image.get("width"), height=image.get("height"))
                for image in album.get("images", [])
            ],
            is_playing=bool(playback.get("is_playing", False)),
            progress=progress_ms // 1000 if progress_ms is not None else None,
            song_duration=item["duration_ms"] // 1000,
            timestamp=captured_at,
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise SpotifyAPIException(f"Invalid Spotify track payload: {str(e)}") from e


class PlaybackFetcher:
    """Fetches playback from Spotify and writes successful results to the cache.

    Per call: one playback request; on 401 one token refresh and exactly one
    retry. Non-401 failures yield None without retrying and leave the cache
    untouched. Credential problems raise CredentialError and are recorded
    on the auth manager.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        auth_manager: SpotifyAuthManager,
        cache_manager: PlaybackCacheManager,
        settings: Settings | None = None,
    ):
        self._client = client
        self._auth_manager = auth_manager
        self._cache_manager = cache_manager
        self._settings = settings or get_settings()

    async def fetch_and_refresh(self) -> PlaybackSnapshot | None:
        try:
            return await self._fetch()
        except CredentialError as e:
            await self._auth_manager.record_credential_error(e.message)
            log_with_context(
                logger,
                "critical",
                "Spotify credentials unusable, operator action required",
                error_code=e.code.value,
                error=e.message,
                event_type="spotify_credential_error",
            )
            raise

    async def _fetch(self) -> PlaybackSnapshot | None:
        credentials = await self._auth_manager.get_credentials()
        token = build_token(credentials, self._settings.token_lifetime_seconds)

        log_with_context(logger, "info", "Fetching from Spotify", event_type="spotify_fetch")

        try:
            playback = await get_currently_playing(self._client, token, self._settings)
        except SpotifyAuthException:
            log_with_context(
                logger,
                "info",
                "Spotify access token rejected, refreshing",
                event_type="spotify_token_expired",
            )
            token = await self._refresh(credentials)
            return await self._retry(token)
        except SpotifyAPIException as e:
            self._log_failure(e, attempt="initial")
            return None

        await self._auth_manager.clear_credential_error()
        return await self._complete(playback)

    async def _refresh(self, credentials: SpotifyCredentials) -> SpotifyToken:
        client_id, client_secret = await self._auth_manager.get_client_credentials(
            self._settings.spotify_client_id, self._settings.spotify_client_secret
        )
        token = await refresh_access_token(
            self._client,
            credentials.refresh_token,
            self._settings,
            client_id=client_id,
            client_secret=client_secret,
        )

        await self._auth_manager.set_access_token(token.access_token)
        if token.refresh_token and token.refresh_token != credentials.refresh_token:
            await self._auth_manager.set_refresh_token(token.refresh_token)
        await self._auth_manager.clear_credential_error()

        log_with_context(
            logger,
            "info",
            "Spotify access token refreshed",
            expires_in=token.expires_in,
            refresh_token_rotated=token.refresh_token != credentials.refresh_token,
            event_type="spotify_token_refreshed",
        )

        if self._settings.persist_access_token:
            self._persist_access_token(token.access_token)

        return token

    async def _retry(self, token: SpotifyToken) -> PlaybackSnapshot | None:
        try:
            playback = await get_currently_playing(self._client, token, self._settings)
        except (SpotifyAuthException, SpotifyAPIException) as e:
            # Never refresh twice in one call
            self._log_failure(e, attempt="retry")
            return None
        return await self._complete(playback)

    async def _complete(self, playback: dict[str, Any] | None) -> PlaybackSnapshot | None:
        captured_at = utc_timestamp()

        if playback is None or not playback.get("item"):
            if self._settings.cache_idle_state:
                await self._write_cache(None, captured_at)
            log_with_context(logger, "debug", "Nothing playing on Spotify", event_type="spotify_idle")
            return None

        try:
            if is_episode(playback):
                log_with_context(logger, "debug", "Episode playing, not supported", event_type="spotify_episode")
                return None
            snapshot = build_snapshot(playback, captured_at)
        except SpotifyAPIException as e:
            self._log_failure(e, attempt="parse")
            return None

        await self._write_cache(snapshot, captured_at)
        return snapshot

    async def _write_cache(self, snapshot: PlaybackSnapshot | None, captured_at: int) -> None:
        try:
            value = serialize_snapshot(snapshot)
        except ValueError as e:
            log_with_context(
                logger,
                "error",
                "Failed to serialize playback snapshot, cache not updated",
                error=str(e),
                event_type="cache_serialize_failed",
            )
            return
        await self._cache_manager.store(value, captured_at)

    def _persist_access_token(self, access_token: str) -> None:
        try:
            update_env_file(get_env_path(), ACCESS_TOKEN_KEY, access_token)
        except (OSError, ValueError) as e:
            log_with_context(
                logger,
                "warning",
                "Could not persist refreshed access token",
                error=str(e),
                event_type="spotify_token_persist_failed",
            )

    @staticmethod
    def _log_failure(exc: SpotifyException, attempt: str) -> None:
        log_with_context(
            logger,
            "warning",
            "Spotify playback fetch failed",
            attempt=attempt,
            error=exc.message,
            status_code=exc.details.get("status_code"),
            event_type="spotify_fetch_failed",
        )


async def get_current_playing(
    client: httpx.AsyncClient,
    auth_manager: SpotifyAuthManager,
    cache_manager: PlaybackCacheManager,
    settings: Settings | None = None,
) -> PlaybackSnapshot | None:
    """
    Get the currently playing track, from cache when fresh.

    Args:
        client: Shared HTTP client from dependency injection.
        auth_manager: Spotify credential state manager
        cache_manager: Playback cache state manager
        settings: Settings instance (defaults to singleton)

    Returns:
        PlaybackSnapshot, or None when nothing (supported) is playing or
        Spotify could not be reached.

    Raises:
        CredentialError: If the stored credentials are missing or the
            refresh token was rejected.
    """
    if settings is None:
        settings = get_settings()

    gate = CacheGate(cache_manager, settings.cache_freshness_seconds)
    entry = await gate.lookup()
    if entry is not None and (entry.snapshot is not None or settings.cache_idle_state):
        return entry.snapshot

    fetcher = PlaybackFetcher(client, auth_manager, cache_manager, settings)
    return await fetcher.fetch_and_refresh()
