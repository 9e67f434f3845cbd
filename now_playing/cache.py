"""Freshness gate for the single-slot playback cache."""

from datetime import UTC, datetime

from pydantic import TypeAdapter, ValidationError

from now_playing.logging_config import get_logger, log_with_context
from now_playing.models import PlaybackSnapshot
from now_playing.state_managers import PlaybackCacheManager

logger = get_logger(__name__)

DEFAULT_FRESHNESS_SECONDS = 10

# Cached values are "snapshot or null", so the adapter covers the Optional
_snapshot_adapter: TypeAdapter[PlaybackSnapshot | None] = TypeAdapter(PlaybackSnapshot | None)


def utc_timestamp() -> int:
    """Current time as whole Unix seconds (UTC)."""
    return int(datetime.now(UTC).timestamp())


def serialize_snapshot(snapshot: PlaybackSnapshot | None) -> str:
    """Encode a snapshot (or the idle state) in the cache format."""
    return _snapshot_adapter.dump_json(snapshot).decode("utf-8")


def deserialize_snapshot(value: str) -> PlaybackSnapshot | None:
    """Decode a cached value.

    Raises:
        ValidationError: If the value is not valid JSON for the cache format
    """
    return _snapshot_adapter.validate_json(value)


class CacheEntry:
    """A decoded cache slot with its capture time."""

    def __init__(self, snapshot: PlaybackSnapshot | None, captured_at: int):
        self.snapshot = snapshot
        self.captured_at = captured_at


class CacheGate:
    """Decides whether the stored playback snapshot can be served as is.

    Read-only: only the playback fetcher writes to the cache. Stale entries
    are left in place for the next successful fetch to overwrite.
    """

    def __init__(self, cache_manager: PlaybackCacheManager, freshness_seconds: int = DEFAULT_FRESHNESS_SECONDS):
        self._cache_manager = cache_manager
        self._freshness_seconds = freshness_seconds

    async def lookup(self) -> CacheEntry | None:
        """Return the fresh cache entry, or None on a miss.

        A returned entry may hold ``snapshot=None`` when the idle state was
        cached; that is a hit, not a miss. Unparseable timestamps or values
        are logged and treated as misses.
        """
        stored = await self._cache_manager.read()
        if stored is None:
            return None

        try:
            captured_at = int(stored.timestamp)
        except ValueError as e:
            log_with_context(
                logger,
                "error",
                "Invalid cache timestamp",
                error=str(e),
                event_type="cache_timestamp_invalid",
            )
            return None

        entry_age = utc_timestamp() - captured_at
        if entry_age > self._freshness_seconds:
            log_with_context(
                logger,
                "debug",
                "Cache stale",
                cache_age=entry_age,
                freshness_seconds=self._freshness_seconds,
                event_type="cache_stale",
            )
            return None

        try:
            snapshot = deserialize_snapshot(stored.value)
        except ValidationError as e:
            log_with_context(
                logger,
                "error",
                "Invalid cached playback value",
                error=str(e),
                event_type="cache_value_invalid",
            )
            return None

        log_with_context(
            logger,
            "info",
            "Fetched from cache",
            cache_age=entry_age,
            event_type="cache_hit",
        )
        return CacheEntry(snapshot, captured_at)

    async def try_get_cached(self) -> PlaybackSnapshot | None:
        """Return the cached snapshot if the slot is fresh, else None."""
        entry = await self.lookup()
        return entry.snapshot if entry is not None else None
