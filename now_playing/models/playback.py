"""Pydantic models for the currently-playing artifact."""

from pydantic import BaseModel, ConfigDict, Field


class AlbumImage(BaseModel):
    """Album artwork reference as reported by Spotify."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int | None = None
    height: int | None = None


class PlaybackSnapshot(BaseModel):
    """The track currently (or most recently) playing.

    Built once per successful Spotify fetch and never mutated; the next
    successful fetch supersedes it. ``progress`` is not checked against
    ``song_duration``: values are accepted as reported upstream.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    artists: list[str] = Field(default_factory=list, description="Artist names in credited order")
    album: str
    album_images: list[AlbumImage] = Field(default_factory=list)
    is_playing: bool
    progress: int | None = Field(default=None, ge=0, description="Elapsed seconds, absent if nothing is playing")
    song_duration: int = Field(ge=0, description="Track length in whole seconds")
    timestamp: int = Field(description="Capture time, Unix seconds UTC")
