"""Tests for playback models."""

import pytest
from pydantic import ValidationError

from now_playing.models import AlbumImage, PlaybackSnapshot


def _snapshot(**overrides) -> PlaybackSnapshot:
    fields = {
        "name": "Test Song",
        "artists": ["Test Artist"],
        "album": "Test Album",
        "album_images": [AlbumImage(url="https://i.scdn.co/image/large", width=640, height=640)],
        "is_playing": True,
        "progress": 10,
        "song_duration": 240,
        "timestamp": 1_760_868_000,
    }
    fields.update(overrides)
    return PlaybackSnapshot(**fields)


def test_snapshot_is_immutable():
    snapshot = _snapshot()

    with pytest.raises(ValidationError):
        snapshot.name = "Other Song"


def test_snapshot_rejects_negative_durations():
    with pytest.raises(ValidationError):
        _snapshot(progress=-1)
    with pytest.raises(ValidationError):
        _snapshot(song_duration=-1)


def test_snapshot_json_field_names():
    data = _snapshot(progress=None).model_dump(mode="json")

    assert set(data) == {
        "name",
        "artists",
        "album",
        "album_images",
        "is_playing",
        "progress",
        "song_duration",
        "timestamp",
    }
    assert data["progress"] is None
    assert data["album_images"] == [{"url": "https://i.scdn.co/image/large", "width": 640, "height": 640}]


def test_album_image_dimensions_optional():
    image = AlbumImage(url="https://i.scdn.co/image/x")

    assert image.width is None
    assert image.height is None
