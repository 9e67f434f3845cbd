"""Now Playing models"""

from now_playing.models.base_models import DetailedHealthResponse, HealthResponse
from now_playing.models.playback import AlbumImage, PlaybackSnapshot

__all__ = [
    "AlbumImage",
    "DetailedHealthResponse",
    "HealthResponse",
    "PlaybackSnapshot",
]
