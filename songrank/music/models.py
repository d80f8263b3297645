"""Data models for music catalog results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Track:
    """A track returned by a music catalog provider."""

    track_id: str
    name: str
    artist_name: str
    album_name: Optional[str] = None
    preview_url: Optional[str] = None
    album_image_url: Optional[str] = None
    duration_ms: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape clients submit back as searchResult."""
        return {
            "trackId": self.track_id,
            "name": self.name,
            "artistName": self.artist_name,
            "artist": self.artist_name,
            "albumName": self.album_name,
            "previewUrl": self.preview_url,
            "albumImageUrl": self.album_image_url,
            "durationMs": self.duration_ms,
        }
