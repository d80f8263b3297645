"""Deezer implementation of the music catalog."""

from __future__ import annotations

import logging
from typing import Any

import requests

from .models import Track
from .provider import MusicProvider, MusicProviderError

logger = logging.getLogger(__name__)

DEEZER_API_BASE_URL = "https://api.deezer.com"
# Deezer flags: 0 clean, 1 explicit, 2 unknown
EXPLICIT_FLAGS = (1, 2)


def _is_explicit(raw: dict[str, Any]) -> bool:
    lyrics = raw.get("explicit_lyrics")
    cover = raw.get("explicit_content_cover")
    return lyrics in EXPLICIT_FLAGS or cover in EXPLICIT_FLAGS


def track_from_deezer(raw: dict[str, Any]) -> Track:
    """Map a Deezer track object onto a Track."""
    album = raw.get("album") or {}
    artist = raw.get("artist") or {}
    duration = raw.get("duration")
    return Track(
        track_id=str(raw["id"]),
        name=raw.get("title", ""),
        artist_name=artist.get("name", "Unknown Artist"),
        album_name=album.get("title"),
        preview_url=raw.get("preview") or None,
        album_image_url=album.get("cover_small") or album.get("cover"),
        duration_ms=int(duration) * 1000 if duration else None,
    )


class DeezerMusicProvider(MusicProvider):
    """Search and look up tracks through the public Deezer API."""

    name = "deezer"

    def __init__(self, base_url: str = DEEZER_API_BASE_URL, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Deezer request to {path} failed: {e}")
            raise MusicProviderError(original=e) from e
        except ValueError as e:
            logger.error(f"Deezer returned invalid JSON for {path}: {e}")
            raise MusicProviderError(original=e) from e
        if not isinstance(payload, dict):
            raise MusicProviderError("Unexpected response from the music catalog.")
        return payload

    def search_tracks(
        self, query: str, allow_explicit: bool = True, limit: int = 10
    ) -> list[Track]:
        """Search Deezer, dropping explicit or unknown-rating tracks on request."""
        payload = self._get("/search", {"q": query, "limit": limit})
        if "error" in payload:
            error = payload["error"] or {}
            logger.error(f"Deezer search error for {query!r}: {error}")
            raise MusicProviderError(
                f"Music catalog error: {error.get('message', 'unknown error')}"
            )

        raw_tracks = [raw for raw in payload.get("data", []) if raw.get("id")]
        if not allow_explicit:
            kept = [raw for raw in raw_tracks if not _is_explicit(raw)]
            logger.info(
                f"Filtered {len(raw_tracks) - len(kept)} explicit tracks for {query!r}."
            )
            raw_tracks = kept
        return [track_from_deezer(raw) for raw in raw_tracks[:limit]]
