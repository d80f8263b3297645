"""Data models for challenges and their curated songs."""

from __future__ import annotations

from typing import Any, Optional, TypedDict


class PredefinedSong(TypedDict, total=False):
    """A curated fallback track attached to a challenge."""

    trackId: str
    title: str
    artist: str
    previewUrl: Optional[str]
    albumImageUrl: Optional[str]


class Challenge(TypedDict, total=False):
    """A challenge document, keyed by the slug of its text."""

    id: str
    text: str
    predefinedSongs: list[PredefinedSong]
    updatedAt: Any
