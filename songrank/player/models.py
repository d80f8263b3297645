"""Data models for players."""

from __future__ import annotations

from typing import Any

from songrank.core.types import FirestoreDocument


class Player(FirestoreDocument, total=False):
    """A player document, stored under games/{gameId}/players."""

    name: str
    score: int
    hasJoined: bool
    jokerAvailable: bool
    isCreator: bool
    joinedAt: Any
