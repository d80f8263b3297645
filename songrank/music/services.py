"""Service layer for catalog searches made during a game."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from songrank.errors import ValidationError
from songrank.game import data as game_data

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from .provider import MusicProvider

logger = logging.getLogger(__name__)


class MusicService:
    """Service class for music search."""

    @staticmethod
    def search_music_tracks(  # noqa: PLR0913
        db: Client,
        provider: MusicProvider,
        query: str,
        game_id: str,
        player_id: str,
        allow_explicit: bool | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Search the catalog, honouring the game's explicit content setting."""
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query is required.")

        if allow_explicit is None:
            game = game_data.get_game(db, game_id)
            settings = (game or {}).get("settings") or {}
            allow_explicit = bool(settings.get("allowExplicit", True))

        tracks = provider.search_tracks(query, allow_explicit=allow_explicit, limit=limit)
        logger.info(
            f"Search {query!r} by player {player_id} in game {game_id} "
            f"returned {len(tracks)} tracks."
        )
        return [track.to_dict() for track in tracks]
