from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify

from songrank.core.payloads import (
    get_json_payload,
    optional_bool,
    optional_int,
    require_str,
)
from songrank.errors import ValidationError

from . import bp
from .provider import get_music_provider
from .services import MusicService


@bp.route("/search", methods=["POST"])
def search_music_tracks() -> Any:
    """Search the music catalog for songs to nominate."""
    payload = get_json_payload()
    query = require_str(payload, "query")
    game_id = require_str(payload, "gameId")
    player_id = require_str(payload, "playerId")
    allow_explicit = optional_bool(payload, "allowExplicit")
    limit = optional_int(payload, "limit")
    if limit is None:
        limit = current_app.config["MUSIC_SEARCH_LIMIT"]
    elif limit < 1:
        raise ValidationError("limit must be a positive integer.")

    results = MusicService.search_music_tracks(
        firestore.client(),
        get_music_provider(),
        query,
        game_id,
        player_id,
        allow_explicit=allow_explicit,
        limit=max(1, min(limit, 50)),
    )
    return jsonify({"success": True, "results": results})
