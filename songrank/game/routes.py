from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify

from songrank.core.constants import DEFAULT_TOTAL_ROUNDS
from songrank.core.payloads import (
    get_json_payload,
    optional_int,
    optional_str,
    require_dict,
    require_str,
)
from songrank.core.types import OperationResult

from . import bp
from .services import GameService


@bp.route("", methods=["POST"])
def create_game() -> Any:
    """Create a game and its creator."""
    payload = get_json_payload()
    player_name = require_str(payload, "playerName")
    total_rounds = optional_int(payload, "totalRounds")
    if total_rounds is None:
        total_rounds = DEFAULT_TOTAL_ROUNDS

    result = GameService.create_game(firestore.client(), player_name, total_rounds)
    current_app.logger.info(f"Created game {result['gameId']}.")
    return jsonify(result), 201


@bp.route("/join", methods=["POST"])
def join_game() -> Any:
    """Join a given game, or the oldest open one when no gameId is sent."""
    payload = get_json_payload()
    player_name = require_str(payload, "playerName")
    game_id = optional_str(payload, "gameId")

    result = GameService.join_game(firestore.client(), player_name, game_id)
    return jsonify(result)


@bp.route("/<game_id>/start", methods=["POST"])
def start_game(game_id: str) -> Any:
    """Start a waiting game."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")

    data = GameService.start_game(firestore.client(), game_id, player_id)
    response: OperationResult = {
        "success": True,
        "message": "Game started.",
        "data": data,
    }
    return jsonify(response)


@bp.route("/<game_id>/settings", methods=["POST"])
def update_game_settings(game_id: str) -> Any:
    """Replace the settings of a waiting game."""
    payload = get_json_payload()
    new_settings = require_dict(payload, "newSettings")
    player_id = require_str(payload, "playerId")

    GameService.update_game_settings(
        firestore.client(), game_id, new_settings, player_id
    )
    response: OperationResult = {
        "success": True,
        "message": "Settings updated.",
        "data": None,
    }
    return jsonify(response)
