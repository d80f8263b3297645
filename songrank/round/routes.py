from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import jsonify

from songrank.core.payloads import (
    get_json_payload,
    optional_int,
    require_dict,
    require_str,
)
from songrank.core.types import OperationResult

from . import bp
from .models import NominationInput, PlaybackCommand
from .services import RoundService


def _ok(message: str, data: dict[str, Any] | None = None) -> Any:
    response: OperationResult = {"success": True, "message": message, "data": data}
    return jsonify(response)


@bp.route("/<game_id>/rounds/<int:round_id>/challenge", methods=["POST"])
def set_challenge(game_id: str, round_id: int) -> Any:
    """Let the host pick the round's challenge."""
    payload = get_json_payload()
    challenge = require_str(payload, "challenge")
    player_id = require_str(payload, "playerId")

    RoundService.set_challenge(
        firestore.client(), game_id, round_id, challenge, player_id
    )
    return _ok("Challenge set.")


@bp.route("/<game_id>/selection/start", methods=["POST"])
def start_selection_phase(game_id: str) -> Any:
    """Open song selection for the current round."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")

    RoundService.start_selection_phase(firestore.client(), game_id, player_id)
    return _ok("Song selection started.")


@bp.route("/<game_id>/nominations", methods=["POST"])
def submit_song_nomination(game_id: str) -> Any:
    """Nominate a search result or a predefined song."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")
    nomination = NominationInput.from_dict(require_dict(payload, "nominationInput"))

    result = RoundService.submit_song_nomination(
        firestore.client(), game_id, player_id, nomination
    )
    return _ok("Song nominated.", result)


@bp.route("/<game_id>/ranking/start", methods=["POST"])
def start_ranking_phase(game_id: str) -> Any:
    """Move from listening to ranking."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")

    RoundService.start_ranking_phase(firestore.client(), game_id, player_id)
    return _ok("Ranking started.")


@bp.route("/<game_id>/playback", methods=["POST"])
def control_playback(game_id: str) -> Any:
    """Play, pause, skip or seek the shared listening session."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")
    command = PlaybackCommand(
        action=require_str(payload, "action"),
        target_index=optional_int(payload, "targetIndex"),
    )

    state = RoundService.control_playback(
        firestore.client(), game_id, player_id, command
    )
    return _ok("Playback updated.", state)


@bp.route("/<game_id>/rankings", methods=["POST"])
def submit_ranking(game_id: str) -> Any:
    """Submit the player's ranking of the round's songs."""
    payload = get_json_payload()
    player_id = require_str(payload, "playerId")
    rankings = require_dict(payload, "rankings")

    result = RoundService.submit_ranking(
        firestore.client(), game_id, player_id, rankings
    )
    return _ok("Ranking submitted.", result)


@bp.route("/<game_id>/rounds/next", methods=["POST"])
def start_next_round(game_id: str) -> Any:
    """Start the next round, or finish the game after the last one."""
    result = RoundService.start_next_round(firestore.client(), game_id)
    message = "Game finished." if result["gameFinished"] else "Next round started."
    return _ok(message, result)
