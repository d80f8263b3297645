from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify

from . import bp
from .services import ScoringService


@bp.route("/<game_id>/rounds/<int:round_number>/scores", methods=["POST"])
def calculate_scores(game_id: str, round_number: int) -> Any:
    """Score a round by hand, e.g. to recover a game stuck in scoring."""
    current_app.logger.info(
        f"Manual scoring requested for game {game_id} round {round_number}."
    )
    result = ScoringService.calculate_scores(firestore.client(), game_id, round_number)
    return jsonify({"success": True, **result})
