from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import jsonify, request

from songrank.errors import ValidationError

from . import bp
from .services import ChallengeService


@bp.route("", methods=["GET"])
def get_predefined_challenges() -> Any:
    """List the text of every predefined challenge."""
    challenges = ChallengeService.get_predefined_challenges(firestore.client())
    return jsonify({"success": True, "challenges": challenges})


@bp.route("/details", methods=["GET"])
def get_challenge_details() -> Any:
    """Return the predefined songs of one challenge."""
    challenge_text = request.args.get("text", "")
    if not challenge_text.strip():
        raise ValidationError("text query parameter is required.")
    songs = ChallengeService.get_challenge_details(firestore.client(), challenge_text)
    return jsonify({"success": True, "predefinedSongs": songs})
