"""Admin routes for the application."""

from firebase_admin import firestore
from flask import current_app, jsonify

from songrank.challenge.services import ChallengeService
from songrank.core.constants import SONGS_PER_CHALLENGE
from songrank.core.payloads import get_json_payload, optional_int
from songrank.errors import ValidationError
from songrank.music.provider import get_music_provider

from . import bp
from .decorators import admin_required
from .services import AdminService


@bp.route("/dashboard", methods=["GET"])
@admin_required
def dashboard():
    """Return the admin dashboard summary."""
    return jsonify(AdminService.get_dashboard_data(firestore.client()))


@bp.route("/challenges", methods=["GET"])
@admin_required
def challenges():
    """Return every challenge document for review."""
    return jsonify({"challenges": AdminService.get_challenge_data(firestore.client())})


@bp.route("/challenges/populate", methods=["POST"])
@admin_required
def populate_challenges():
    """Seed challenge documents with songs from the music catalog."""
    payload = get_json_payload()
    challenges = payload.get("challenges")
    if not isinstance(challenges, list) or not challenges:
        raise ValidationError("challenges must be a non-empty list of strings.")
    songs_per_challenge = optional_int(payload, "songsPerChallenge")
    if songs_per_challenge is None:
        songs_per_challenge = SONGS_PER_CHALLENGE

    report = ChallengeService.populate_challenges(
        firestore.client(),
        get_music_provider(),
        challenges,
        songs_per_challenge=songs_per_challenge,
    )
    current_app.logger.info(f"Challenge population finished: {report}")
    return jsonify({"success": True, **report})
