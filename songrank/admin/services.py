"""Service layer for the admin dashboard summary."""

from __future__ import annotations

import datetime
import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from songrank.core.constants import (
    GAME_STATUS_FINISHED,
    RECENT_GAMES_LIMIT,
    TOP_SONG_LIMIT,
)
from songrank.challenge import data as challenge_data
from songrank.core.db import to_iso
from songrank.game import data as game_data
from songrank.round import data as round_data

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from songrank.game.models import Game

logger = logging.getLogger(__name__)


def _duration_minutes(game: Game) -> float | None:
    created = game.get("createdAt")
    finished = game.get("finishedAt")
    if not isinstance(created, datetime.datetime) or not isinstance(
        finished, datetime.datetime
    ):
        return None
    return (finished - created).total_seconds() / 60


def _sort_key(game: Game) -> float:
    created = game.get("createdAt")
    if isinstance(created, datetime.datetime):
        return created.timestamp()
    return 0.0


class AdminService:
    """Service class for admin reporting."""

    @staticmethod
    def get_recent_nominations(
        db: Client, completed_games: list[Game], game_limit: int = RECENT_GAMES_LIMIT
    ) -> list[dict[str, str]]:
        """Collect the songs nominated in the most recent finished games."""
        recent = sorted(completed_games, key=_sort_key, reverse=True)[:game_limit]
        nominations = []
        for game in recent:
            for round_doc in round_data.get_rounds(db, game["id"]):
                for submission in (round_doc.get("playerSongs") or {}).values():
                    if not isinstance(submission, dict):
                        continue
                    if submission.get("trackId") and submission.get("name"):
                        nominations.append(
                            {
                                "trackId": str(submission["trackId"]),
                                "title": submission["name"],
                                "artist": submission.get("artist", ""),
                            }
                        )
        return nominations

    @staticmethod
    def calculate_kpis(
        active_games: list[Game],
        completed_games: list[Game],
        nominations: list[dict[str, str]],
    ) -> dict[str, Any]:
        """Compute the headline numbers shown on the dashboard."""
        average_players = (
            sum(game.get("playerCount", 0) for game in active_games)
            / len(active_games)
            if active_games
            else 0
        )

        durations = [
            minutes
            for minutes in (_duration_minutes(game) for game in completed_games)
            if minutes is not None
        ]
        average_duration = sum(durations) / len(durations) if durations else None

        counts = Counter(song["trackId"] for song in nominations)
        details = {song["trackId"]: song for song in nominations}
        top_songs = [
            {
                "trackId": track_id,
                "title": details[track_id]["title"],
                "artist": details[track_id]["artist"],
                "nominationCount": count,
            }
            for track_id, count in counts.most_common(TOP_SONG_LIMIT)
        ]

        return {
            "averagePlayersPerGame": average_players,
            "averageGameDurationMinutes": average_duration,
            "topOverallSongs": top_songs,
        }

    @staticmethod
    def get_dashboard_data(db: Client) -> dict[str, Any]:
        """Summarize active and finished games for the admin dashboard."""
        active_games = game_data.get_games_by_status(db, GAME_STATUS_FINISHED, "!=")
        completed_games = game_data.get_games_by_status(db, GAME_STATUS_FINISHED)
        nominations = AdminService.get_recent_nominations(db, completed_games)
        logger.info(
            f"Dashboard: {len(active_games)} active, "
            f"{len(completed_games)} finished games."
        )
        return {
            "kpis": AdminService.calculate_kpis(
                active_games, completed_games, nominations
            ),
            "activeGames": [
                {
                    "gameId": game["id"],
                    "status": game.get("status", "unknown"),
                    "playerCount": game.get("playerCount", 0),
                    "currentRound": game.get("currentRound", 0),
                    "createdAt": to_iso(game.get("createdAt")) or "N/A",
                }
                for game in sorted(active_games, key=_sort_key)
            ],
            "totals": {
                "activeGames": len(active_games),
                "completedGames": len(completed_games),
            },
        }

    @staticmethod
    def get_challenge_data(db: Client) -> list[dict[str, Any]]:
        """Return every challenge with its predefined songs, sorted by text."""
        challenges = [
            {
                "id": challenge["id"],
                "text": challenge.get("text") or "",
                "predefinedSongs": challenge.get("predefinedSongs") or [],
            }
            for challenge in challenge_data.get_all_challenges(db)
        ]
        challenges.sort(key=lambda challenge: challenge["text"].lower())
        logger.info(f"Found {len(challenges)} challenges.")
        return challenges
