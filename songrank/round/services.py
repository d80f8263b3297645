"""Service layer for the round phase state machine.

A round moves through announcing, selecting_songs, listening, ranking,
scoring and finished. The game document mirrors the phase as
``round{N}_{phase}``. Each operation below runs as one Firestore transaction:
every read happens first, then the guards, then the writes, so a concurrent
submission is serialized by the store and only one writer observes the
"everyone has submitted" condition.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from songrank.challenge import data as challenge_data
from songrank.core.constants import (
    GAME_STATUS_FINISHED,
    PHASE_ANNOUNCING,
    PHASE_FINISHED,
    PHASE_LISTENING,
    PHASE_RANKING,
    PHASE_SCORING,
    PHASE_SELECTING,
    ROUND_STATUS_ANNOUNCING,
    ROUND_STATUS_LISTENING,
    ROUND_STATUS_RANKING,
    ROUND_STATUS_SCORING,
    ROUND_STATUS_SELECTING,
)
from songrank.core.utils import round_status
from songrank.errors import (
    DuplicateResourceError,
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from songrank.game import data as game_data
from songrank.game.models import configured_rounds
from songrank.player import data as player_data

from . import data as round_data
from .models import NominationInput, PlaybackCommand, SongSubmission, validate_rankings
from .song_pool import build_song_pool

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

    from songrank.challenge.models import Challenge, PredefinedSong
    from songrank.game.models import Game
    from songrank.round.models import Round

logger = logging.getLogger(__name__)


def placeholder_challenge(round_number: int) -> str:
    """Prompt shown on the game until the host picks the real challenge."""
    return f"Challenge for Round {round_number}!"


def _load_game(db: Client, game_id: str, transaction: Transaction) -> Game:
    game = game_data.get_game(db, game_id, transaction)
    if game is None:
        raise NotFoundError(f"Game {game_id} not found.")
    return game


def _load_round(
    db: Client, game_id: str, round_number: int, transaction: Transaction
) -> Round:
    round_doc = round_data.get_round(db, game_id, round_number, transaction)
    if round_doc is None:
        raise NotFoundError(f"Round {round_number} of game {game_id} not found.")
    return round_doc


def _require_host(game: Game, caller_player_id: str, action: str) -> None:
    if game.get("roundHostPlayerId") != caller_player_id:
        raise PermissionDeniedError(f"Only the round host can {action}.")


def _require_game_status(game: Game, expected: str) -> None:
    if game.get("status") != expected:
        raise FailedPreconditionError(
            f"Game is in status {game.get('status')!r}, expected {expected!r}."
        )


def _require_round_status(round_doc: Round, expected: str) -> None:
    if round_doc.get("status") != expected:
        raise FailedPreconditionError(
            f"Round is in status {round_doc.get('status')!r}, expected {expected!r}."
        )


def _require_joined_player(
    db: Client, game_id: str, player_id: str, transaction: Transaction
) -> None:
    player = player_data.get_player(db, game_id, player_id, transaction)
    if player is None or not player.get("hasJoined", False):
        raise NotFoundError(f"Player {player_id} is not part of game {game_id}.")


def _find_predefined_song(
    challenge: Challenge | None, track_id: str
) -> PredefinedSong | None:
    for song in (challenge or {}).get("predefinedSongs") or []:
        if str(song.get("trackId")) == str(track_id):
            return song
    return None


class RoundService:
    """Service class for round phase transitions."""

    @staticmethod
    def set_challenge(
        db: Client,
        game_id: str,
        round_id: int,
        challenge: str,
        caller_player_id: str,
    ) -> None:
        """Let the host choose the round's challenge, exactly once."""
        if not isinstance(challenge, str) or not challenge.strip():
            raise ValidationError("Challenge text is required.")
        challenge = challenge.strip()
        transaction = db.transaction()

        @firestore.transactional
        def _set_in_transaction(transaction: Transaction) -> None:
            game = _load_game(db, game_id, transaction)
            round_doc = _load_round(db, game_id, round_id, transaction)
            _require_host(game, caller_player_id, "set the challenge")
            if game.get("currentRound") != round_id:
                raise FailedPreconditionError(
                    f"Round {round_id} is not the current round."
                )
            _require_game_status(game, round_status(round_id, PHASE_ANNOUNCING))
            _require_round_status(round_doc, ROUND_STATUS_ANNOUNCING)
            if round_doc.get("challenge"):
                raise FailedPreconditionError(
                    "The challenge for this round has already been set."
                )

            round_data.update_round(
                db, game_id, round_id, {"challenge": challenge}, transaction
            )
            game_data.update_game(db, game_id, {"challenge": challenge}, transaction)

        _set_in_transaction(transaction)
        logger.info(f"Game {game_id} round {round_id} challenge set: {challenge!r}")

    @staticmethod
    def start_selection_phase(db: Client, game_id: str, caller_player_id: str) -> None:
        """Move the current round from announcing to song selection."""
        transaction = db.transaction()

        @firestore.transactional
        def _start_in_transaction(transaction: Transaction) -> int:
            game = _load_game(db, game_id, transaction)
            round_number = game.get("currentRound", 0)
            round_doc = _load_round(db, game_id, round_number, transaction)
            _require_host(game, caller_player_id, "start song selection")
            if not str(game.get("status", "")).endswith(f"_{PHASE_ANNOUNCING}"):
                raise FailedPreconditionError(
                    "Song selection can only start from the announcing phase."
                )
            _require_round_status(round_doc, ROUND_STATUS_ANNOUNCING)
            if not round_doc.get("challenge"):
                raise FailedPreconditionError(
                    "Set a challenge before starting song selection."
                )

            round_data.update_round(
                db,
                game_id,
                round_number,
                {
                    "status": ROUND_STATUS_SELECTING,
                    "selectionStartTime": firestore.SERVER_TIMESTAMP,
                },
                transaction,
            )
            game_data.update_game(
                db,
                game_id,
                {"status": round_status(round_number, PHASE_SELECTING)},
                transaction,
            )
            return round_number

        round_number = _start_in_transaction(transaction)
        logger.info(f"Game {game_id} round {round_number}: selecting songs.")

    @staticmethod
    def submit_song_nomination(
        db: Client,
        game_id: str,
        player_id: str,
        nomination: NominationInput,
    ) -> dict[str, Any]:
        """Record a player's song; the last submission opens listening."""
        nomination.validate()
        transaction = db.transaction()

        @firestore.transactional
        def _submit_in_transaction(transaction: Transaction) -> dict[str, Any]:
            game = _load_game(db, game_id, transaction)
            round_number = game.get("currentRound", 0)
            _require_game_status(game, round_status(round_number, PHASE_SELECTING))
            round_doc = _load_round(db, game_id, round_number, transaction)
            _require_round_status(round_doc, ROUND_STATUS_SELECTING)
            _require_joined_player(db, game_id, player_id, transaction)

            player_songs: dict[str, SongSubmission] = dict(
                round_doc.get("playerSongs") or {}
            )
            if player_id in player_songs:
                raise DuplicateResourceError(
                    "You have already nominated a song this round."
                )

            active_ids = {
                player["id"]
                for player in player_data.get_active_players(db, game_id, transaction)
            }
            is_last = active_ids <= set(player_songs) | {player_id}
            challenge_text = game.get("challenge") or round_doc.get("challenge") or ""

            challenge = None
            if nomination.predefined_track_id is not None or is_last:
                challenge = challenge_data.get_challenge_by_text(
                    db, challenge_text, transaction
                )

            if nomination.predefined_track_id is not None:
                if challenge is None:
                    raise NotFoundError(
                        f"No predefined songs exist for challenge {challenge_text!r}."
                    )
                song = _find_predefined_song(challenge, nomination.predefined_track_id)
                if song is None:
                    raise NotFoundError(
                        f"Predefined song {nomination.predefined_track_id} not found."
                    )
                submission: SongSubmission = {
                    "trackId": str(song["trackId"]),
                    "name": song.get("title", ""),
                    "artist": song.get("artist", ""),
                    "previewUrl": song.get("previewUrl"),
                    "albumImageUrl": song.get("albumImageUrl"),
                    "isPredefined": True,
                }
            else:
                submission = nomination.to_submission()

            round_updates: dict[str, Any] = {
                f"playerSongs.{player_id}": {
                    **submission,
                    "submittedAt": firestore.SERVER_TIMESTAMP,
                }
            }

            pool_size = 0
            if is_last:
                player_songs[player_id] = submission
                if challenge is None:
                    logger.warning(
                        f"Game {game_id}: no challenge document for "
                        f"{challenge_text!r}, ranking pool is not padded."
                    )
                ordered = [player_songs[pid] for pid in sorted(player_songs)]
                pool = build_song_pool(
                    ordered, (challenge or {}).get("predefinedSongs") or []
                )
                pool_size = len(pool)
                round_updates.update(
                    {
                        "status": ROUND_STATUS_LISTENING,
                        "songsForRanking": pool,
                        "currentPlayingTrackIndex": 0,
                        "isPlaying": True,
                    }
                )

            round_data.update_round(
                db, game_id, round_number, round_updates, transaction
            )
            if is_last:
                game_data.update_game(
                    db,
                    game_id,
                    {"status": round_status(round_number, PHASE_LISTENING)},
                    transaction,
                )
            return {
                "roundNumber": round_number,
                "allSongsSubmitted": is_last,
                "songsForRankingCount": pool_size,
            }

        result = _submit_in_transaction(transaction)
        logger.info(
            f"Game {game_id} round {result['roundNumber']}: "
            f"player {player_id} nominated a song."
        )
        if result["allSongsSubmitted"]:
            logger.info(
                f"Game {game_id} round {result['roundNumber']}: listening with "
                f"{result['songsForRankingCount']} songs."
            )
        return result

    @staticmethod
    def start_ranking_phase(db: Client, game_id: str, caller_player_id: str) -> None:
        """Move the current round from listening to ranking."""
        transaction = db.transaction()

        @firestore.transactional
        def _start_in_transaction(transaction: Transaction) -> int:
            game = _load_game(db, game_id, transaction)
            round_number = game.get("currentRound", 0)
            round_doc = _load_round(db, game_id, round_number, transaction)
            _require_host(game, caller_player_id, "start the ranking phase")
            _require_game_status(game, round_status(round_number, PHASE_LISTENING))
            _require_round_status(round_doc, ROUND_STATUS_LISTENING)

            round_data.update_round(
                db,
                game_id,
                round_number,
                {
                    "status": ROUND_STATUS_RANKING,
                    "rankingStartTime": firestore.SERVER_TIMESTAMP,
                },
                transaction,
            )
            game_data.update_game(
                db,
                game_id,
                {"status": round_status(round_number, PHASE_RANKING)},
                transaction,
            )
            return round_number

        round_number = _start_in_transaction(transaction)
        logger.info(f"Game {game_id} round {round_number}: ranking.")

    @staticmethod
    def control_playback(
        db: Client,
        game_id: str,
        caller_player_id: str,
        command: PlaybackCommand,
    ) -> dict[str, Any]:
        """Apply a host playback action to the shared listening state."""
        command.validate()
        transaction = db.transaction()

        @firestore.transactional
        def _control_in_transaction(transaction: Transaction) -> dict[str, Any]:
            game = _load_game(db, game_id, transaction)
            round_number = game.get("currentRound", 0)
            round_doc = _load_round(db, game_id, round_number, transaction)
            _require_host(game, caller_player_id, "control playback")
            _require_game_status(game, round_status(round_number, PHASE_LISTENING))
            _require_round_status(round_doc, ROUND_STATUS_LISTENING)

            track_count = len(round_doc.get("songsForRanking") or [])
            if track_count == 0:
                raise FailedPreconditionError("There are no songs to play.")

            index = int(round_doc.get("currentPlayingTrackIndex") or 0)
            is_playing = bool(round_doc.get("isPlaying", False))
            new_index, new_playing = index, is_playing

            if command.action == "play":
                new_playing = True
            elif command.action == "pause":
                new_playing = False
            elif command.action == "next":
                new_index, new_playing = (index + 1) % track_count, True
            elif command.action == "prev":
                new_index, new_playing = (index - 1) % track_count, True
            elif command.action == "seekToIndex":
                target = command.target_index
                if target is not None and 0 <= target < track_count:
                    new_index, new_playing = target, True
                else:
                    logger.info(
                        f"Game {game_id}: ignoring seek to {target}, "
                        f"only {track_count} tracks."
                    )

            updates: dict[str, Any] = {}
            if new_index != index:
                updates["currentPlayingTrackIndex"] = new_index
            if new_playing != is_playing:
                updates["isPlaying"] = new_playing
            if updates:
                round_data.update_round(
                    db, game_id, round_number, updates, transaction
                )
            return {"currentPlayingTrackIndex": new_index, "isPlaying": new_playing}

        return _control_in_transaction(transaction)

    @staticmethod
    def submit_ranking(
        db: Client, game_id: str, player_id: str, rankings: dict[str, int]
    ) -> dict[str, Any]:
        """Record a player's ranking; the last one moves the round to scoring."""
        rankings = validate_rankings(rankings)
        transaction = db.transaction()

        @firestore.transactional
        def _submit_in_transaction(transaction: Transaction) -> dict[str, Any]:
            game = _load_game(db, game_id, transaction)
            round_number = game.get("currentRound", 0)
            _require_game_status(game, round_status(round_number, PHASE_RANKING))
            round_doc = _load_round(db, game_id, round_number, transaction)
            _require_round_status(round_doc, ROUND_STATUS_RANKING)
            _require_joined_player(db, game_id, player_id, transaction)

            if (
                round_data.get_ranking(
                    db, game_id, round_number, player_id, transaction
                )
                is not None
            ):
                raise DuplicateResourceError(
                    "You have already submitted your ranking this round."
                )
            existing = round_data.get_rankings(db, game_id, round_number, transaction)
            active_ids = {
                player["id"]
                for player in player_data.get_active_players(db, game_id, transaction)
            }
            is_last = active_ids <= set(existing) | {player_id}

            round_data.create_ranking(
                db,
                game_id,
                round_number,
                player_id,
                {"rankings": rankings, "submittedAt": firestore.SERVER_TIMESTAMP},
                transaction,
            )
            if is_last:
                round_data.update_round(
                    db,
                    game_id,
                    round_number,
                    {"status": ROUND_STATUS_SCORING},
                    transaction,
                )
                game_data.update_game(
                    db,
                    game_id,
                    {"status": round_status(round_number, PHASE_SCORING)},
                    transaction,
                )
            return {"roundNumber": round_number, "allRankingsSubmitted": is_last}

        result = _submit_in_transaction(transaction)
        logger.info(
            f"Game {game_id} round {result['roundNumber']}: "
            f"player {player_id} submitted a ranking."
        )
        if result["allRankingsSubmitted"]:
            logger.info(f"Game {game_id} round {result['roundNumber']}: scoring.")
        return result

    @staticmethod
    def start_next_round(db: Client, game_id: str) -> dict[str, Any]:
        """Open the next round with a rotated host, or finish the game."""
        transaction = db.transaction()

        @firestore.transactional
        def _advance_in_transaction(transaction: Transaction) -> dict[str, Any]:
            game = _load_game(db, game_id, transaction)
            if not str(game.get("status", "")).endswith(f"_{PHASE_FINISHED}"):
                raise FailedPreconditionError(
                    "The current round has not finished yet."
                )
            current_round = game.get("currentRound", 0)

            if current_round >= configured_rounds(game):
                game_data.update_game(
                    db,
                    game_id,
                    {
                        "status": GAME_STATUS_FINISHED,
                        "finishedAt": firestore.SERVER_TIMESTAMP,
                    },
                    transaction,
                )
                return {"gameFinished": True, "roundNumber": current_round}

            players = player_data.get_active_players(db, game_id, transaction)
            if not players:
                raise FailedPreconditionError("The game has no active players.")
            player_ids = [player["id"] for player in players]
            current_host = game.get("roundHostPlayerId")
            if current_host in player_ids:
                next_host = player_ids[
                    (player_ids.index(current_host) + 1) % len(player_ids)
                ]
            else:
                next_host = random.choice(player_ids)  # nosec B311

            next_round = current_round + 1
            game_data.update_game(
                db,
                game_id,
                {
                    "status": round_status(next_round, PHASE_ANNOUNCING),
                    "currentRound": next_round,
                    "roundHostPlayerId": next_host,
                    "challenge": placeholder_challenge(next_round),
                },
                transaction,
            )
            round_data.create_round(
                db,
                game_id,
                next_round,
                round_data.new_round_document(next_host),
                transaction,
            )
            return {
                "gameFinished": False,
                "roundNumber": next_round,
                "hostPlayerId": next_host,
            }

        result = _advance_in_transaction(transaction)
        if result["gameFinished"]:
            logger.info(f"Game {game_id} finished after round {result['roundNumber']}.")
        else:
            logger.info(
                f"Game {game_id} round {result['roundNumber']} started, "
                f"host is {result['hostPlayerId']}."
            )
        return result
