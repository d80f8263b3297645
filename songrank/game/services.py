"""Service layer for the game lifecycle: create, join, start and settings."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from songrank.core.constants import (
    DEFAULT_RANKING_TIME_LIMIT,
    DEFAULT_SELECTION_TIME_LIMIT,
    DEFAULT_TOTAL_ROUNDS,
    GAME_STATUS_WAITING,
    MAX_PLAYERS,
    MIN_PLAYERS_TO_START,
    PHASE_ANNOUNCING,
)
from songrank.core.utils import generate_game_id, generate_player_id, round_status
from songrank.errors import (
    DuplicateResourceError,
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
    ResourceExhaustedError,
)
from songrank.player import data as player_data
from songrank.round import data as round_data

from . import data as game_data
from .models import (
    GameCreation,
    GameSettingsUpdate,
    configured_max_players,
    validate_player_name,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


class GameService:
    """Service class for game lifecycle operations."""

    @staticmethod
    def create_game(
        db: Client, player_name: str, total_rounds: int = DEFAULT_TOTAL_ROUNDS
    ) -> dict[str, str]:
        """Create a waiting game with its creator as the first player."""
        creation = GameCreation(player_name=player_name, total_rounds=total_rounds)
        creation.validate()

        game_id = generate_game_id()
        player_id = generate_player_id()
        transaction = db.transaction()

        @firestore.transactional
        def _create_in_transaction(transaction: Transaction) -> None:
            if game_data.get_game(db, game_id, transaction) is not None:
                # Collisions are rare; the client retries with a fresh id.
                raise DuplicateResourceError(
                    f"Game {game_id} already exists. Please try again."
                )

            game_data.create_game(
                db,
                game_id,
                {
                    "status": GAME_STATUS_WAITING,
                    "playerCount": 1,
                    "maxPlayers": MAX_PLAYERS,
                    "currentRound": 0,
                    "totalRounds": creation.total_rounds,
                    "creatorPlayerId": player_id,
                    "roundHostPlayerId": None,
                    "challenge": None,
                    "settings": {
                        "rounds": creation.total_rounds,
                        "maxPlayers": MAX_PLAYERS,
                        "allowExplicit": True,
                        "selectionTimeLimit": DEFAULT_SELECTION_TIME_LIMIT,
                        "rankingTimeLimit": DEFAULT_RANKING_TIME_LIMIT,
                    },
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "startedAt": None,
                },
                transaction,
            )
            player_data.create_player(
                db,
                game_id,
                player_id,
                {
                    "name": creation.player_name,
                    "score": 0,
                    "hasJoined": True,
                    "jokerAvailable": True,
                    "isCreator": True,
                    "joinedAt": firestore.SERVER_TIMESTAMP,
                },
                transaction,
            )

        _create_in_transaction(transaction)
        logger.info(f"Game {game_id} created by player {player_id}.")
        return {"gameId": game_id, "playerId": player_id}

    @staticmethod
    def find_available_game(db: Client) -> str | None:
        """Return the oldest waiting game that still has room."""
        for game in game_data.get_waiting_games(db):
            if game.get("playerCount", 0) < configured_max_players(game):
                return game["id"]
        return None

    @staticmethod
    def join_game(
        db: Client, player_name: str, game_id: str | None = None
    ) -> dict[str, str]:
        """Add a player to a waiting game, picking one when no id is given."""
        player_name = validate_player_name(player_name)

        if not game_id:
            game_id = GameService.find_available_game(db)
            if game_id is None:
                raise NotFoundError("No open games are available to join.")

        player_id = generate_player_id()
        transaction = db.transaction()

        @firestore.transactional
        def _join_in_transaction(transaction: Transaction) -> None:
            game = game_data.get_game(db, game_id, transaction)
            if game is None:
                raise NotFoundError(f"Game {game_id} not found.")
            if game.get("status") != GAME_STATUS_WAITING:
                raise FailedPreconditionError(
                    "This game has already started or finished."
                )
            max_players = configured_max_players(game)
            if game.get("playerCount", 0) >= max_players:
                raise ResourceExhaustedError(
                    f"Game is full (max {max_players} players)."
                )
            if player_data.is_name_taken(db, game_id, player_name, transaction):
                raise DuplicateResourceError(
                    f'The name "{player_name}" is already taken in this game.'
                )

            game_data.increment_player_count(db, game_id, transaction)
            player_data.create_player(
                db,
                game_id,
                player_id,
                {
                    "name": player_name,
                    "score": 0,
                    "hasJoined": True,
                    "jokerAvailable": True,
                    "isCreator": False,
                    "joinedAt": firestore.SERVER_TIMESTAMP,
                },
                transaction,
            )

        _join_in_transaction(transaction)
        logger.info(f"Player {player_id} joined game {game_id}.")
        return {"gameId": game_id, "playerId": player_id}

    @staticmethod
    def start_game(db: Client, game_id: str, caller_player_id: str) -> dict[str, Any]:
        """Start a waiting game: pick a random host and open round 1."""
        transaction = db.transaction()

        @firestore.transactional
        def _start_in_transaction(transaction: Transaction) -> str:
            game = game_data.get_game(db, game_id, transaction)
            if game is None:
                raise NotFoundError(f"Game {game_id} not found.")
            if game.get("status") != GAME_STATUS_WAITING:
                raise FailedPreconditionError("Game has already started.")

            players = player_data.get_active_players(db, game_id, transaction)
            if len(players) < MIN_PLAYERS_TO_START:
                raise FailedPreconditionError(
                    f"At least {MIN_PLAYERS_TO_START} players are needed to start."
                )

            host_id = random.choice(players)["id"]  # nosec B311
            game_data.update_game(
                db,
                game_id,
                {
                    "status": round_status(1, PHASE_ANNOUNCING),
                    "currentRound": 1,
                    "roundHostPlayerId": host_id,
                    "challenge": None,
                    "startedAt": firestore.SERVER_TIMESTAMP,
                },
                transaction,
            )
            round_data.create_round(
                db, game_id, 1, round_data.new_round_document(host_id), transaction
            )
            return host_id

        host_id = _start_in_transaction(transaction)
        logger.info(
            f"Game {game_id} started by player {caller_player_id}, "
            f"round 1 host is {host_id}."
        )
        return {"roundNumber": 1, "hostPlayerId": host_id}

    @staticmethod
    def update_game_settings(
        db: Client,
        game_id: str,
        new_settings: dict[str, Any],
        caller_player_id: str,
    ) -> None:
        """Replace the settings of a waiting game; creator only."""
        update = GameSettingsUpdate.from_dict(new_settings)
        update.validate()
        settings = update.to_dict()
        transaction = db.transaction()

        @firestore.transactional
        def _update_in_transaction(transaction: Transaction) -> None:
            game = game_data.get_game(db, game_id, transaction)
            if game is None:
                raise NotFoundError(f"Game {game_id} not found.")
            if game.get("creatorPlayerId") != caller_player_id:
                raise PermissionDeniedError(
                    "Only the game creator can change settings."
                )
            if game.get("status") != GAME_STATUS_WAITING:
                raise FailedPreconditionError(
                    "Settings can only be changed before the game starts."
                )
            game_data.update_game(
                db,
                game_id,
                {
                    "settings": settings,
                    "maxPlayers": settings["maxPlayers"],
                    "totalRounds": settings["rounds"],
                },
                transaction,
            )

        _update_in_transaction(transaction)
        logger.info(f"Settings of game {game_id} updated: {settings}")
