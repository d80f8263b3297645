"""Service layer that applies round scoring to the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from songrank.core.constants import (
    GAME_STATUS_FINISHED,
    PHASE_FINISHED,
    PHASE_SCORING,
    ROUND_STATUS_FINISHED,
    ROUND_STATUS_SCORING,
)
from songrank.core.utils import round_status
from songrank.errors import FailedPreconditionError, NotFoundError
from songrank.game import data as game_data
from songrank.game.models import configured_rounds
from songrank.player import data as player_data
from songrank.round import data as round_data

from .engine import score_round

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)


class ScoringService:
    """Service class for round scoring."""

    @staticmethod
    def calculate_scores(db: Client, game_id: str, round_number: int) -> dict[str, Any]:
        """Score a round that is in the scoring phase and finish it.

        Score documents, player totals, the round results and the game status
        are committed in one transaction, so a failure leaves nothing written
        and a second invocation for the same round fails its status check.
        """
        transaction = db.transaction()

        @firestore.transactional
        def _score_in_transaction(transaction: Transaction) -> dict[str, Any]:
            game = game_data.get_game(db, game_id, transaction)
            if game is None:
                raise NotFoundError(f"Game {game_id} not found.")
            round_doc = round_data.get_round(db, game_id, round_number, transaction)
            if round_doc is None:
                raise NotFoundError(
                    f"Round {round_number} of game {game_id} not found."
                )
            if game.get("status") != round_status(round_number, PHASE_SCORING):
                raise FailedPreconditionError(
                    f"Game is in status {game.get('status')!r}, not scoring "
                    f"round {round_number}."
                )
            if round_doc.get("status") != ROUND_STATUS_SCORING:
                raise FailedPreconditionError(
                    f"Round {round_number} is in status "
                    f"{round_doc.get('status')!r}, not scoring."
                )

            players = player_data.get_active_players(db, game_id, transaction)
            rankings = round_data.get_rankings(db, game_id, round_number, transaction)
            if len(rankings) != len(players):
                raise FailedPreconditionError(
                    f"Expected {len(players)} rankings, found {len(rankings)}."
                )

            outcome = score_round(
                round_doc.get("playerSongs") or {},
                {
                    player_id: ranking.get("rankings") or {}
                    for player_id, ranking in rankings.items()
                },
                {player["id"]: player.get("name", "") for player in players},
            )

            for player_id, score in outcome.scores.items():
                round_data.create_score(
                    db,
                    game_id,
                    round_number,
                    player_id,
                    {
                        **score.to_score_document(),
                        "calculatedAt": firestore.SERVER_TIMESTAMP,
                    },
                    transaction,
                )
                player_data.increment_player_score(
                    db, game_id, player_id, score.total, transaction
                )

            round_data.update_round(
                db,
                game_id,
                round_number,
                {
                    "status": ROUND_STATUS_FINISHED,
                    "results": outcome.results,
                    "winnerData": outcome.winner_data,
                },
                transaction,
            )

            game_finished = round_number >= configured_rounds(game)
            if game_finished:
                game_updates: dict[str, Any] = {
                    "status": GAME_STATUS_FINISHED,
                    "finishedAt": firestore.SERVER_TIMESTAMP,
                }
            else:
                game_updates = {"status": round_status(round_number, PHASE_FINISHED)}
            game_data.update_game(db, game_id, game_updates, transaction)

            return {
                "roundNumber": round_number,
                "gameFinished": game_finished,
                "results": outcome.results,
                "winnerData": outcome.winner_data,
            }

        result = _score_in_transaction(transaction)
        logger.info(
            f"Game {game_id} round {round_number} scored; winners "
            f"{result['winnerData']['winnerPlayerIds']} with "
            f"{result['winnerData']['winningScore']} points."
        )
        return result
