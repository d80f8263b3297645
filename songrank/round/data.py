"""Store access for rounds and their ranking and score subcollections."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from songrank.core.constants import (
    GAMES_COLLECTION,
    RANKINGS_COLLECTION,
    ROUND_STATUS_ANNOUNCING,
    ROUNDS_COLLECTION,
    SCORES_COLLECTION,
)
from songrank.core.db import read_document, stream_query, write_set, write_update

from .models import Round, Score

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.collection import CollectionReference
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def rounds_collection(db: Client, game_id: str) -> CollectionReference:
    """Return the rounds subcollection of a game."""
    return (
        db.collection(GAMES_COLLECTION).document(game_id).collection(ROUNDS_COLLECTION)
    )


def round_ref(db: Client, game_id: str, round_number: int | str) -> DocumentReference:
    """Return the reference of a round; rounds are keyed by their number."""
    return rounds_collection(db, game_id).document(str(round_number))


def rankings_collection(
    db: Client, game_id: str, round_number: int | str
) -> CollectionReference:
    """Return the rankings subcollection of a round."""
    return round_ref(db, game_id, round_number).collection(RANKINGS_COLLECTION)


def scores_collection(
    db: Client, game_id: str, round_number: int | str
) -> CollectionReference:
    """Return the scores subcollection of a round."""
    return round_ref(db, game_id, round_number).collection(SCORES_COLLECTION)


def get_round(
    db: Client,
    game_id: str,
    round_number: int | str,
    transaction: Transaction | None = None,
) -> Round | None:
    """Fetch a round, or None when it does not exist."""
    snapshot = read_document(round_ref(db, game_id, round_number), transaction)
    if not snapshot.exists:
        return None
    data = cast(Round, snapshot.to_dict() or {})
    data["id"] = snapshot.id
    return data


def get_rounds(db: Client, game_id: str) -> list[Round]:
    """Return every round of a game."""
    rounds = []
    for snapshot in stream_query(rounds_collection(db, game_id)):
        data = cast(Round, snapshot.to_dict() or {})
        data["id"] = snapshot.id
        rounds.append(data)
    return rounds


def create_round(
    db: Client,
    game_id: str,
    round_number: int,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Write a new round document."""
    write_set(round_ref(db, game_id, round_number), data, transaction)


def update_round(
    db: Client,
    game_id: str,
    round_number: int | str,
    updates: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Apply a partial update to a round document."""
    write_update(round_ref(db, game_id, round_number), updates, transaction)


def get_ranking(
    db: Client,
    game_id: str,
    round_number: int | str,
    player_id: str,
    transaction: Transaction | None = None,
) -> dict[str, Any] | None:
    """Fetch one player's ranking, or None if they have not ranked yet."""
    ref = rankings_collection(db, game_id, round_number).document(player_id)
    snapshot = read_document(ref, transaction)
    if not snapshot.exists:
        return None
    return snapshot.to_dict() or {}


def get_rankings(
    db: Client,
    game_id: str,
    round_number: int | str,
    transaction: Transaction | None = None,
) -> dict[str, dict[str, Any]]:
    """Return every submitted ranking keyed by player id."""
    snapshots = stream_query(
        rankings_collection(db, game_id, round_number), transaction
    )
    return {snapshot.id: snapshot.to_dict() or {} for snapshot in snapshots}


def create_ranking(
    db: Client,
    game_id: str,
    round_number: int | str,
    player_id: str,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Write a player's ranking document."""
    ref = rankings_collection(db, game_id, round_number).document(player_id)
    write_set(ref, data, transaction)


def create_score(
    db: Client,
    game_id: str,
    round_number: int | str,
    player_id: str,
    data: Score,
    transaction: Transaction | None = None,
) -> None:
    """Write a player's score document for a round."""
    ref = scores_collection(db, game_id, round_number).document(player_id)
    write_set(ref, dict(data), transaction)


def new_round_document(host_player_id: str) -> dict[str, Any]:
    """Return the initial state of a round awaiting its challenge."""
    return {
        "challenge": None,
        "hostPlayerId": host_player_id,
        "status": ROUND_STATUS_ANNOUNCING,
        "playerSongs": {},
        "songsForRanking": [],
        "currentPlayingTrackIndex": 0,
        "isPlaying": False,
        "selectionStartTime": None,
        "rankingStartTime": None,
        "results": [],
        "winnerData": None,
        "createdAt": firestore.SERVER_TIMESTAMP,
    }
