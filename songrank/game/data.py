"""Store access for game documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from songrank.core.constants import GAME_STATUS_WAITING, GAMES_COLLECTION
from songrank.core.db import read_document, stream_query, write_set, write_update

from .models import Game

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def game_ref(db: Client, game_id: str) -> DocumentReference:
    """Return the reference of a game document."""
    return db.collection(GAMES_COLLECTION).document(game_id)


def snapshot_to_game(snapshot: DocumentSnapshot) -> Game:
    """Convert a game snapshot into a Game dict carrying its id."""
    data = cast(Game, snapshot.to_dict() or {})
    data["id"] = snapshot.id
    return data


def get_game(
    db: Client, game_id: str, transaction: Transaction | None = None
) -> Game | None:
    """Fetch a game, or None when it does not exist."""
    snapshot = read_document(game_ref(db, game_id), transaction)
    if not snapshot.exists:
        return None
    return snapshot_to_game(snapshot)


def create_game(
    db: Client,
    game_id: str,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Write a new game document."""
    write_set(game_ref(db, game_id), data, transaction)


def update_game(
    db: Client,
    game_id: str,
    updates: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Apply a partial update to a game document."""
    write_update(game_ref(db, game_id), updates, transaction)


def increment_player_count(
    db: Client, game_id: str, transaction: Transaction | None = None
) -> None:
    """Atomically add one to the game's playerCount."""
    write_update(
        game_ref(db, game_id), {"playerCount": firestore.Increment(1)}, transaction
    )


def get_waiting_games(db: Client) -> list[Game]:
    """Return waiting games, oldest first."""
    query = (
        db.collection(GAMES_COLLECTION)
        .where(filter=firestore.FieldFilter("status", "==", GAME_STATUS_WAITING))
        .order_by("createdAt")
    )
    return [snapshot_to_game(snap) for snap in stream_query(query)]


def get_games_by_status(db: Client, status: str, op: str = "==") -> list[Game]:
    """Return every game whose status matches the comparison."""
    query = db.collection(GAMES_COLLECTION).where(
        filter=firestore.FieldFilter("status", op, status)
    )
    return [snapshot_to_game(snap) for snap in stream_query(query)]
