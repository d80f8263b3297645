"""Store access for player documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from songrank.core.constants import GAMES_COLLECTION, PLAYERS_COLLECTION
from songrank.core.db import read_document, stream_query, write_set, write_update

from .models import Player

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.collection import CollectionReference
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def players_collection(db: Client, game_id: str) -> CollectionReference:
    """Return the players subcollection of a game."""
    return (
        db.collection(GAMES_COLLECTION)
        .document(game_id)
        .collection(PLAYERS_COLLECTION)
    )


def player_ref(db: Client, game_id: str, player_id: str) -> DocumentReference:
    """Return the reference of a player document."""
    return players_collection(db, game_id).document(player_id)


def _snapshot_to_player(snapshot: DocumentSnapshot) -> Player:
    data = cast(Player, snapshot.to_dict() or {})
    data["id"] = snapshot.id
    return data


def get_player(
    db: Client,
    game_id: str,
    player_id: str,
    transaction: Transaction | None = None,
) -> Player | None:
    """Fetch a player, or None when it does not exist."""
    snapshot = read_document(player_ref(db, game_id, player_id), transaction)
    if not snapshot.exists:
        return None
    return _snapshot_to_player(snapshot)


def get_players(
    db: Client, game_id: str, transaction: Transaction | None = None
) -> list[Player]:
    """Return every player of a game in player-list (document id) order."""
    players = [
        _snapshot_to_player(snap)
        for snap in stream_query(players_collection(db, game_id), transaction)
    ]
    return sorted(players, key=lambda player: player["id"])


def get_active_players(
    db: Client, game_id: str, transaction: Transaction | None = None
) -> list[Player]:
    """Return the players that have joined and not left."""
    return [
        player
        for player in get_players(db, game_id, transaction)
        if player.get("hasJoined", False)
    ]


def is_name_taken(
    db: Client, game_id: str, name: str, transaction: Transaction | None = None
) -> bool:
    """Check whether a player with this exact name is already in the game."""
    query = players_collection(db, game_id).where(
        filter=firestore.FieldFilter("name", "==", name)
    )
    return bool(stream_query(query, transaction))


def create_player(
    db: Client,
    game_id: str,
    player_id: str,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Write a new player document."""
    write_set(player_ref(db, game_id, player_id), data, transaction)


def increment_player_score(
    db: Client,
    game_id: str,
    player_id: str,
    amount: int,
    transaction: Transaction | None = None,
) -> None:
    """Atomically add points to a player's running score."""
    write_update(
        player_ref(db, game_id, player_id),
        {"score": firestore.Increment(amount)},
        transaction,
    )
