"""Common utilities for tests."""

from __future__ import annotations

import datetime
import unittest
import unittest.mock
from typing import Any, Optional

from firebase_admin import firestore
from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support FieldFilter and transactions."""

    def collection_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:  # noqa: E501
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(CollectionReference, "_where"):
        CollectionReference._where = CollectionReference.where
        CollectionReference.where = collection_where

    def query_where(
        self: Any,
        field_path: Optional[str] = None,
        op_string: Optional[str] = None,
        value: Any = None,
        filter: Any = None,
    ) -> Any:
        if filter:
            return self._where(filter.field_path, filter.op_string, filter.value)
        return self._where(field_path, op_string, value)

    if not hasattr(Query, "_where"):
        Query._where = Query.where
        Query.where = query_where

    # Reads inside a transaction pass transaction=...; mockfirestore has no
    # isolation, so the keyword is accepted and ignored.
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_get(self: Any, *args: Any, transaction: Any = None, **kwargs: Any):
            return self._orig_get()

        DocumentReference.get = doc_get

    if not hasattr(CollectionReference, "_orig_stream"):
        CollectionReference._orig_stream = CollectionReference.stream

        def collection_stream(self: Any, transaction: Any = None, **kwargs: Any):
            return self._orig_stream()

        CollectionReference.stream = collection_stream

    if not hasattr(Query, "_orig_stream"):
        Query._orig_stream = Query.stream

        def query_stream(self: Any, transaction: Any = None, **kwargs: Any):
            return self._orig_stream()

        Query.stream = query_stream

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))


class BufferedTransaction:
    """Collects writes and applies them only on commit, like a real transaction."""

    def __init__(self) -> None:
        self.writes: list[tuple[str, Any, Any]] = []
        self.committed = False

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set", ref, data))

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "set":
                # mockfirestore keeps subcollections inside the parent
                # document's dict; a plain set would drop them.
                ref.set(data, merge=True)
            elif op == "update":
                ref.update(data)
            else:
                ref.delete()
        self.committed = True


class TransactionalMockFirestore(MockFirestore):
    """MockFirestore whose transactions and batches buffer their writes."""

    def __init__(self) -> None:
        super().__init__()
        self.transactions: list[BufferedTransaction] = []

    def transaction(self, **kwargs: Any) -> BufferedTransaction:
        transaction = BufferedTransaction()
        self.transactions.append(transaction)
        return transaction

    def batch(self) -> BufferedTransaction:
        return BufferedTransaction()


def fake_transactional(func: Any) -> Any:
    """Stand-in for firestore.transactional: run once, then commit."""

    def wrapper(transaction: Any, *args: Any, **kwargs: Any) -> Any:
        result = func(transaction, *args, **kwargs)
        transaction.commit()
        return result

    return wrapper


class FirestoreTestCase(unittest.TestCase):
    """Base test case wiring a transactional MockFirestore."""

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = TransactionalMockFirestore()
        patcher = unittest.mock.patch.object(
            firestore, "transactional", fake_transactional
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    # --- seeding helpers ---

    def seed_game(
        self,
        game_id: str,
        players: list[tuple[str, str]],
        status: str = "waiting",
        **fields: Any,
    ) -> None:
        """Write a game and its joined players; the first player is the creator."""
        game = {
            "status": status,
            "playerCount": len(players),
            "maxPlayers": 6,
            "currentRound": 0,
            "totalRounds": 3,
            "creatorPlayerId": players[0][0] if players else None,
            "roundHostPlayerId": None,
            "challenge": None,
            "settings": {
                "rounds": 3,
                "maxPlayers": 6,
                "allowExplicit": True,
                "selectionTimeLimit": 90,
                "rankingTimeLimit": 60,
            },
            "createdAt": datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc),
        }
        game.update(fields)
        self.db.collection("games").document(game_id).set(game)
        for player_id, name in players:
            self.game_ref(game_id).collection("players").document(player_id).set(
                {
                    "name": name,
                    "score": 0,
                    "hasJoined": True,
                    "jokerAvailable": True,
                    "isCreator": player_id == players[0][0],
                }
            )

    def seed_round(self, game_id: str, round_number: int, **fields: Any) -> None:
        round_doc = {
            "challenge": None,
            "hostPlayerId": None,
            "status": "announcing",
            "playerSongs": {},
            "songsForRanking": [],
            "currentPlayingTrackIndex": 0,
            "isPlaying": False,
            "results": [],
            "winnerData": None,
        }
        round_doc.update(fields)
        self.round_ref(game_id, round_number).set(round_doc)

    def seed_challenge(self, slug: str, text: str, songs: list[dict[str, Any]]) -> None:
        self.db.collection("challenges").document(slug).set(
            {"text": text, "predefinedSongs": songs}
        )

    # --- read helpers ---

    def game_ref(self, game_id: str) -> Any:
        return self.db.collection("games").document(game_id)

    def round_ref(self, game_id: str, round_number: int) -> Any:
        return self.game_ref(game_id).collection("rounds").document(str(round_number))

    def game_doc(self, game_id: str) -> dict[str, Any]:
        return self.game_ref(game_id).get().to_dict()

    def round_doc(self, game_id: str, round_number: int) -> dict[str, Any]:
        return self.round_ref(game_id, round_number).get().to_dict()

    def player_doc(self, game_id: str, player_id: str) -> dict[str, Any]:
        return (
            self.game_ref(game_id)
            .collection("players")
            .document(player_id)
            .get()
            .to_dict()
        )

    def joined_player_ids(self, game_id: str) -> list[str]:
        return [
            snap.id
            for snap in self.game_ref(game_id).collection("players").stream()
            if snap.exists and snap.to_dict().get("hasJoined")
        ]


def song(track_id: str, name: str | None = None, **fields: Any) -> dict[str, Any]:
    """Build a searchResult nomination payload."""
    result = {
        "trackId": track_id,
        "name": name or f"Song {track_id}",
        "artist": f"Artist {track_id}",
        "previewUrl": f"https://cdn.example.com/{track_id}.mp3",
    }
    result.update(fields)
    return result


def predefined(track_id: str, title: str | None = None) -> dict[str, Any]:
    """Build a predefined challenge song."""
    return {
        "trackId": track_id,
        "title": title or f"Predefined {track_id}",
        "artist": f"Artist {track_id}",
        "previewUrl": f"https://cdn.example.com/{track_id}.mp3",
    }
