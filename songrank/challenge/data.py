"""Store access for challenge documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from firebase_admin import firestore

from songrank.core.constants import CHALLENGES_COLLECTION
from songrank.core.db import read_document, stream_query
from songrank.core.utils import slugify

from .models import Challenge

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction


def _snapshot_to_challenge(snapshot: DocumentSnapshot) -> Challenge:
    data = cast(Challenge, snapshot.to_dict() or {})
    data["id"] = snapshot.id
    return data


def get_challenge_by_text(
    db: Client, text: str, transaction: Transaction | None = None
) -> Challenge | None:
    """Find a challenge by its text; documents are keyed by the slugified text."""
    slug = slugify(text)
    if slug:
        ref = db.collection(CHALLENGES_COLLECTION).document(slug)
        snapshot = read_document(ref, transaction)
        if snapshot.exists:
            return _snapshot_to_challenge(snapshot)

    # Documents seeded under other ids are still found by their text.
    query = (
        db.collection(CHALLENGES_COLLECTION)
        .where(filter=firestore.FieldFilter("text", "==", text))
        .limit(1)
    )
    matches = stream_query(query, transaction)
    if not matches:
        return None
    return _snapshot_to_challenge(matches[0])


def get_all_challenges(db: Client) -> list[Challenge]:
    """Return every challenge document."""
    return [
        _snapshot_to_challenge(snapshot)
        for snapshot in stream_query(db.collection(CHALLENGES_COLLECTION))
    ]
