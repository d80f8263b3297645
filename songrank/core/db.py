"""Firestore client helpers shared by the data access modules."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


def read_document(
    ref: DocumentReference, transaction: Transaction | None = None
) -> DocumentSnapshot:
    """Read a document, through the transaction when one is given."""
    if transaction is not None:
        return ref.get(transaction=transaction)
    return ref.get()


def stream_query(query: Any, transaction: Transaction | None = None) -> list[Any]:
    """Materialize the existing documents of a query or collection."""
    if transaction is not None:
        snapshots = query.stream(transaction=transaction)
    else:
        snapshots = query.stream()
    return [snap for snap in snapshots if snap.exists]


def write_set(
    ref: DocumentReference,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Create or overwrite a document."""
    if transaction is not None:
        transaction.set(ref, data)
    else:
        ref.set(data)


def write_update(
    ref: DocumentReference,
    data: dict[str, Any],
    transaction: Transaction | None = None,
) -> None:
    """Update fields of an existing document."""
    if transaction is not None:
        transaction.update(ref, data)
    else:
        ref.update(data)


def to_iso(value: Any) -> str | None:
    """Convert a Firestore timestamp into an ISO 8601 string."""
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return None
