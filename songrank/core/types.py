"""Core data types for the songrank application."""

from typing import Any, Dict, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    path: str
    createdAt: Any


class OperationResult(TypedDict):
    """Generic response body for state changing operations."""

    success: bool
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006
