"""Core module for the songrank application."""

from .types import FirestoreDocument, OperationResult

__all__ = ["FirestoreDocument", "OperationResult"]
