"""Reactive scoring: watch round documents and score a round once it enters scoring."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from songrank.core.constants import (
    ROUND_STATUS_RANKING,
    ROUND_STATUS_SCORING,
    ROUNDS_COLLECTION,
)
from songrank.scoring.services import ScoringService

if TYPE_CHECKING:
    from flask import Flask
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

WATCHED_STATUSES = [ROUND_STATUS_RANKING, ROUND_STATUS_SCORING]


def is_scoring_transition(before_status: str | None, after_status: str | None) -> bool:
    """Only a change from any other status into scoring starts scoring."""
    return after_status == ROUND_STATUS_SCORING and before_status != ROUND_STATUS_SCORING


def handle_round_update(
    db: Client,
    game_id: str,
    round_number: str | int,
    before: dict[str, Any] | None,
    after: dict[str, Any] | None,
) -> bool:
    """Score the round if this update moved it into scoring.

    Returns True when scoring was attempted. Failures are logged and not
    raised; a round left in scoring can be scored again by hand.
    """
    before_status = (before or {}).get("status")
    after_status = (after or {}).get("status")
    if not is_scoring_transition(before_status, after_status):
        return False

    logger.info(
        f"Round {round_number} of game {game_id} moved from {before_status!r} "
        f"to scoring, calculating scores."
    )
    try:
        ScoringService.calculate_scores(db, game_id, int(round_number))
    except Exception as e:
        logger.exception(
            f"Automatic scoring failed for game {game_id} round {round_number}: {e}"
        )
    return True


class RoundStatusWatcher:
    """Listen to rounds close to scoring and dispatch scoring in the background.

    Only rounds in ranking or scoring match the query, so a scored round
    leaves the result set as REMOVED and its cached status is dropped.
    """

    def __init__(self, app: Flask, db: Client) -> None:
        self.app = app
        self.db = db
        self._statuses: dict[str, str | None] = {}
        self._lock = threading.Lock()
        self._watch: Any = None
        self._initial_snapshot_seen = False

    def start(self) -> None:
        """Subscribe to round document changes."""
        if self._watch is not None:
            return
        query = self.db.collection_group(ROUNDS_COLLECTION).where(
            filter=firestore.FieldFilter("status", "in", WATCHED_STATUSES)
        )
        self._watch = query.on_snapshot(self.on_snapshot)
        logger.info("Round status watcher started.")

    def stop(self) -> None:
        """Cancel the subscription."""
        if self._watch is not None:
            self._watch.unsubscribe()
            self._watch = None
            logger.info("Round status watcher stopped.")

    def on_snapshot(self, snapshots: Any, changes: Any, read_time: Any) -> None:
        """Compare each changed round with the status seen last time."""
        with self._lock:
            initial = not self._initial_snapshot_seen
            self._initial_snapshot_seen = True

        for change in changes:
            document = change.document
            path = document.reference.path
            change_type = getattr(change.type, "name", str(change.type))

            if change_type == "REMOVED":
                with self._lock:
                    self._statuses.pop(path, None)
                continue

            after = document.to_dict() or {}
            with self._lock:
                before_status = self._statuses.get(path)
                self._statuses[path] = after.get("status")

            # The initial snapshot reports every existing round as ADDED.
            if initial:
                continue
            if not is_scoring_transition(before_status, after.get("status")):
                continue

            game_id = document.reference.parent.parent.id
            self.dispatch(game_id, document.id, {"status": before_status}, after)

    def dispatch(
        self,
        game_id: str,
        round_number: str,
        before: dict[str, Any],
        after: dict[str, Any],
    ) -> threading.Thread:
        """Run scoring on a background thread inside the app context."""

        def task() -> None:
            with self.app.app_context():
                handle_round_update(self.db, game_id, round_number, before, after)

        thread = threading.Thread(target=task, daemon=True)
        thread.start()
        return thread
