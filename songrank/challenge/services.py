"""Service layer for challenge prompts and their predefined songs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from songrank.core.constants import (
    CHALLENGES_COLLECTION,
    FIRESTORE_BATCH_LIMIT,
    MIN_PREVIEW_DURATION_SECONDS,
    SONGS_PER_CHALLENGE,
)
from songrank.core.utils import slugify
from songrank.errors import ValidationError
from songrank.music.provider import MusicProviderError

from . import data as challenge_data
from .models import PredefinedSong

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from songrank.music.models import Track
    from songrank.music.provider import MusicProvider

logger = logging.getLogger(__name__)


def song_from_track(track: Track) -> PredefinedSong:
    """Convert a catalog track into a predefined song entry."""
    song: PredefinedSong = {
        "trackId": track.track_id,
        "title": track.name,
        "artist": track.artist_name,
        "previewUrl": track.preview_url,
    }
    if track.album_image_url:
        song["albumImageUrl"] = track.album_image_url
    return song


def _has_full_preview(track: Track) -> bool:
    if not track.preview_url:
        return False
    return (track.duration_ms or 0) >= MIN_PREVIEW_DURATION_SECONDS * 1000


class ChallengeService:
    """Service class for challenge operations."""

    @staticmethod
    def get_predefined_challenges(db: Client) -> list[str]:
        """Return the text of every challenge, alphabetically."""
        texts = []
        for challenge in challenge_data.get_all_challenges(db):
            text = challenge.get("text")
            if isinstance(text, str) and text:
                texts.append(text)
            else:
                logger.warning(f"Challenge {challenge['id']} has no text, skipping.")
        return sorted(texts)

    @staticmethod
    def get_challenge_details(db: Client, challenge_text: str) -> list[PredefinedSong]:
        """Return the predefined songs of a challenge, or [] if it is unknown."""
        if not challenge_text or not challenge_text.strip():
            raise ValidationError("Challenge text is required.")
        challenge = challenge_data.get_challenge_by_text(db, challenge_text)
        if challenge is None:
            logger.info(f"No challenge document for {challenge_text!r}.")
            return []
        return list(challenge.get("predefinedSongs") or [])

    @staticmethod
    def find_songs_for_challenge(
        provider: MusicProvider,
        challenge_text: str,
        songs_per_challenge: int = SONGS_PER_CHALLENGE,
    ) -> list[PredefinedSong]:
        """Search the catalog for previewable songs matching a challenge."""
        tracks = provider.search_tracks(
            challenge_text, allow_explicit=True, limit=songs_per_challenge * 2
        )
        songs: list[PredefinedSong] = []
        seen: set[str] = set()
        for track in tracks:
            if track.track_id in seen or not _has_full_preview(track):
                continue
            seen.add(track.track_id)
            songs.append(song_from_track(track))
            if len(songs) >= songs_per_challenge:
                break
        return songs

    @staticmethod
    def populate_challenges(
        db: Client,
        provider: MusicProvider,
        challenge_texts: list[str],
        songs_per_challenge: int = SONGS_PER_CHALLENGE,
    ) -> dict[str, Any]:
        """Seed challenge documents with songs found in the music catalog.

        Each challenge is written to challenges/{slug}, replacing any previous
        document. A challenge whose catalog search fails is reported and skipped
        so the rest of the list is still seeded.
        """
        texts = []
        for text in challenge_texts:
            if not isinstance(text, str) or not text.strip():
                raise ValidationError("Challenge texts must be non-empty strings.")
            if text.strip() not in texts:
                texts.append(text.strip())
        if not texts:
            raise ValidationError("At least one challenge text is required.")
        if songs_per_challenge < 1:
            raise ValidationError("songsPerChallenge must be a positive integer.")

        collection = db.collection(CHALLENGES_COLLECTION)
        batch = db.batch()
        pending = 0
        created = 0
        songs_added = 0
        failed: list[str] = []

        for text in texts:
            try:
                songs = ChallengeService.find_songs_for_challenge(
                    provider, text, songs_per_challenge
                )
            except MusicProviderError as e:
                logger.error(f"Could not find songs for challenge {text!r}: {e}")
                failed.append(text)
                continue

            batch.set(
                collection.document(slugify(text)),
                {
                    "text": text,
                    "predefinedSongs": songs,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            pending += 1
            created += 1
            songs_added += len(songs)

            if pending >= FIRESTORE_BATCH_LIMIT:
                batch.commit()
                batch = db.batch()
                pending = 0

        if pending:
            batch.commit()

        logger.info(
            f"Populated {created} challenges with {songs_added} songs "
            f"({len(failed)} failed)."
        )
        return {
            "challengesCreated": created,
            "songsAdded": songs_added,
            "failedChallenges": failed,
        }
