"""Assembly of the list of songs every player ranks."""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import TYPE_CHECKING

from songrank.core.constants import MIN_SONGS_FOR_RANKING

from .models import PoolSong, SongSubmission

if TYPE_CHECKING:
    from songrank.challenge.models import PredefinedSong


def pool_entry_from_submission(submission: SongSubmission) -> PoolSong:
    """Strip the submitter-specific fields off a nomination."""
    return {
        "trackId": str(submission["trackId"]),
        "name": submission.get("name", ""),
        "artist": submission.get("artist", ""),
        "previewUrl": submission.get("previewUrl"),
        "albumImageUrl": submission.get("albumImageUrl"),
    }


def pool_entry_from_predefined(song: PredefinedSong) -> PoolSong:
    """Convert a curated challenge song into a pool entry."""
    return {
        "trackId": str(song["trackId"]),
        "name": song.get("title", ""),
        "artist": song.get("artist", ""),
        "previewUrl": song.get("previewUrl"),
        "albumImageUrl": song.get("albumImageUrl"),
    }


def build_song_pool(
    submissions: Iterable[SongSubmission],
    predefined_songs: Iterable[PredefinedSong] = (),
    minimum: int = MIN_SONGS_FOR_RANKING,
    rng: random.Random | None = None,
) -> list[PoolSong]:
    """Build the ranking pool from the players' nominations.

    Every nominated track appears exactly once, even when several players
    picked it. If fewer than ``minimum`` distinct tracks were nominated, the
    pool is topped up with randomly chosen predefined songs that nobody
    nominated. The final order is shuffled so submitters cannot be inferred.
    """
    rng = rng or random.Random()  # nosec B311
    pool: list[PoolSong] = []
    seen: set[str] = set()

    for submission in submissions:
        track_id = str(submission["trackId"])
        if track_id in seen:
            continue
        seen.add(track_id)
        pool.append(pool_entry_from_submission(submission))

    fillers = [
        song
        for song in predefined_songs
        if song.get("trackId") and str(song["trackId"]) not in seen
    ]
    rng.shuffle(fillers)
    for song in fillers:
        if len(pool) >= minimum:
            break
        track_id = str(song["trackId"])
        if track_id in seen:
            continue
        seen.add(track_id)
        pool.append(pool_entry_from_predefined(song))

    rng.shuffle(pool)
    return pool
