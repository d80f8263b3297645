"""Data models for rounds, rankings and scores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from songrank.core.constants import MAX_SONG_NAME_LENGTH, PLAYBACK_ACTIONS
from songrank.core.types import FirestoreDocument
from songrank.errors import ValidationError


class SongSubmission(TypedDict, total=False):
    """A player's nominated song, stored in Round.playerSongs."""

    trackId: str
    name: str
    artist: str
    previewUrl: Optional[str]
    albumImageUrl: Optional[str]
    isPredefined: bool
    submittedAt: Any


class PoolSong(TypedDict, total=False):
    """An anonymous entry of Round.songsForRanking."""

    trackId: str
    name: str
    artist: str
    previewUrl: Optional[str]
    albumImageUrl: Optional[str]


class RoundResult(TypedDict):
    """Outcome of a round for one player."""

    playerId: str
    playerName: str
    trackId: str
    songName: str
    songArtist: str
    rankSum: int
    basePoints: int
    duplicatePenalty: int
    pointsAwarded: int
    isWinner: bool


class WinnerData(TypedDict):
    """The winning players of a round and their score."""

    winnerPlayerIds: list[str]
    winningScore: int


class Round(FirestoreDocument, total=False):
    """A round document, keyed by round number under games/{gameId}/rounds."""

    challenge: Optional[str]
    hostPlayerId: str
    status: str
    playerSongs: dict[str, SongSubmission]
    songsForRanking: list[PoolSong]
    currentPlayingTrackIndex: int
    isPlaying: bool
    selectionStartTime: Any
    rankingStartTime: Any
    results: list[RoundResult]
    winnerData: Optional[WinnerData]


class Score(TypedDict, total=False):
    """A player's score breakdown for one round."""

    roundScore: int
    duplicatePenalty: int
    bonusPoints: int
    jokerUsed: bool
    totalScoreForRound: int
    calculatedAt: Any


@dataclass
class NominationInput:
    """Either a catalog search result or the id of a predefined song."""

    search_result: Optional[dict[str, Any]] = None
    predefined_track_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NominationInput:
        """Build a nomination from the request's nominationInput object."""
        return cls(
            search_result=data.get("searchResult"),
            predefined_track_id=data.get("predefinedTrackId"),
        )

    def validate(self) -> None:
        """Ensure exactly one well formed nomination source is present."""
        if self.search_result is not None and self.predefined_track_id is not None:
            raise ValidationError(
                "Provide either searchResult or predefinedTrackId, not both."
            )
        if self.predefined_track_id is not None:
            if (
                not isinstance(self.predefined_track_id, str)
                or not self.predefined_track_id.strip()
            ):
                raise ValidationError("predefinedTrackId must be a non-empty string.")
            return
        if not isinstance(self.search_result, dict):
            raise ValidationError(
                "nominationInput requires searchResult or predefinedTrackId."
            )
        track_id = self.search_result.get("trackId")
        if (
            isinstance(track_id, bool)
            or not isinstance(track_id, (str, int))
            or not str(track_id).strip()
        ):
            raise ValidationError("searchResult.trackId is required.")
        for key in ("name", "artist"):
            value = self.search_result.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"searchResult.{key} is required.")
        if len(self.search_result["name"]) > MAX_SONG_NAME_LENGTH:
            raise ValidationError(
                f"Song name must be {MAX_SONG_NAME_LENGTH} characters or fewer."
            )
        preview_url = self.search_result.get("previewUrl")
        if preview_url is not None and not isinstance(preview_url, str):
            raise ValidationError("searchResult.previewUrl must be a string.")

    def to_submission(self) -> SongSubmission:
        """Convert a search result into the stored submission shape."""
        result = self.search_result or {}
        return {
            "trackId": str(result["trackId"]),
            "name": result["name"].strip(),
            "artist": result["artist"].strip(),
            "previewUrl": result.get("previewUrl") or None,
            "albumImageUrl": result.get("albumImageUrl") or None,
            "isPredefined": False,
        }


@dataclass
class PlaybackCommand:
    """A host's playback control request."""

    action: str
    target_index: Optional[int] = None

    def validate(self) -> None:
        """Check the action name and the seek index."""
        if self.action not in PLAYBACK_ACTIONS:
            raise ValidationError(
                f"action must be one of {list(PLAYBACK_ACTIONS)}."
            )
        if self.action == "seekToIndex" and (
            isinstance(self.target_index, bool)
            or not isinstance(self.target_index, int)
            or self.target_index < 0
        ):
            raise ValidationError(
                "targetIndex must be a non-negative integer for seekToIndex."
            )


def validate_rankings(rankings: Any) -> dict[str, int]:
    """Check a rankings map of song key to positive integer rank."""
    if not isinstance(rankings, dict) or not rankings:
        raise ValidationError("rankings must be a non-empty object.")
    for key, rank in rankings.items():
        if not isinstance(key, str) or not key:
            raise ValidationError("Ranking keys must be non-empty strings.")
        if isinstance(rank, bool) or not isinstance(rank, int) or rank < 1:
            raise ValidationError(f"Rank for {key} must be a positive integer.")
    return rankings
