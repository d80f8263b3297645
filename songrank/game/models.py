"""Data models for the game blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from songrank.core.constants import (
    DEFAULT_TOTAL_ROUNDS,
    MAX_PLAYER_NAME_LENGTH,
    MAX_PLAYERS,
    MAX_ROUNDS,
    MIN_ROUNDS,
    VALID_MAX_PLAYERS,
    VALID_ROUNDS,
    VALID_TIME_LIMITS,
)
from songrank.core.types import FirestoreDocument
from songrank.errors import ValidationError


class GameSettings(TypedDict, total=False):
    """Settings chosen by the creator while the game is waiting."""

    rounds: int
    maxPlayers: int
    allowExplicit: bool
    selectionTimeLimit: Optional[int]
    rankingTimeLimit: Optional[int]


class Game(FirestoreDocument, total=False):
    """A game document in Firestore."""

    status: str
    playerCount: int
    maxPlayers: int
    currentRound: int
    totalRounds: int
    creatorPlayerId: str
    roundHostPlayerId: Optional[str]
    challenge: Optional[str]
    settings: GameSettings
    startedAt: Any
    finishedAt: Any


def configured_rounds(game: Game) -> int:
    """Return the number of rounds the game is set to last."""
    settings = game.get("settings") or {}
    return int(
        settings.get("rounds") or game.get("totalRounds") or DEFAULT_TOTAL_ROUNDS
    )


def configured_max_players(game: Game) -> int:
    """Return the player capacity of the game."""
    settings = game.get("settings") or {}
    return int(settings.get("maxPlayers") or game.get("maxPlayers") or MAX_PLAYERS)


def validate_player_name(name: Any) -> str:
    """Return the trimmed player name or raise ValidationError."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Player name is required.")
    name = name.strip()
    if len(name) > MAX_PLAYER_NAME_LENGTH:
        raise ValidationError(
            f"Player name must be {MAX_PLAYER_NAME_LENGTH} characters or fewer."
        )
    return name


@dataclass
class GameCreation:
    """Input for creating a new game."""

    player_name: str
    total_rounds: int

    def validate(self) -> None:
        """Validate the creator name and the number of rounds."""
        self.player_name = validate_player_name(self.player_name)
        if (
            isinstance(self.total_rounds, bool)
            or not isinstance(self.total_rounds, int)
            or not MIN_ROUNDS <= self.total_rounds <= MAX_ROUNDS
        ):
            raise ValidationError(
                f"Total rounds must be an integer between {MIN_ROUNDS} and "
                f"{MAX_ROUNDS}."
            )


@dataclass
class GameSettingsUpdate:
    """A complete replacement of a game's settings."""

    rounds: Any
    max_players: Any
    allow_explicit: Any
    selection_time_limit: Any = None
    ranking_time_limit: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameSettingsUpdate:
        """Build an update from the camelCase settings object."""
        return cls(
            rounds=data.get("rounds"),
            max_players=data.get("maxPlayers"),
            allow_explicit=data.get("allowExplicit"),
            selection_time_limit=data.get("selectionTimeLimit"),
            ranking_time_limit=data.get("rankingTimeLimit"),
        )

    def validate(self) -> None:
        """Check every field against its allowed values."""
        errors = []
        if isinstance(self.rounds, bool) or self.rounds not in VALID_ROUNDS:
            errors.append(f"rounds must be one of {list(VALID_ROUNDS)}.")
        if isinstance(self.max_players, bool) or self.max_players not in (
            VALID_MAX_PLAYERS
        ):
            errors.append(f"maxPlayers must be one of {list(VALID_MAX_PLAYERS)}.")
        if not isinstance(self.allow_explicit, bool):
            errors.append("allowExplicit must be a boolean.")
        for field, value in (
            ("selectionTimeLimit", self.selection_time_limit),
            ("rankingTimeLimit", self.ranking_time_limit),
        ):
            if value is not None and (
                isinstance(value, bool) or value not in VALID_TIME_LIMITS
            ):
                errors.append(
                    f"{field} must be one of {list(VALID_TIME_LIMITS)} or null."
                )
        if errors:
            raise ValidationError("Invalid game settings.", details=errors)

    def to_dict(self) -> GameSettings:
        """Return the settings object as stored on the game."""
        return {
            "rounds": self.rounds,
            "maxPlayers": self.max_players,
            "allowExplicit": self.allow_explicit,
            "selectionTimeLimit": self.selection_time_limit,
            "rankingTimeLimit": self.ranking_time_limit,
        }
