"""Round scoring: rank sums, tie-aware placement points and duplicate penalties.

Songs are identified by track id. Rankings are maps of song key to rank
(1 is best); a key is normally a track id, and a display name is accepted
when exactly one nominated song carries it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from songrank.round.models import RoundResult, Score, SongSubmission, WinnerData

logger = logging.getLogger(__name__)


@dataclass
class SongTally:
    """A unique nominated song and the votes it received."""

    track_id: str
    name: str
    artist: str
    submitters: list[str] = field(default_factory=list)
    rank_sum: int = 0
    points: int = 0

    @property
    def duplicate_penalty(self) -> int:
        return -(len(self.submitters) - 1) if len(self.submitters) > 1 else 0


@dataclass
class PlayerRoundScore:
    """One player's score components for a round."""

    player_id: str
    track_id: str | None
    base_points: int = 0
    duplicate_penalty: int = 0
    bonus_points: int = 0
    joker_used: bool = False

    @property
    def total(self) -> int:
        return self.base_points + self.duplicate_penalty + self.bonus_points

    def to_score_document(self) -> Score:
        return {
            "roundScore": self.base_points,
            "duplicatePenalty": self.duplicate_penalty,
            "bonusPoints": self.bonus_points,
            "jokerUsed": self.joker_used,
            "totalScoreForRound": self.total,
        }


@dataclass
class RoundOutcome:
    """Everything the scoring step writes back for a round."""

    tallies: dict[str, SongTally]
    scores: dict[str, PlayerRoundScore]
    results: list[RoundResult]
    winner_data: WinnerData


def group_submissions(
    submissions: Mapping[str, SongSubmission],
) -> dict[str, SongTally]:
    """Group nominations by track id, remembering who submitted each song."""
    tallies: dict[str, SongTally] = {}
    for player_id in sorted(submissions):
        submission = submissions[player_id] or {}
        if not submission.get("trackId"):
            logger.warning(f"Submission of player {player_id} has no trackId.")
            continue
        track_id = str(submission["trackId"])
        tally = tallies.get(track_id)
        if tally is None:
            tally = SongTally(
                track_id=track_id,
                name=submission.get("name", ""),
                artist=submission.get("artist", ""),
            )
            tallies[track_id] = tally
        tally.submitters.append(player_id)
    return tallies


def build_key_map(tallies: Mapping[str, SongTally]) -> dict[str, str]:
    """Map every accepted ranking key onto its canonical track id."""
    key_map = {track_id: track_id for track_id in tallies}
    by_name: dict[str, list[str]] = {}
    for tally in tallies.values():
        by_name.setdefault(tally.name, []).append(tally.track_id)
    for name, track_ids in by_name.items():
        # Ambiguous names are not accepted as keys.
        if name and len(track_ids) == 1 and name not in key_map:
            key_map[name] = track_ids[0]
    return key_map


def sum_ranks(
    tallies: Mapping[str, SongTally], rankings: Mapping[str, Mapping[str, Any]]
) -> None:
    """Add every player's ranks onto the nominated songs."""
    key_map = build_key_map(tallies)
    for ranker_id, player_rankings in rankings.items():
        for key, rank in player_rankings.items():
            track_id = key_map.get(key)
            if track_id is None:
                logger.info(f"Ignoring rank for {key!r} from player {ranker_id}.")
                continue
            tallies[track_id].rank_sum += int(rank)


def assign_placement_points(tallies: Mapping[str, SongTally]) -> None:
    """Give each song ``n - rank`` points, averaging over tied rank sums."""
    ordered = sorted(tallies.values(), key=lambda tally: tally.rank_sum)
    song_count = len(ordered)
    start = 0
    while start < song_count:
        end = start
        while (
            end + 1 < song_count
            and ordered[end + 1].rank_sum == ordered[start].rank_sum
        ):
            end += 1
        block = range(start, end + 1)
        block_points = sum(max(0, song_count - rank) for rank in block)
        shared = block_points // len(block)
        for rank in block:
            ordered[rank].points = shared
        start = end + 1


def score_round(
    submissions: Mapping[str, SongSubmission],
    rankings: Mapping[str, Mapping[str, Any]],
    players: Mapping[str, str],
) -> RoundOutcome:
    """Score a round.

    Args:
        submissions: playerSongs of the round, keyed by player id.
        rankings: the ``rankings`` maps of every Ranking document, keyed by
            the ranking player's id.
        players: name of every active player, keyed by player id.
    """
    tallies = group_submissions(submissions)
    sum_ranks(tallies, rankings)
    assign_placement_points(tallies)

    scores: dict[str, PlayerRoundScore] = {}
    for player_id in sorted(players):
        submission = submissions.get(player_id) or {}
        track_id = str(submission["trackId"]) if submission.get("trackId") else None
        score = PlayerRoundScore(player_id=player_id, track_id=track_id)
        tally = tallies.get(track_id) if track_id else None
        if tally is not None:
            score.base_points = tally.points
            score.duplicate_penalty = tally.duplicate_penalty
        scores[player_id] = score

    winning_score = max((score.total for score in scores.values()), default=0)
    winner_ids = [
        player_id
        for player_id, score in scores.items()
        if score.total == winning_score
    ]

    results: list[RoundResult] = []
    for player_id, score in scores.items():
        if score.track_id is None:
            continue
        tally = tallies[score.track_id]
        submission = submissions[player_id]
        results.append(
            {
                "playerId": player_id,
                "playerName": players.get(player_id, "Unknown Player"),
                "trackId": score.track_id,
                "songName": submission.get("name", tally.name),
                "songArtist": submission.get("artist", tally.artist),
                "rankSum": tally.rank_sum,
                "basePoints": score.base_points,
                "duplicatePenalty": score.duplicate_penalty,
                "pointsAwarded": score.total,
                "isWinner": player_id in winner_ids,
            }
        )

    return RoundOutcome(
        tallies=tallies,
        scores=scores,
        results=results,
        winner_data={"winnerPlayerIds": winner_ids, "winningScore": winning_score},
    )
