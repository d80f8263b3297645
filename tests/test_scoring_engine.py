"""Tests for the pure round scoring rules."""

import unittest

from songrank.scoring.engine import SongTally, assign_placement_points, score_round
from tests.conftest import song

NAMES = {"p1": "Alice", "p2": "Bob", "p3": "Carol", "p4": "Dave"}


def names(*player_ids):
    return {player_id: NAMES[player_id] for player_id in player_ids}


class TestScoreRound(unittest.TestCase):
    def test_two_players_split_a_tie(self):
        outcome = score_round(
            {"p1": song("A"), "p2": song("B")},
            {"p1": {"A": 1, "B": 2}, "p2": {"A": 2, "B": 1}},
            names("p1", "p2"),
        )

        self.assertEqual(outcome.scores["p1"].total, 1)
        self.assertEqual(outcome.scores["p2"].total, 1)
        self.assertEqual(outcome.winner_data["winnerPlayerIds"], ["p1", "p2"])
        self.assertEqual(outcome.winner_data["winningScore"], 1)
        self.assertTrue(all(result["isWinner"] for result in outcome.results))

    def test_clear_winner(self):
        outcome = score_round(
            {"p1": song("A"), "p2": song("B"), "p3": song("C")},
            {
                "p1": {"A": 1, "B": 2, "C": 3},
                "p2": {"A": 1, "B": 3, "C": 2},
                "p3": {"A": 2, "B": 1, "C": 3},
            },
            names("p1", "p2", "p3"),
        )

        self.assertEqual(outcome.tallies["A"].rank_sum, 4)
        self.assertEqual(outcome.tallies["B"].rank_sum, 6)
        self.assertEqual(outcome.tallies["C"].rank_sum, 8)
        self.assertEqual(
            {pid: score.total for pid, score in outcome.scores.items()},
            {"p1": 3, "p2": 2, "p3": 1},
        )
        self.assertEqual(outcome.winner_data["winnerPlayerIds"], ["p1"])

        result = next(r for r in outcome.results if r["playerId"] == "p2")
        self.assertEqual(result["playerName"], "Bob")
        self.assertEqual(result["songName"], "Song B")
        self.assertEqual(result["songArtist"], "Artist B")
        self.assertEqual(result["rankSum"], 6)
        self.assertFalse(result["isWinner"])

    def test_duplicate_nomination_penalty(self):
        outcome = score_round(
            {"p1": song("X"), "p2": song("X"), "p3": song("X"), "p4": song("Y")},
            {pid: {"X": 1, "Y": 2} for pid in NAMES},
            names("p1", "p2", "p3", "p4"),
        )

        self.assertEqual(outcome.tallies["X"].points, 2)
        self.assertEqual(outcome.tallies["Y"].points, 1)
        for player_id in ("p1", "p2", "p3"):
            score = outcome.scores[player_id]
            self.assertEqual(score.base_points, 2)
            self.assertEqual(score.duplicate_penalty, -2)
            self.assertEqual(score.total, 0)
        self.assertEqual(outcome.scores["p4"].duplicate_penalty, 0)
        self.assertEqual(outcome.winner_data["winnerPlayerIds"], ["p4"])

    def test_rankings_keyed_by_song_name(self):
        outcome = score_round(
            {"p1": song("A", "Umbrella"), "p2": song("B", "Purple Rain")},
            {
                "p1": {"Umbrella": 1, "Purple Rain": 2},
                "p2": {"Umbrella": 1, "B": 2},
            },
            names("p1", "p2"),
        )
        self.assertEqual(outcome.tallies["A"].rank_sum, 2)
        self.assertEqual(outcome.tallies["B"].rank_sum, 4)
        self.assertEqual(outcome.scores["p1"].total, 2)
        self.assertEqual(outcome.scores["p2"].total, 1)

    def test_ambiguous_names_and_unknown_keys_are_ignored(self):
        outcome = score_round(
            {"p1": song("A", "Rain"), "p2": song("B", "Rain")},
            {
                "p1": {"Rain": 1, "A": 1, "B": 2, "filler-song": 3},
                "p2": {"A": 2, "B": 1},
            },
            names("p1", "p2"),
        )
        self.assertEqual(outcome.tallies["A"].rank_sum, 3)
        self.assertEqual(outcome.tallies["B"].rank_sum, 3)

    def test_player_without_nomination_scores_zero(self):
        outcome = score_round(
            {"p1": song("A"), "p2": song("B")},
            {"p1": {"A": 1, "B": 2}, "p2": {"A": 1, "B": 2}, "p3": {"A": 2}},
            names("p1", "p2", "p3"),
        )
        self.assertEqual(outcome.scores["p3"].total, 0)
        self.assertIsNone(outcome.scores["p3"].track_id)
        self.assertNotIn("p3", [result["playerId"] for result in outcome.results])

    def test_score_document_shape(self):
        outcome = score_round(
            {"p1": song("A"), "p2": song("A")},
            {"p1": {"A": 1}, "p2": {"A": 1}},
            names("p1", "p2"),
        )
        self.assertEqual(
            outcome.scores["p1"].to_score_document(),
            {
                "roundScore": 1,
                "duplicatePenalty": -1,
                "bonusPoints": 0,
                "jokerUsed": False,
                "totalScoreForRound": 0,
            },
        )


class TestAssignPlacementPoints(unittest.TestCase):
    def tallies(self, *rank_sums):
        return {
            str(i): SongTally(track_id=str(i), name="", artist="", rank_sum=rank_sum)
            for i, rank_sum in enumerate(rank_sums)
        }

    def test_distinct_sums_award_n_minus_rank(self):
        tallies = self.tallies(5, 3, 9, 7)
        assign_placement_points(tallies)
        self.assertEqual(
            [tallies[str(i)].points for i in range(4)], [3, 4, 1, 2]
        )
        self.assertEqual(sum(t.points for t in tallies.values()), 10)

    def test_tied_block_shares_floored_average(self):
        tallies = self.tallies(2, 4, 4, 4, 9)
        assign_placement_points(tallies)
        # Places two to four carry 4 + 3 + 2 = 9 points, split three ways.
        self.assertEqual(
            [tallies[str(i)].points for i in range(5)], [5, 3, 3, 3, 1]
        )

    def test_tied_block_floors_remainder(self):
        tallies = self.tallies(3, 3)
        assign_placement_points(tallies)
        self.assertEqual([t.points for t in tallies.values()], [1, 1])

    def test_empty(self):
        tallies = {}
        assign_placement_points(tallies)
        self.assertEqual(tallies, {})
