"""Tests for the app factory, error responses and the HTTP routes."""

from __future__ import annotations

import os
import subprocess
import sys
import unittest
from unittest.mock import MagicMock, patch

from songrank import create_app
from tests.conftest import FirestoreTestCase, predefined, song

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class AppFactoryTestCase(unittest.TestCase):
    """Test case for the app factory."""

    def test_404_returns_json_error(self) -> None:
        app = create_app({"TESTING": True})
        with app.test_client() as client:
            response = client.get("/api/does-not-exist")
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.get_json()["error"]["code"], "not-found")

    def test_wrong_method_is_not_reported_as_bad_input(self) -> None:
        app = create_app({"TESTING": True})
        response = app.test_client().get("/api/games/join")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.get_json()["error"]["code"], "failed-precondition")

    def test_app_builds_in_a_fresh_interpreter(self) -> None:
        code = (
            "from songrank import create_app; "
            "app = create_app({'TESTING': True}); "
            "print(len(app.blueprints))"
        )
        result = subprocess.run(
            [sys.executable, "-c", code],
            capture_output=True,
            text=True,
            cwd=PROJECT_ROOT,
            check=False,
        )
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertEqual(result.stdout.strip(), "7")

    def test_config_from_environment(self) -> None:
        env_vars = {
            "MUSIC_PROVIDER_BASE_URL": "https://deezer.test",
            "MUSIC_SEARCH_LIMIT": "25",
            "ROUND_WATCHER_ENABLED": "false",
            "ADMIN_TOKEN": "  token  ",
        }
        with patch.dict(os.environ, env_vars):
            app = create_app({"TESTING": True})

        self.assertEqual(app.config["MUSIC_PROVIDER_BASE_URL"], "https://deezer.test")
        self.assertEqual(app.config["MUSIC_SEARCH_LIMIT"], 25)
        self.assertFalse(app.config["ROUND_WATCHER_ENABLED"])
        self.assertEqual(app.config["ADMIN_TOKEN"], "token")

    @patch("songrank.init_firebase")
    @patch("songrank.firestore")
    @patch("songrank.round.triggers.RoundStatusWatcher")
    def test_watcher_starts_outside_tests(
        self, mock_watcher, mock_firestore, mock_init_firebase
    ) -> None:
        app = create_app({"ROUND_WATCHER_ENABLED": True})

        mock_init_firebase.assert_called_once_with(app)
        mock_watcher.assert_called_once_with(app, mock_firestore.client.return_value)
        mock_watcher.return_value.start.assert_called_once()
        self.assertIs(app.extensions["round_watcher"], mock_watcher.return_value)

    @patch("songrank.init_firebase")
    @patch("songrank.round.triggers.RoundStatusWatcher")
    def test_watcher_can_be_disabled(self, mock_watcher, mock_init_firebase) -> None:
        create_app({"ROUND_WATCHER_ENABLED": False})
        mock_watcher.assert_not_called()


class RoutesTestCase(FirestoreTestCase):
    """Drives a round through the HTTP API against the mock store."""

    def setUp(self) -> None:
        super().setUp()
        patcher = patch("firebase_admin.firestore.client", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.app = create_app({"TESTING": True})
        self.client = self.app.test_client()

    def post(self, url, payload=None):
        return self.client.post(url, json=payload if payload is not None else {})

    def test_create_game(self) -> None:
        response = self.post("/api/games", {"playerName": "Alice", "totalRounds": 3})

        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertEqual(self.game_doc(data["gameId"])["totalRounds"], 3)

    def test_create_game_with_too_few_rounds(self) -> None:
        response = self.post("/api/games", {"playerName": "Alice", "totalRounds": 2})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "invalid-argument")

    def test_settings_validation_details(self) -> None:
        self.seed_game("GAME01", [("p1", "Alice")])
        response = self.post(
            "/api/games/GAME01/settings",
            {
                "playerId": "p1",
                "newSettings": {"rounds": 4, "maxPlayers": 6, "allowExplicit": True},
            },
        )

        self.assertEqual(response.status_code, 400)
        error = response.get_json()["error"]
        self.assertEqual(error["code"], "invalid-argument")
        self.assertEqual(error["details"], ["rounds must be one of [3, 5, 7, 10]."])

    def test_missing_field(self) -> None:
        response = self.post("/api/games/join", {})
        self.assertEqual(response.status_code, 400)

    def test_join_full_game(self) -> None:
        self.seed_game(
            "GAME01",
            [("p1", "Alice"), ("p2", "Bob"), ("p3", "Carol")],
            settings={"maxPlayers": 3, "rounds": 3},
        )
        response = self.post(
            "/api/games/join", {"playerName": "Dave", "gameId": "GAME01"}
        )
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.get_json()["error"]["code"], "resource-exhausted")

    def test_start_by_non_creator(self) -> None:
        self.seed_game("GAME01", [("p1", "Alice"), ("p2", "Bob")])
        response = self.post("/api/games/GAME01/start", {"playerId": "p2"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["roundNumber"], 1)

    def test_create_game_with_zero_rounds(self) -> None:
        response = self.post("/api/games", {"playerName": "Alice", "totalRounds": 0})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "invalid-argument")
        self.assertEqual(self.db.transactions, [])

    def test_create_game_without_rounds_uses_default(self) -> None:
        response = self.post("/api/games", {"playerName": "Alice"})

        self.assertEqual(response.status_code, 201)
        game_id = response.get_json()["gameId"]
        self.assertEqual(self.game_doc(game_id)["totalRounds"], 5)

    def test_round_flow_over_http(self) -> None:
        self.seed_game("GAME01", [("p1", "Alice"), ("p2", "Bob")])
        self.seed_challenge(
            "songs-about-rain",
            "Songs about rain",
            [predefined(f"90{i}") for i in range(5)],
        )

        response = self.post("/api/games/GAME01/start", {"playerId": "p1"})
        self.assertEqual(response.status_code, 200)
        host = response.get_json()["data"]["hostPlayerId"]

        response = self.post(
            "/api/games/GAME01/rounds/1/challenge",
            {"playerId": host, "challenge": "Songs about rain"},
        )
        self.assertEqual(response.status_code, 200)

        response = self.post("/api/games/GAME01/selection/start", {"playerId": host})
        self.assertEqual(response.status_code, 200)

        for player_id, track in (("p1", "A"), ("p2", "B")):
            response = self.post(
                "/api/games/GAME01/nominations",
                {"playerId": player_id, "nominationInput": {"searchResult": song(track)}},
            )
            self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["data"]["allSongsSubmitted"])

        response = self.post(
            "/api/games/GAME01/playback", {"playerId": host, "action": "next"}
        )
        self.assertEqual(response.get_json()["data"]["currentPlayingTrackIndex"], 1)

        response = self.post("/api/games/GAME01/ranking/start", {"playerId": host})
        self.assertEqual(response.status_code, 200)

        for player_id in ("p1", "p2"):
            response = self.post(
                "/api/games/GAME01/rankings",
                {"playerId": player_id, "rankings": {"A": 1, "B": 2}},
            )
            self.assertEqual(response.status_code, 200)
        self.assertEqual(self.game_doc("GAME01")["status"], "round1_scoring")

        response = self.post("/api/games/GAME01/rounds/1/scores")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["winnerData"]["winnerPlayerIds"], ["p1"])

        response = self.post("/api/games/GAME01/rounds/1/scores")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"]["code"], "failed-precondition")

        response = self.post("/api/games/GAME01/rounds/next")
        self.assertEqual(response.get_json()["data"]["roundNumber"], 2)

    def test_challenge_endpoints(self) -> None:
        self.seed_challenge("songs-about-rain", "Songs about rain", [predefined("1")])

        response = self.client.get("/api/challenges")
        self.assertEqual(response.get_json()["challenges"], ["Songs about rain"])

        response = self.client.get(
            "/api/challenges/details", query_string={"text": "Songs about rain"}
        )
        self.assertEqual(response.get_json()["predefinedSongs"], [predefined("1")])

        response = self.client.get("/api/challenges/details")
        self.assertEqual(response.status_code, 400)

    @patch("songrank.music.routes.get_music_provider")
    def test_music_search(self, mock_get_provider) -> None:
        from songrank.music.models import Track

        provider = MagicMock()
        provider.search_tracks.return_value = [Track("1", "Rain", "The Beatles")]
        mock_get_provider.return_value = provider
        self.seed_game("GAME01", [("p1", "Alice")])

        response = self.post(
            "/api/music/search",
            {"query": "rain", "gameId": "GAME01", "playerId": "p1", "limit": 500},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["results"][0]["trackId"], "1")
        provider.search_tracks.assert_called_once_with(
            "rain", allow_explicit=True, limit=50
        )

    @patch("songrank.music.routes.get_music_provider")
    def test_music_provider_failure(self, mock_get_provider) -> None:
        from songrank.music.provider import MusicProviderError

        mock_get_provider.return_value.search_tracks.side_effect = MusicProviderError(
            original=RuntimeError("timeout")
        )
        self.seed_game("GAME01", [("p1", "Alice")])

        response = self.post(
            "/api/music/search", {"query": "rain", "gameId": "GAME01", "playerId": "p1"}
        )

        self.assertEqual(response.status_code, 500)
        error = response.get_json()["error"]
        self.assertEqual(error["code"], "internal")
        self.assertEqual(error["details"], {"originalError": "timeout"})

    @patch("songrank.music.routes.get_music_provider")
    def test_music_search_rejects_zero_limit(self, mock_get_provider) -> None:
        self.seed_game("GAME01", [("p1", "Alice")])

        response = self.post(
            "/api/music/search",
            {"query": "rain", "gameId": "GAME01", "playerId": "p1", "limit": 0},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"]["code"], "invalid-argument")
        mock_get_provider.return_value.search_tracks.assert_not_called()
