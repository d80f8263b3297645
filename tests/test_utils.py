"""Tests for identifier helpers, payload validation and settings models."""

import time
import unittest

from songrank import create_app
from songrank.core.payloads import (
    get_json_payload,
    optional_bool,
    optional_int,
    optional_str,
    require_dict,
    require_str,
)
from songrank.core.utils import (
    generate_game_id,
    generate_player_id,
    round_status,
    slugify,
)
from songrank.errors import ValidationError
from songrank.game.models import GameSettingsUpdate


class UtilsTestCase(unittest.TestCase):
    def test_game_id(self):
        game_id = generate_game_id()
        self.assertEqual(len(game_id), 6)
        self.assertTrue(game_id.isalnum())
        self.assertEqual(game_id, game_id.upper())

    def test_player_ids_sort_in_creation_order(self):
        first = generate_player_id()
        time.sleep(0.002)
        second = generate_player_id()
        self.assertTrue(first.startswith("player_"))
        self.assertLess(first, second)

    def test_slugify(self):
        self.assertEqual(slugify("Songs about Rain!"), "songs-about-rain")
        self.assertEqual(slugify("  90's   hits "), "90-s-hits")
        self.assertEqual(slugify("!!!"), "")

    def test_round_status(self):
        self.assertEqual(round_status(2, "ranking"), "round2_ranking")


class PayloadsTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app({"TESTING": True})

    def test_non_object_body(self):
        with self.app.test_request_context(json=["a"]):
            with self.assertRaises(ValidationError):
                get_json_payload()
        with self.app.test_request_context(data="not json"):
            self.assertEqual(get_json_payload(), {})

    def test_field_helpers(self):
        payload = {
            "name": "Alice",
            "blank": "  ",
            "count": 3,
            "flag": True,
            "obj": {"a": 1},
        }
        self.assertEqual(require_str(payload, "name"), "Alice")
        self.assertIsNone(optional_str(payload, "blank"))
        self.assertIsNone(optional_str(payload, "missing"))
        self.assertEqual(optional_int(payload, "count"), 3)
        self.assertIsNone(optional_int(payload, "missing"))
        self.assertTrue(optional_bool(payload, "flag"))
        self.assertEqual(require_dict(payload, "obj"), {"a": 1})

        with self.assertRaises(ValidationError):
            require_str(payload, "blank")
        with self.assertRaises(ValidationError):
            optional_int(payload, "flag")
        with self.assertRaises(ValidationError):
            optional_bool(payload, "count")
        with self.assertRaises(ValidationError):
            require_dict({"obj": {}}, "obj")


class GameSettingsUpdateTestCase(unittest.TestCase):
    def test_valid_settings(self):
        update = GameSettingsUpdate.from_dict(
            {"rounds": 10, "maxPlayers": 3, "allowExplicit": True}
        )
        update.validate()
        self.assertEqual(
            update.to_dict(),
            {
                "rounds": 10,
                "maxPlayers": 3,
                "allowExplicit": True,
                "selectionTimeLimit": None,
                "rankingTimeLimit": None,
            },
        )

    def test_all_errors_are_reported(self):
        update = GameSettingsUpdate.from_dict(
            {"rounds": 6, "maxPlayers": 2, "selectionTimeLimit": 30}
        )
        with self.assertRaises(ValidationError) as cm:
            update.validate()
        self.assertEqual(len(cm.exception.details), 4)
