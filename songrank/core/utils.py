"""Utility functions for identifiers and status strings."""

from __future__ import annotations

import random
import re
import string
import time

from .constants import GAME_ID_LENGTH

_BASE36 = string.digits + string.ascii_lowercase


def generate_game_id() -> str:
    """Generate a short, shareable game code."""
    return "".join(random.choices(_BASE36, k=GAME_ID_LENGTH)).upper()  # nosec B311


def generate_player_id() -> str:
    """Generate a player id that sorts in join order."""
    suffix = "".join(random.choices(_BASE36, k=5))  # nosec B311
    return f"player_{int(time.time() * 1000)}_{suffix}"


def slugify(text: str) -> str:
    """Turn challenge text into a document id."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def round_status(round_number: int, phase: str) -> str:
    """Build the game level status for a round phase, e.g. round2_ranking."""
    return f"round{round_number}_{phase}"
