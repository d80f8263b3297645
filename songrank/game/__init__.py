"""The game blueprint."""

from flask import Blueprint

bp = Blueprint("game", __name__, url_prefix="/api/games")

from . import routes  # noqa: E402

__all__ = ["routes"]
