"""The scoring blueprint."""

from flask import Blueprint

bp = Blueprint("scoring", __name__, url_prefix="/api/games")

from . import routes  # noqa: E402

__all__ = ["routes"]
