"""The music catalog capability and the factory that selects a provider."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flask import current_app

from songrank.errors import InternalError

if TYPE_CHECKING:
    from .models import Track


class MusicProviderError(InternalError):
    """Raised when the music catalog cannot be reached or answers with an error."""

    def __init__(self, message="The music catalog request failed.", original=None):
        """Initialize the error."""
        super().__init__(message, original)


class MusicProvider:
    """Interface of an external music catalog."""

    name = "base"

    def search_tracks(
        self, query: str, allow_explicit: bool = True, limit: int = 10
    ) -> list[Track]:
        """Search the catalog for tracks matching a free text query."""
        raise NotImplementedError


def get_music_provider() -> MusicProvider:
    """Build the provider configured for the current app."""
    from .deezer import DeezerMusicProvider

    provider_name = current_app.config.get("MUSIC_PROVIDER", "deezer").lower()
    if provider_name == "deezer":
        return DeezerMusicProvider(
            base_url=current_app.config["MUSIC_PROVIDER_BASE_URL"],
            timeout=current_app.config["MUSIC_PROVIDER_TIMEOUT"],
        )
    current_app.logger.error(f"Unsupported music provider configured: {provider_name}")
    raise InternalError(f"Unsupported music provider: {provider_name}")
