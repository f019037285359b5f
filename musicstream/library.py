"""
Library service.

Search, favorites and play history on top of the REST client.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from musicstream.api import APIError, AuthenticationError, AuthManager, RestClient
from musicstream.playback.track import Track
from musicstream.ui import LoggingNotificationSink, NotificationLevel, NotificationSink

logger = logging.getLogger(__name__)


class LibraryService:
    """User-facing library operations."""

    def __init__(
        self,
        client: RestClient,
        auth: AuthManager,
        notifier: Optional[NotificationSink] = None,
    ):
        self.client = client
        self.auth = auth
        self.notifier = notifier or LoggingNotificationSink()

    async def search(
        self,
        search_term: str = "",
        genre: str = "",
        artist: str = "",
    ) -> list[Track]:
        """
        Search songs.

        With no filter set, returns an empty list without a request.
        """
        search_term = search_term.strip()
        if not (search_term or genre or artist):
            return []

        logger.debug(f"Searching: term={search_term!r} genre={genre!r} artist={artist!r}")
        return await self.client.fetch_tracks(
            search_term=search_term or None,
            genre=genre or None,
            artist=artist or None,
        )

    async def toggle_favorite(self, track: Track) -> Optional[bool]:
        """
        Add or remove a track from the user's favorites.

        Returns:
            New favorite state, or None if nothing changed
        """
        try:
            self.auth.require_auth("add favorites")
        except AuthenticationError as e:
            self.notifier.notify(str(e), NotificationLevel.WARNING)
            return None

        user_id = self.auth.user_id
        try:
            if await self.client.is_song_favorited(user_id, track.track_id):
                await self.client.remove_favorite(user_id, track.track_id)
                self.notifier.notify("Removed from favorites", NotificationLevel.INFO)
                return False

            await self.client.add_favorite(user_id, track.track_id)
            self.notifier.notify("Added to favorites", NotificationLevel.SUCCESS)
            return True

        except APIError as e:
            logger.error(f"Favorite update failed for {track.track_id}: {e}")
            self.notifier.notify("Could not update favorites", NotificationLevel.ERROR)
            return None

    async def record_play(self, track: Track) -> None:
        """Post a play history entry for the logged-in user."""
        if not self.auth.is_authenticated:
            return

        played_at = datetime.now(timezone.utc).isoformat()
        try:
            await self.client.add_play_history(self.auth.user_id, track.track_id, played_at)
            logger.debug(f"Play history recorded for {track.track_id}")
        except APIError as e:
            logger.error(f"Error adding to play history: {e}")
