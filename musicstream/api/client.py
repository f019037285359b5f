"""
MusicStream REST client.

Thin aiohttp wrapper over the backend's song, library, playlist, favorites,
history, lyrics and user endpoints.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from musicstream.playback.track import Track, TrackValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:9188/api"
DEFAULT_TIMEOUT_SECONDS = 10.0

# Endpoints
AUTH_LOGIN = "/auth/login"
AUTH_REGISTER = "/auth/register"
SONGS = "/songs"
ARTISTS = "/artists"
ALBUMS = "/albums"
GENRES = "/genres"
PLAYLISTS = "/playlists"
PLAYLIST_SONGS = "/playlist-songs"
USER_FAVORITES = "/user-favorites"
PLAY_HISTORY = "/play-history"
LYRICS = "/lyrics"
SYNCED_LYRICS = "/synced-lyrics"
USERS = "/users"


class APIError(Exception):
    """Backend API error."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class RestClient:
    """REST client for the MusicStream backend."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize API client.

        Args:
            base_url: Backend base URL including the /api prefix
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "RestClient":
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def open(self) -> None:
        """Create the shared HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers={"Content-Type": "application/json"})

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Core request
    # =========================================================================

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Any] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Make an API request.

        Args:
            endpoint: Path relative to the base URL
            method: HTTP method
            body: JSON-serializable request body
            params: Query string parameters

        Returns:
            Parsed JSON for JSON responses, text otherwise

        Raises:
            APIError: On non-2xx status or transport failure
        """
        url = f"{self.base_url}{endpoint}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        session = self._session
        close_session = False
        if session is None:
            session = aiohttp.ClientSession(headers={"Content-Type": "application/json"})
            close_session = True

        try:
            async with session.request(
                method, url, json=body, params=params, timeout=timeout
            ) as resp:
                content_type = resp.headers.get("Content-Type", "")
                if "application/json" in content_type:
                    data = await resp.json()
                else:
                    data = await resp.text()

                if not 200 <= resp.status < 300:
                    message = None
                    if isinstance(data, dict):
                        message = data.get("message")
                    raise APIError(message or f"HTTP error! status: {resp.status}", resp.status)

                return data

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"API request failed for {endpoint}: {e}")
            raise APIError(f"Request failed: {e}") from e
        finally:
            if close_session:
                await session.close()

    async def _get_list(self, endpoint: str, params: Optional[dict[str, str]] = None) -> list:
        data = await self.request(endpoint, params=params)
        if not isinstance(data, list):
            raise APIError(f"Expected a list from {endpoint}")
        return data

    # =========================================================================
    # Songs
    # =========================================================================

    async def get_songs(
        self,
        search_term: Optional[str] = None,
        genre: Optional[str] = None,
        artist: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Get songs, optionally filtered."""
        params = {}
        if search_term:
            params["searchTerm"] = search_term
        if genre:
            params["genre"] = genre
        if artist:
            params["artist"] = artist
        return await self._get_list(SONGS, params=params or None)

    async def get_song(self, song_id: Any) -> dict[str, Any]:
        return await self.request(f"{SONGS}/{song_id}")

    async def create_song(self, data: dict[str, Any]) -> Any:
        return await self.request(SONGS, "POST", data)

    async def update_song(self, song_id: Any, data: dict[str, Any]) -> Any:
        return await self.request(f"{SONGS}/{song_id}", "PUT", data)

    async def delete_song(self, song_id: Any) -> Any:
        return await self.request(f"{SONGS}/{song_id}", "DELETE")

    async def fetch_tracks(
        self,
        search_term: Optional[str] = None,
        genre: Optional[str] = None,
        artist: Optional[str] = None,
    ) -> list[Track]:
        """
        Get songs as validated tracks.

        Payloads that fail validation are skipped.
        """
        tracks = []
        for payload in await self.get_songs(search_term, genre, artist):
            try:
                tracks.append(Track.from_api(payload))
            except TrackValidationError as e:
                logger.warning(f"Skipping invalid song payload: {e}")
        return tracks

    async def fetch_track(self, song_id: Any) -> Track:
        """Get one song as a validated track."""
        payload = await self.get_song(song_id)
        try:
            return Track.from_api(payload)
        except TrackValidationError as e:
            raise APIError(f"Invalid song payload for {song_id}: {e}") from e

    # =========================================================================
    # Artists, albums, genres
    # =========================================================================

    async def get_artists(self) -> list:
        return await self._get_list(ARTISTS)

    async def get_artist(self, artist_id: Any) -> Any:
        return await self.request(f"{ARTISTS}/{artist_id}")

    async def get_albums(self) -> list:
        return await self._get_list(ALBUMS)

    async def get_album(self, album_id: Any) -> Any:
        return await self.request(f"{ALBUMS}/{album_id}")

    async def get_genres(self) -> list:
        return await self._get_list(GENRES)

    async def get_genre(self, genre_id: Any) -> Any:
        return await self.request(f"{GENRES}/{genre_id}")

    # =========================================================================
    # Playlists
    # =========================================================================

    async def get_playlists(self) -> list:
        return await self._get_list(PLAYLISTS)

    async def get_playlist(self, playlist_id: Any) -> Any:
        return await self.request(f"{PLAYLISTS}/{playlist_id}")

    async def create_playlist(self, data: dict[str, Any]) -> Any:
        return await self.request(PLAYLISTS, "POST", data)

    async def update_playlist(self, playlist_id: Any, data: dict[str, Any]) -> Any:
        return await self.request(f"{PLAYLISTS}/{playlist_id}", "PUT", data)

    async def delete_playlist(self, playlist_id: Any) -> Any:
        return await self.request(f"{PLAYLISTS}/{playlist_id}", "DELETE")

    async def get_songs_by_playlist(self, playlist_id: Any) -> list:
        return await self._get_list(f"{PLAYLIST_SONGS}/playlist/{playlist_id}")

    async def get_playlists_by_song(self, song_id: Any) -> list:
        return await self._get_list(f"{PLAYLIST_SONGS}/song/{song_id}")

    async def add_song_to_playlist(self, playlist_id: Any, song_id: Any) -> Any:
        body = {"playlist": {"playlistID": playlist_id}, "song": {"songID": song_id}}
        return await self.request(PLAYLIST_SONGS, "POST", body)

    async def remove_song_from_playlist(self, playlist_id: Any, song_id: Any) -> Any:
        return await self.request(
            f"{PLAYLIST_SONGS}/playlist/{playlist_id}/song/{song_id}", "DELETE"
        )

    async def get_playlist_song_count(self, playlist_id: Any) -> int:
        """Number of songs in a playlist (0 on error)."""
        try:
            return len(await self.get_songs_by_playlist(playlist_id))
        except APIError as e:
            logger.error(f"Error getting playlist song count: {e}")
            return 0

    # =========================================================================
    # Favorites
    # =========================================================================

    async def get_favorites_by_user(self, user_id: Any) -> list:
        return await self._get_list(f"{USER_FAVORITES}/user/{user_id}")

    async def get_users_by_song(self, song_id: Any) -> list:
        return await self._get_list(f"{USER_FAVORITES}/song/{song_id}")

    async def add_favorite(self, user_id: Any, song_id: Any) -> Any:
        body = {"user": {"id": user_id}, "song": {"songID": song_id}}
        return await self.request(USER_FAVORITES, "POST", body)

    async def remove_favorite(self, user_id: Any, song_id: Any) -> Any:
        return await self.request(f"{USER_FAVORITES}/user/{user_id}/song/{song_id}", "DELETE")

    async def is_song_favorited(self, user_id: Any, song_id: Any) -> bool:
        """Whether a song is in the user's favorites (False on error)."""
        try:
            favorites = await self.get_favorites_by_user(user_id)
        except APIError as e:
            logger.error(f"Error checking if song is favorited: {e}")
            return False

        for favorite in favorites:
            song = favorite.get("song") if isinstance(favorite, dict) else None
            if isinstance(song, dict) and str(song.get("songID")) == str(song_id):
                return True
        return False

    # =========================================================================
    # Play history
    # =========================================================================

    async def get_play_history(self) -> list:
        return await self._get_list(PLAY_HISTORY)

    async def add_play_history(self, user_id: Any, song_id: Any, played_at: str) -> Any:
        body = {"user": {"id": user_id}, "song": {"songID": song_id}, "playedAt": played_at}
        return await self.request(PLAY_HISTORY, "POST", body)

    async def delete_play_history(self, history_id: Any) -> Any:
        return await self.request(f"{PLAY_HISTORY}/{history_id}", "DELETE")

    # =========================================================================
    # Lyrics
    # =========================================================================

    async def get_lyrics_by_song(self, song_id: Any) -> Any:
        return await self.request(f"{LYRICS}/song/{song_id}")

    async def get_synced_lyrics_by_song(self, song_id: Any) -> Any:
        return await self.request(f"{SYNCED_LYRICS}/song/{song_id}")

    # =========================================================================
    # Users
    # =========================================================================

    async def get_users(self) -> list:
        return await self._get_list(USERS)

    async def get_user(self, user_id: Any) -> Any:
        return await self.request(f"{USERS}/{user_id}")
