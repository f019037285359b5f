"""Tests for the library service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from musicstream.api import APIError, AuthManager
from musicstream.library import LibraryService
from musicstream.playback.persistence import KEY_USER
from musicstream.storage import MemoryStore
from musicstream.ui import NotificationLevel


@pytest.fixture
def client() -> MagicMock:
    mock_client = MagicMock()
    mock_client.fetch_tracks = AsyncMock(return_value=[])
    mock_client.is_song_favorited = AsyncMock(return_value=False)
    mock_client.add_favorite = AsyncMock()
    mock_client.remove_favorite = AsyncMock()
    mock_client.add_play_history = AsyncMock()
    return mock_client


@pytest.fixture
def logged_in_auth(client) -> AuthManager:
    return AuthManager(client, MemoryStore({KEY_USER: {"id": 77, "username": "alice"}}))


@pytest.fixture
def library(client, logged_in_auth, notifier) -> LibraryService:
    return LibraryService(client, logged_in_auth, notifier)


class TestSearch:
    """Tests for search."""

    async def test_empty_search_makes_no_request(self, library, client) -> None:
        assert await library.search("   ") == []
        client.fetch_tracks.assert_not_awaited()

    async def test_search_passes_filters(self, library, client, make_track) -> None:
        client.fetch_tracks.return_value = [make_track("1")]

        results = await library.search(" blue ", genre="Jazz")

        assert [t.track_id for t in results] == ["1"]
        client.fetch_tracks.assert_awaited_once_with(
            search_term="blue", genre="Jazz", artist=None
        )


class TestFavorites:
    """Tests for toggle_favorite."""

    async def test_add_favorite(self, library, client, notifier, make_track) -> None:
        assert await library.toggle_favorite(make_track("5")) is True
        client.add_favorite.assert_awaited_once_with(77, "5")
        assert notifier.levels_for("Added to favorites") == [NotificationLevel.SUCCESS]

    async def test_remove_favorite(self, library, client, notifier, make_track) -> None:
        client.is_song_favorited.return_value = True

        assert await library.toggle_favorite(make_track("5")) is False

        client.remove_favorite.assert_awaited_once_with(77, "5")
        assert "Removed from favorites" in notifier.texts

    async def test_requires_login(self, client, notifier, make_track) -> None:
        library = LibraryService(client, AuthManager(client, MemoryStore()), notifier)

        assert await library.toggle_favorite(make_track("5")) is None

        client.is_song_favorited.assert_not_awaited()
        assert notifier.messages == [("Please login to add favorites", NotificationLevel.WARNING)]

    async def test_api_error(self, library, client, notifier, make_track) -> None:
        client.add_favorite.side_effect = APIError("boom", 500)

        assert await library.toggle_favorite(make_track("5")) is None
        assert notifier.levels_for("Could not update favorites") == [NotificationLevel.ERROR]


class TestPlayHistory:
    """Tests for record_play."""

    async def test_record_play(self, library, client, make_track) -> None:
        await library.record_play(make_track("9"))

        user_id, song_id, played_at = client.add_play_history.await_args.args
        assert (user_id, song_id) == (77, "9")
        assert played_at.endswith("+00:00")

    async def test_record_play_logged_out(self, client, make_track) -> None:
        library = LibraryService(client, AuthManager(client, MemoryStore()))
        await library.record_play(make_track("9"))
        client.add_play_history.assert_not_awaited()

    async def test_record_play_error_is_logged(self, library, client, make_track) -> None:
        client.add_play_history.side_effect = APIError("down")
        await library.record_play(make_track("9"))
