"""Tests for the interactive console."""

import io
from unittest.mock import AsyncMock

import pytest

from musicstream.api import APIError
from musicstream.app import MusicStream
from musicstream.config import Config
from musicstream.console import ConsoleSession
from musicstream.playback import RepeatMode, TrackValidationError, TransportState


@pytest.fixture
async def app(store, media, renderer, notifier):
    application = MusicStream(
        Config(), store=store, media=media, renderer=renderer, notifier=notifier
    )
    application.client.fetch_track = AsyncMock()
    application.client.fetch_tracks = AsyncMock(return_value=[])
    application.client.request = AsyncMock()
    await application.start()
    yield application
    await application.stop()


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(app, output) -> ConsoleSession:
    return ConsoleSession(app, output=output)


class TestConsoleCommands:
    """Tests for command lines."""

    async def test_quit(self, console) -> None:
        assert await console.handle_line("quit") is False
        assert await console.handle_line("exit") is False

    async def test_blank_line(self, console) -> None:
        assert await console.handle_line("   \n") is True

    async def test_help(self, console, output) -> None:
        await console.handle_line("help")
        assert "Commands:" in output.getvalue()

    async def test_unknown_command(self, console, output) -> None:
        await console.handle_line("dance")
        assert "Unknown command: dance" in output.getvalue()

    async def test_play_and_pause(self, console, app, make_track) -> None:
        app.client.fetch_track.return_value = make_track("9")

        await console.handle_line("play 9")
        assert app.transport.state == TransportState.PLAYING

        await console.handle_line("pause")
        assert app.transport.state == TransportState.PAUSED

    async def test_key_shortcut(self, console, app, make_track) -> None:
        app.client.fetch_track.return_value = make_track("9")
        await console.handle_line("play 9")

        await console.handle_line("key space")

        assert app.transport.state == TransportState.PAUSED

    async def test_unbound_key(self, console, output) -> None:
        await console.handle_line("key f12")
        assert "Unbound key: f12" in output.getvalue()

    async def test_bad_song_payload_is_reported(self, console, app, output) -> None:
        app.client.fetch_track.side_effect = TrackValidationError("Song payload has no songID")

        await console.handle_line("play 9")

        text = output.getvalue()
        assert "Bad song data from backend: Song payload has no songID" in text
        assert "Invalid arguments" not in text

    async def test_volume_is_percent(self, console, app) -> None:
        await console.handle_line("vol 30")
        assert app.transport.volume == pytest.approx(0.3)

    async def test_repeat_and_shuffle(self, console, app) -> None:
        await console.handle_line("repeat")
        await console.handle_line("shuffle")
        assert app.queue.repeat_mode == RepeatMode.ALL
        assert app.queue.shuffled is True

    async def test_invalid_arguments(self, console, output) -> None:
        await console.handle_line("seek later")
        await console.handle_line("jump")
        assert output.getvalue().count("Invalid arguments") == 2

    async def test_parse_error(self, console, output) -> None:
        await console.handle_line('add "unterminated')
        assert "Parse error" in output.getvalue()

    async def test_api_error_is_printed(self, console, app, output) -> None:
        app.client.fetch_track.side_effect = APIError("Song not found", 404)
        await console.handle_line("play 404")
        assert "Error: Song not found" in output.getvalue()

    async def test_search(self, console, app, output, make_track) -> None:
        app.client.fetch_tracks.return_value = [make_track("12", title="Found It")]

        await console.handle_line("search found it")

        app.client.fetch_tracks.assert_awaited_once_with(
            search_term="found it", genre=None, artist=None
        )
        assert "Test Artist - Found It [3:00]" in output.getvalue()

    async def test_search_no_results(self, console, output) -> None:
        await console.handle_line("search nothing")
        assert "No results found" in output.getvalue()

    async def test_status(self, console, app, output, make_track) -> None:
        app.client.fetch_track.return_value = make_track("9", title="Tune")
        await console.handle_line("play 9")

        await console.handle_line("status")

        text = output.getvalue()
        assert "State: playing  Track: Test Artist - Tune" in text
        assert "Volume: 50%" in text
        assert "Queue: 1 tracks" in text

    async def test_login(self, console, app, output) -> None:
        app.client.request.return_value = "Login successful!"
        await console.handle_line("login alice secret1")
        assert "Logged in as alice" in output.getvalue()
        assert app.auth.is_authenticated

    async def test_login_missing_fields(self, console, output) -> None:
        await console.handle_line("login alice")
        assert "Invalid arguments" in output.getvalue()

    async def test_register_invalid_email(self, console, output) -> None:
        await console.handle_line("register alice nope secret1")
        assert "Error: Please enter a valid email address" in output.getvalue()

    async def test_run_reads_until_eof(self, console, app) -> None:
        lines = iter(["repeat\n", "repeat\n", ""])

        await console.run(readline=lambda: next(lines))

        assert app.queue.repeat_mode == RepeatMode.ONE
