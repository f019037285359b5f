"""
Interactive console session.

Reads one command per line and forwards it to the running application.
"""

import asyncio
import logging
import shlex
import sys
from typing import Callable, Optional, TextIO

from musicstream.api import APIError, AuthenticationError
from musicstream.app import MusicStream
from musicstream.playback import Command, TrackValidationError
from musicstream.ui import format_duration

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  play <song-id>       play a song (queued first if needed)
  add <song-id>        add a song to the queue
  jump <n>             jump to queue position n
  remove <n>           remove queue position n
  pause                toggle play/pause
  next | prev          skip forward / back
  stop                 stop and rewind
  seek <seconds>       seek within the current song
  fwd | back           seek 10s forward / back
  vol <0-100>          set volume
  mute                 toggle mute
  key <shortcut>       send a keyboard shortcut (space, ctrl+left, ctrl+right,
                       ctrl+up, ctrl+down, ctrl+m)
  shuffle | repeat     toggle shuffle / cycle repeat mode
  queue | status       show the queue / the player state
  clear                clear the queue
  search <term>        search songs
  fav                  toggle favorite for the current song
  login <user> <pass>  log in
  register <user> <email> <pass>
                       create an account
  logout               log out
  quit                 exit"""


class ConsoleSession:
    """Line-oriented command interpreter."""

    def __init__(self, app: MusicStream, output: Optional[TextIO] = None):
        self.app = app
        self.output = output or sys.stdout

    def _print(self, line: str) -> None:
        print(line, file=self.output, flush=True)

    async def run(self, readline: Optional[Callable[[], str]] = None) -> None:
        """Read lines until EOF or quit."""
        readline = readline or sys.stdin.readline
        loop = asyncio.get_running_loop()
        self._print("Type 'help' for commands.")

        while True:
            line = await loop.run_in_executor(None, readline)
            if not line:
                break
            if not await self.handle_line(line):
                break

    async def handle_line(self, line: str) -> bool:
        """
        Execute one command line.

        Returns:
            False when the session should end
        """
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self._print(f"Parse error: {e}")
            return True

        if not parts:
            return True

        name, args = parts[0].lower(), parts[1:]
        if name in ("quit", "exit"):
            return False

        try:
            await self._dispatch(name, args)
        except (APIError, AuthenticationError) as e:
            self._print(f"Error: {e}")
        except TrackValidationError as e:
            self._print(f"Bad song data from backend: {e}")
        except (ValueError, IndexError):
            self._print(f"Invalid arguments for '{name}'. Type 'help' for usage.")
        return True

    async def _dispatch(self, name: str, args: list[str]) -> None:
        app = self.app
        execute = app.commands.execute

        if name == "help":
            self._print(HELP_TEXT)
        elif name == "play":
            await app.play_song(args[0])
        elif name == "add":
            await app.queue_song(args[0])
        elif name == "jump":
            await execute(Command.PLAY_INDEX, int(args[0]))
        elif name == "remove":
            await execute(Command.REMOVE_FROM_QUEUE, int(args[0]))
        elif name == "pause":
            await execute(Command.TOGGLE_PLAY_PAUSE)
        elif name == "next":
            await execute(Command.NEXT)
        elif name == "prev":
            await execute(Command.PREVIOUS)
        elif name == "stop":
            await execute(Command.STOP)
        elif name == "seek":
            await execute(Command.SEEK, float(args[0]))
        elif name == "fwd":
            await execute(Command.SEEK_FORWARD)
        elif name == "back":
            await execute(Command.SEEK_BACKWARD)
        elif name == "vol":
            await execute(Command.SET_VOLUME, float(args[0]) / 100)
        elif name == "mute":
            await execute(Command.TOGGLE_MUTE)
        elif name == "key":
            future = app.commands.handle_key(args[0])
            if future is None:
                self._print(f"Unbound key: {args[0]}")
            else:
                await future
        elif name == "shuffle":
            await execute(Command.TOGGLE_SHUFFLE)
        elif name == "repeat":
            await execute(Command.TOGGLE_REPEAT)
        elif name == "clear":
            await execute(Command.CLEAR_QUEUE)
        elif name == "queue":
            app.renderer.render_queue(app.queue.snapshot())
        elif name == "status":
            await self._print_status()
        elif name == "search":
            await self._search(" ".join(args))
        elif name == "fav":
            await app.toggle_current_favorite()
        elif name == "login":
            if await app.auth.login(args[0], args[1]):
                self._print(f"Logged in as {args[0]}")
            else:
                self._print("Login failed")
        elif name == "register":
            if await app.auth.register(args[0], args[1], args[2]):
                self._print("Registration successful! Please login.")
            else:
                self._print("Registration failed")
        elif name == "logout":
            await app.logout()
        else:
            self._print(f"Unknown command: {name}. Type 'help' for commands.")

    async def _search(self, term: str) -> None:
        results = await self.app.library.search(term)
        if not results:
            self._print("No results found")
            return
        for track in results:
            self._print(f"  {track.track_id:>6}  {track} [{format_duration(track.duration)}]")

    async def _print_status(self) -> None:
        snapshot = await self.app.transport.get_state()
        track = str(snapshot.track) if snapshot.track else "nothing"
        self._print(f"State: {snapshot.state.value}  Track: {track}")
        self._print(
            f"Position: {format_duration(snapshot.position)} / "
            f"{format_duration(snapshot.duration)}  Volume: {snapshot.volume * 100:.0f}%"
        )
        queue = snapshot.queue
        self._print(
            f"Queue: {len(queue.tracks)} tracks  shuffle={'on' if queue.shuffled else 'off'}  "
            f"repeat={queue.repeat_mode.value}"
        )
