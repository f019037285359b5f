"""
MusicStream CLI entry point.

Provides command-line interface for the player.
"""

import argparse
import asyncio
import getpass
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from musicstream import __version__
from musicstream.api import APIError, AuthenticationError, RestClient
from musicstream.app import MusicStream
from musicstream.config import Config, ConfigError, load_config
from musicstream.console import ConsoleSession
from musicstream.playback import PlayerStateStore
from musicstream.storage import JsonFileStore
from musicstream.ui import ConsoleRenderer, format_duration

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_AUTH_ERROR = 2
EXIT_API_ERROR = 3

PASSWORD_ENV = "MUSICSTREAM_PASSWORD"


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="musicstream",
        description="Headless MusicStream player",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  musicstream play
  musicstream play --user alice
  musicstream search "blue in green" --json
  musicstream --api-url http://music.local:9188/api queue

Environment Variables:
  MUSICSTREAM_API_URL, MUSICSTREAM_API_TIMEOUT, MUSICSTREAM_STORAGE_PATH
  MUSICSTREAM_VOLUME, MUSICSTREAM_LOG_LEVEL, MUSICSTREAM_PASSWORD
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )
    parser.add_argument(
        "--api-url",
        metavar="URL",
        help="Backend API base URL (default: http://localhost:9188/api)",
    )
    parser.add_argument(
        "--storage",
        metavar="PATH",
        help="Player state file (default: ~/.musicstream/state.json)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    play = subparsers.add_parser("play", help="Start an interactive player session")
    play.add_argument(
        "--user",
        metavar="NAME",
        help="Log in before the session starts (password from MUSICSTREAM_PASSWORD or a prompt)",
    )

    search = subparsers.add_parser("search", help="Search songs and exit")
    search.add_argument("term", nargs="?", default="", help="Search term")
    search.add_argument("--genre", default="", help="Filter by genre")
    search.add_argument("--artist", default="", help="Filter by artist")
    search.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON",
    )

    subparsers.add_parser("queue", help="Print the saved queue and exit")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    mappings = {
        "api_url": ("api", "base_url"),
        "storage": ("storage", "path"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        _set_nested(result, path, value)

    return result


def log_config(config: Config) -> None:
    """Log configuration summary."""
    logger.info(f"Backend: {config.api.base_url}")
    logger.info(f"State file: {config.storage.resolved_path}")
    logger.info(f"Default volume: {config.player.default_volume}")


async def login_or_fail(app: MusicStream, user: str, password: str) -> None:
    """Log in at session start; a rejected login ends the session."""
    if not await app.auth.login(user, password):
        raise AuthenticationError(f"Login rejected for {user}")
    print(f"Logged in as {user}")


async def run_interactive(
    config: Config, user: Optional[str] = None, password: Optional[str] = None
) -> None:
    """Run an interactive session until quit, EOF or a shutdown signal."""
    console = ConsoleRenderer()
    app = MusicStream(config, renderer=console, notifier=console)

    async def session() -> None:
        if user is not None:
            await login_or_fail(app, user, password or "")
        await ConsoleSession(app).run()

    await app.run(session)


async def run_search(config: Config, term: str, genre: str, artist: str, json_output: bool) -> int:
    """
    Search songs and print them.

    Returns:
        Exit code
    """
    if not (term.strip() or genre or artist):
        print("Nothing to search for: give a term, --genre or --artist")
        return EXIT_SUCCESS

    async with RestClient(config.api.base_url, timeout=config.api.timeout) as client:
        tracks = await client.fetch_tracks(
            search_term=term.strip() or None,
            genre=genre or None,
            artist=artist or None,
        )

    if json_output:
        output = {"songs": [t.to_dict() for t in tracks], "count": len(tracks)}
        print(json.dumps(output, indent=2))
        return EXIT_SUCCESS

    if not tracks:
        print("No results found")
        return EXIT_SUCCESS

    print(f"Found {len(tracks)} song(s):\n")
    for t in tracks:
        print(f"  {t.track_id:>6}  {t} [{format_duration(t.duration)}]")
    return EXIT_SUCCESS


def run_queue(config: Config) -> int:
    """Print the saved queue."""
    state = PlayerStateStore(
        JsonFileStore(config.storage.resolved_path),
        default_volume=config.player.default_volume,
    ).load()

    flags = (
        f"shuffle={'on' if state.shuffled else 'off'} "
        f"repeat={state.repeat_mode.value} volume={state.volume * 100:.0f}%"
    )
    if not state.tracks:
        print(f"Queue is empty ({flags})")
        return EXIT_SUCCESS

    print(f"Queue ({len(state.tracks)} tracks, {flags}):")
    for i, track in enumerate(state.tracks):
        marker = ">" if track.track_id == state.current_id else " "
        print(f" {marker} {i:>3}. {track} [{format_duration(track.duration)}]")
    return EXIT_SUCCESS


def read_password() -> str:
    """Password from MUSICSTREAM_PASSWORD, else prompted for."""
    return os.environ.get(PASSWORD_ENV) or getpass.getpass("Password: ")


def run_command(args: argparse.Namespace) -> int:
    """
    Run the selected subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    setup_logging("warning" if args.command != "play" else "info")

    try:
        config = load_config(args.config, args_to_dict(args))
        if args.log_level or args.command == "play":
            setup_logging(config.logging.level)
        log_config(config)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        if args.command == "search":
            return asyncio.run(
                run_search(config, args.term, args.genre, args.artist, args.json_output)
            )
        if args.command == "queue":
            return run_queue(config)

        logger.info(f"MusicStream v{__version__}")
        user = getattr(args, "user", None)
        password = read_password() if user else None
        asyncio.run(run_interactive(config, user, password))
        return EXIT_SUCCESS

    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        return EXIT_AUTH_ERROR

    except APIError as e:
        logger.error(f"API error: {e}")
        return EXIT_API_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=auth error, 3=API error
    """
    args = parse_args(argv)
    if args.command is None:
        args.command = "play"
    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
