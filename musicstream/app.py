"""
MusicStream Application.

Wires together the player components and manages their lifecycle.
"""

import asyncio
import logging
import signal
from typing import Awaitable, Callable, Optional

from musicstream.api import AuthManager, RestClient
from musicstream.config import Config
from musicstream.library import LibraryService
from musicstream.media import HeadlessMediaElement, MediaElement
from musicstream.playback import (
    Command,
    PlaybackQueue,
    PlayerCommandHandler,
    PlayerStateStore,
    ProgressReporter,
    Track,
    TransportController,
)
from musicstream.storage import JsonFileStore, PersistenceStore
from musicstream.ui import LoggingNotificationSink, NotificationSink, NullRenderer, UIRenderer

logger = logging.getLogger(__name__)


class MusicStream:
    """
    Main MusicStream application context.

    Owns every component; nothing is shared through module globals:
    - Storage (PersistenceStore, PlayerStateStore)
    - Backend (RestClient, AuthManager, LibraryService)
    - Playback (PlaybackQueue, MediaElement, TransportController)
    - Command loop and progress updates

    Usage:
        config = load_config(...)
        app = MusicStream(config)
        await app.run()
    """

    def __init__(
        self,
        config: Config,
        store: Optional[PersistenceStore] = None,
        media: Optional[MediaElement] = None,
        renderer: Optional[UIRenderer] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        """
        Initialize MusicStream.

        Args:
            config: Validated configuration
            store: Key/value store (defaults to the JSON file from config)
            media: Media element (defaults to the headless element)
            renderer: UI renderer
            notifier: Notification sink
        """
        self._config = config
        self._is_running = False
        self._shutdown_event = asyncio.Event()
        self._background: set[asyncio.Task] = set()

        self.renderer = renderer or NullRenderer()
        self.notifier = notifier or LoggingNotificationSink()

        # Storage
        self.store = store or JsonFileStore(config.storage.resolved_path)
        self.state_store = PlayerStateStore(
            self.store, default_volume=config.player.default_volume
        )

        # Backend
        self.client = RestClient(config.api.base_url, timeout=config.api.timeout)
        self.auth = AuthManager(self.client, self.store)
        self.library = LibraryService(self.client, self.auth, self.notifier)

        # Playback
        self.queue = PlaybackQueue()
        self.media = media or HeadlessMediaElement()
        self.transport = TransportController(
            queue=self.queue,
            media=self.media,
            state_store=self.state_store,
            renderer=self.renderer,
            notifier=self.notifier,
            restart_threshold=config.player.restart_threshold,
            seek_step=config.player.seek_step,
            volume_step=config.player.volume_step,
            default_volume=config.player.default_volume,
        )
        self.transport.set_track_started_callback(self._on_track_started)

        self.commands = PlayerCommandHandler(self.transport)
        self.progress = ProgressReporter(
            self.transport, self.renderer, interval=config.player.progress_interval
        )

    async def start(self) -> None:
        """
        Start MusicStream.

        Startup order:
        1. HTTP session
        2. Restore persisted player state
        3. Command loop
        4. Progress updates
        """
        if self._is_running:
            return

        logger.info("Starting MusicStream...")

        await self.client.open()
        await self.transport.restore()
        await self.commands.start()
        await self.progress.start()

        self._is_running = True
        logger.info(f"MusicStream ready (backend {self._config.api.base_url})")

    async def stop(self) -> None:
        """
        Stop MusicStream.

        Shutdown order (reverse of startup).
        """
        if not self._is_running:
            return

        logger.info("Stopping MusicStream...")
        self._is_running = False

        try:
            await self.progress.stop()
        except Exception as e:
            logger.warning(f"Error stopping progress reporter: {e}")

        try:
            await self.commands.stop()
        except Exception as e:
            logger.warning(f"Error stopping command handler: {e}")

        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

        try:
            await self.media.close()
        except Exception as e:
            logger.warning(f"Error closing media element: {e}")

        try:
            await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing API client: {e}")

        logger.info("MusicStream stopped")

    async def run(self, session: Optional[Callable[[], Awaitable[None]]] = None) -> None:
        """
        Run MusicStream until interrupted.

        Sets up signal handlers for graceful shutdown on SIGINT/SIGTERM.

        Args:
            session: Optional coroutine function run once started; shutdown is
                requested when it returns. Its exception, if any, is re-raised
                after shutdown.
        """
        loop = asyncio.get_running_loop()
        self._shutdown_event.clear()

        def handle_signal() -> None:
            logger.info("Shutdown signal received")
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        session_task: Optional[asyncio.Task] = None
        try:
            await self.start()
            if session is not None:
                session_task = asyncio.create_task(session())
                session_task.add_done_callback(lambda _: self.request_shutdown())
            await self._shutdown_event.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            if session_task is not None and not session_task.done():
                session_task.cancel()
                await asyncio.gather(session_task, return_exceptions=True)
            await self.stop()

        if session_task is not None and not session_task.cancelled():
            session_task.result()

    def request_shutdown(self) -> None:
        """Ask run() to stop the application."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        """Check if the application is running."""
        return self._is_running

    # =========================================================================
    # High-level actions
    # =========================================================================

    async def play_song(self, song_id: str) -> bool:
        """Fetch a song from the backend and play it."""
        track = await self.client.fetch_track(song_id)
        return await self.commands.execute(Command.PLAY, track)

    async def queue_song(self, song_id: str) -> bool:
        """Fetch a song from the backend and add it to the queue."""
        track = await self.client.fetch_track(song_id)
        return await self.commands.execute(Command.ADD_TO_QUEUE, track)

    async def toggle_current_favorite(self) -> Optional[bool]:
        track = self.transport.current_track
        if track is None:
            self.notifier.notify("No song selected")
            return None
        return await self.library.toggle_favorite(track)

    async def logout(self) -> None:
        """Log out, stopping playback and dropping the session queue."""
        await self.commands.execute(Command.STOP)
        await self.commands.execute(Command.CLEAR_QUEUE)
        self.auth.logout()
        self.notifier.notify("Logged out successfully")

    async def _on_track_started(self, track: Track) -> None:
        """Record play history without holding up the command loop."""
        task = asyncio.create_task(self.library.record_play(track))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
