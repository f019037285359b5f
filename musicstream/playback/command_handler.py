"""
Player command handler.

Serializes user intents and media element signals through one asyncio queue
so the transport sees them strictly in arrival order.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .transport import TransportController

logger = logging.getLogger(__name__)


class Command(Enum):
    """Commands accepted by the player."""

    # User intents
    PLAY = "play"
    PLAY_INDEX = "play_index"
    TOGGLE_PLAY_PAUSE = "toggle_play_pause"
    NEXT = "next"
    PREVIOUS = "previous"
    STOP = "stop"
    SEEK = "seek"
    SEEK_PERCENT = "seek_percent"
    SEEK_FORWARD = "seek_forward"
    SEEK_BACKWARD = "seek_backward"
    SET_VOLUME = "set_volume"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    TOGGLE_MUTE = "toggle_mute"
    ADD_TO_QUEUE = "add_to_queue"
    REMOVE_FROM_QUEUE = "remove_from_queue"
    CLEAR_QUEUE = "clear_queue"
    SET_SHUFFLE = "set_shuffle"
    TOGGLE_SHUFFLE = "toggle_shuffle"
    SET_REPEAT = "set_repeat"
    TOGGLE_REPEAT = "toggle_repeat"

    # Media element signals
    MEDIA_LOADED_METADATA = "media_loaded_metadata"
    MEDIA_TIME_UPDATE = "media_time_update"
    MEDIA_ENDED = "media_ended"
    MEDIA_ERROR = "media_error"


# Keyboard shortcuts
KEY_BINDINGS: dict[str, Command] = {
    "space": Command.TOGGLE_PLAY_PAUSE,
    "ctrl+left": Command.PREVIOUS,
    "ctrl+right": Command.NEXT,
    "ctrl+up": Command.VOLUME_UP,
    "ctrl+down": Command.VOLUME_DOWN,
    "ctrl+m": Command.TOGGLE_MUTE,
}


@dataclass
class PendingCommand:
    """A queued command and the future its caller may await."""

    command: Command
    args: tuple = ()
    future: Optional[asyncio.Future] = field(default=None, repr=False)


class PlayerCommandHandler:
    """
    Single-worker command loop in front of the transport.

    Media element callbacks are registered on start() and enqueue signal
    commands instead of calling the transport directly.
    """

    def __init__(self, transport: "TransportController"):
        """
        Initialize command handler.

        Args:
            transport: TransportController executing the commands
        """
        self.transport = transport
        self._queue: asyncio.Queue[PendingCommand] = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None
        self._is_running = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Attach media callbacks and start the worker."""
        if self._is_running:
            return

        media = self.transport.media
        media.on_loaded_metadata(self._on_loaded_metadata)
        media.on_time_update(self._on_time_update)
        media.on_ended(self._on_ended)
        media.on_error(self._on_error)

        self._is_running = True
        self._worker_task = asyncio.create_task(self._worker_loop())
        logger.info("Command handler started")

    async def stop(self) -> None:
        """Stop the worker; queued commands are dropped."""
        self._is_running = False

        if self._worker_task:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None

        # Fail anything still waiting
        while not self._queue.empty():
            pending = self._queue.get_nowait()
            self._queue.task_done()
            if pending.future and not pending.future.done():
                pending.future.cancel()

        logger.info("Command handler stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, command: Command, *args: Any) -> asyncio.Future:
        """
        Enqueue a command.

        Returns:
            Future resolved with the transport's return value
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(PendingCommand(command, args, future))
        logger.debug(f"Command queued: {command.value}")
        return future

    async def execute(self, command: Command, *args: Any) -> Any:
        """Enqueue a command and wait for its result."""
        return await self.submit(command, *args)

    def handle_key(self, key: str) -> Optional[asyncio.Future]:
        """Submit the command bound to a keyboard shortcut, if any."""
        command = KEY_BINDINGS.get(key.lower())
        if command is None:
            logger.debug(f"Unbound key: {key}")
            return None
        return self.submit(command)

    async def join(self) -> None:
        """Wait until every queued command has been processed."""
        await self._queue.join()

    # =========================================================================
    # Media element adapters
    # =========================================================================

    def _enqueue_signal(self, command: Command, *args: Any) -> None:
        # Stamped with the load the signal belongs to
        args = (*args, self.transport.load_seq)
        self._queue.put_nowait(PendingCommand(command, args))

    def _on_loaded_metadata(self, duration: float) -> None:
        self._enqueue_signal(Command.MEDIA_LOADED_METADATA, duration)

    def _on_time_update(self, current_time: float) -> None:
        self._enqueue_signal(Command.MEDIA_TIME_UPDATE, current_time)

    def _on_ended(self) -> None:
        self._enqueue_signal(Command.MEDIA_ENDED)

    def _on_error(self, message: str) -> None:
        self._enqueue_signal(Command.MEDIA_ERROR, message)

    # =========================================================================
    # Worker
    # =========================================================================

    async def _worker_loop(self) -> None:
        """Process commands one at a time."""
        while self._is_running:
            try:
                pending = await self._queue.get()
            except asyncio.CancelledError:
                break

            try:
                await self._process(pending)
            finally:
                self._queue.task_done()

    async def _process(self, pending: PendingCommand) -> None:
        future = pending.future
        if future is not None and future.cancelled():
            return

        try:
            result = await self.handle_command(pending.command, *pending.args)
        except asyncio.CancelledError:
            if future is not None and not future.done():
                future.cancel()
            raise
        except Exception as e:
            logger.error(f"Error handling command {pending.command.value}: {e}", exc_info=True)
            if future is not None and not future.done():
                future.set_exception(e)
            return

        if future is not None and not future.done():
            future.set_result(result)

    async def handle_command(self, command: Command, *args: Any) -> Any:
        """Dispatch one command to the transport."""
        t = self.transport

        if command == Command.PLAY:
            return await t.play(*args)
        elif command == Command.PLAY_INDEX:
            return await t.play_index(*args)
        elif command == Command.TOGGLE_PLAY_PAUSE:
            return await t.toggle_play_pause()
        elif command == Command.NEXT:
            return await t.next()
        elif command == Command.PREVIOUS:
            return await t.previous()
        elif command == Command.STOP:
            return await t.stop()
        elif command == Command.SEEK:
            return await t.seek(*args)
        elif command == Command.SEEK_PERCENT:
            return await t.seek_percent(*args)
        elif command == Command.SEEK_FORWARD:
            return await t.seek_relative(t.seek_step)
        elif command == Command.SEEK_BACKWARD:
            return await t.seek_relative(-t.seek_step)
        elif command == Command.SET_VOLUME:
            return await t.set_volume(*args)
        elif command == Command.VOLUME_UP:
            return await t.change_volume(t.volume_step)
        elif command == Command.VOLUME_DOWN:
            return await t.change_volume(-t.volume_step)
        elif command == Command.TOGGLE_MUTE:
            return await t.toggle_mute()
        elif command == Command.ADD_TO_QUEUE:
            return t.add_to_queue(*args)
        elif command == Command.REMOVE_FROM_QUEUE:
            return t.remove_from_queue(*args)
        elif command == Command.CLEAR_QUEUE:
            return t.clear_queue()
        elif command == Command.SET_SHUFFLE:
            return t.set_shuffle(*args)
        elif command == Command.TOGGLE_SHUFFLE:
            return t.toggle_shuffle()
        elif command == Command.SET_REPEAT:
            return t.set_repeat_mode(*args)
        elif command == Command.TOGGLE_REPEAT:
            return t.toggle_repeat()
        elif command == Command.MEDIA_LOADED_METADATA:
            return t.on_loaded_metadata(*args)
        elif command == Command.MEDIA_TIME_UPDATE:
            return t.on_time_update(*args)
        elif command == Command.MEDIA_ENDED:
            return await t.on_media_ended(*args)
        elif command == Command.MEDIA_ERROR:
            return await t.on_media_error(*args)
        else:
            logger.warning(f"Unhandled command: {command}")
            return None
