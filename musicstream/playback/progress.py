"""
Progress reporter.

Polls the media element while playing and pushes progress ticks to the UI.
"""

import asyncio
import logging
from typing import Optional

from musicstream.ui import ProgressTick, UIRenderer

from .transport import TransportController, TransportState

logger = logging.getLogger(__name__)

# Progress update interval (seconds)
PROGRESS_INTERVAL_SECONDS = 1.0


class ProgressReporter:
    """
    Periodic progress updates.

    Read-only: never touches the queue or the transport state.
    """

    def __init__(
        self,
        transport: TransportController,
        renderer: UIRenderer,
        interval: float = PROGRESS_INTERVAL_SECONDS,
    ):
        self._transport = transport
        self._renderer = renderer
        self._interval = interval

        self._is_running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the progress loop."""
        if self._is_running:
            return

        self._is_running = True
        self._task = asyncio.create_task(self._progress_loop())
        logger.info("ProgressReporter started")

    async def stop(self) -> None:
        """Stop the progress loop."""
        self._is_running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("ProgressReporter stopped")

    async def report_now(self) -> Optional[ProgressTick]:
        """Push a tick for the loaded track immediately."""
        if self._transport.current_track is None:
            return None

        media = self._transport.media
        position = await media.get_current_time()
        duration = await media.get_duration()
        if duration <= 0:
            duration = self._transport.current_track.duration

        tick = ProgressTick(position=position, duration=duration)
        self._renderer.render_progress(tick)
        return tick

    async def _progress_loop(self) -> None:
        """Periodic progress loop."""
        while self._is_running:
            try:
                await asyncio.sleep(self._interval)

                if self._transport.state == TransportState.PLAYING:
                    await self.report_now()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Progress update error: {e}", exc_info=True)
