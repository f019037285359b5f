"""Shared test fixtures."""

import asyncio
import random
from typing import Callable, Optional

import pytest

from musicstream.media import MediaElement, MediaMetadata, MediaPlaybackError
from musicstream.playback.persistence import PlayerStateStore
from musicstream.playback.queue import PlaybackQueue
from musicstream.playback.track import AlbumRef, ArtistRef, Track
from musicstream.playback.transport import TransportController
from musicstream.storage import MemoryStore
from musicstream.ui import NotificationLevel, NotificationSink, ProgressTick, UIRenderer


def build_track(
    track_id: str,
    title: Optional[str] = None,
    duration: float = 180.0,
    audio_url: Optional[str] = "default",
) -> Track:
    return Track(
        track_id=track_id,
        title=title or f"Song {track_id}",
        artist=ArtistRef(artist_id="a1", name="Test Artist"),
        album=AlbumRef(album_id="al1", title="Test Album", cover_image="cover.jpg"),
        duration=duration,
        audio_url=f"http://media.test/{track_id}.mp3" if audio_url == "default" else audio_url,
    )


class FakeMediaElement(MediaElement):
    """
    Scriptable media element.

    play() can be made to block on an event or to fail, so tests can
    interleave loads and media completions deterministically.
    """

    def __init__(self) -> None:
        super().__init__(name="Fake")
        self.calls: list[tuple] = []
        self.source: Optional[str] = None
        self.position = 0.0
        self.duration = 0.0
        self.volume = 1.0
        self.paused = True
        self.play_gates: dict[str, asyncio.Event] = {}
        self.play_failures: set[str] = set()

    async def load(self, url: str, metadata: Optional[MediaMetadata] = None) -> None:
        self.calls.append(("load", url))
        self.source = url
        self.position = 0.0
        self.duration = metadata.duration if metadata else 0.0
        self.paused = True

    async def play(self) -> None:
        source = self.source
        self.calls.append(("play", source))
        gate = self.play_gates.get(source or "")
        if gate is not None:
            await gate.wait()
        if source in self.play_failures:
            raise MediaPlaybackError(f"Playback rejected for {source}")
        self.paused = False

    async def pause(self) -> None:
        self.calls.append(("pause",))
        self.paused = True

    async def seek(self, seconds: float) -> None:
        self.calls.append(("seek", seconds))
        self.position = seconds

    async def get_current_time(self) -> float:
        return self.position

    async def get_duration(self) -> float:
        return self.duration

    def is_paused(self) -> bool:
        return self.paused

    async def set_volume(self, level: float) -> None:
        self.calls.append(("volume", level))
        self.volume = level

    async def get_volume(self) -> float:
        return self.volume

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def make_track() -> Callable[..., Track]:
    """Factory for playable test tracks."""
    return build_track


@pytest.fixture
def media() -> FakeMediaElement:
    return FakeMediaElement()


class RecordingRenderer(UIRenderer):
    """Renderer that keeps every call for assertions."""

    def __init__(self) -> None:
        self.queues: list = []
        self.tracks: list = []
        self.states: list = []
        self.ticks: list[ProgressTick] = []
        self.volumes: list[float] = []

    def render_queue(self, snapshot) -> None:
        self.queues.append(snapshot)

    def render_track(self, track) -> None:
        self.tracks.append(track)

    def render_state(self, state) -> None:
        self.states.append(state)

    def render_progress(self, tick: ProgressTick) -> None:
        self.ticks.append(tick)

    def render_volume(self, volume: float) -> None:
        self.volumes.append(volume)


class RecordingNotifier(NotificationSink):
    def __init__(self) -> None:
        self.messages: list[tuple[str, NotificationLevel]] = []

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.messages.append((message, level))

    @property
    def texts(self) -> list[str]:
        return [m for m, _ in self.messages]

    def levels_for(self, message: str) -> list[NotificationLevel]:
        return [lvl for m, lvl in self.messages if m == message]


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def transport(media, store, renderer, notifier) -> TransportController:
    """Transport wired to fakes, with a seeded queue shuffle."""
    return TransportController(
        queue=PlaybackQueue(rng=random.Random(5)),
        media=media,
        state_store=PlayerStateStore(store),
        renderer=renderer,
        notifier=notifier,
    )
