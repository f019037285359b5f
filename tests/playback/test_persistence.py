"""Tests for player state persistence."""

import random

import pytest

from musicstream.playback.persistence import (
    DEFAULT_VOLUME,
    KEY_CURRENT_SONG,
    KEY_QUEUE,
    KEY_QUEUE_ORIGINAL,
    KEY_REPEAT,
    KEY_SHUFFLE,
    KEY_VOLUME,
    PlayerStateStore,
    clamp_volume,
)
from musicstream.playback.queue import PlaybackQueue, RepeatMode
from musicstream.storage import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state_store(store) -> PlayerStateStore:
    return PlayerStateStore(store)


class TestClampVolume:
    """Tests for clamp_volume."""

    @pytest.mark.parametrize(
        "value,expected",
        [(-0.5, 0.0), (0.0, 0.0), (0.3, 0.3), (1.0, 1.0), (7, 1.0)],
    )
    def test_clamp(self, value, expected) -> None:
        assert clamp_volume(value) == expected


class TestSave:
    """Tests for writing player state."""

    def test_save_writes_all_keys(self, store, state_store, make_track) -> None:
        queue = PlaybackQueue(rng=random.Random(1))
        for i in range(1, 4):
            queue.append(make_track(f"t{i}"))
        queue.move_to(1)
        queue.set_repeat_mode(RepeatMode.ALL)

        assert state_store.save(queue, 0.8) is True

        assert store.get(KEY_VOLUME) == 0.8
        assert store.get(KEY_SHUFFLE) is False
        assert store.get(KEY_REPEAT) == "all"
        assert [s["songID"] for s in store.get(KEY_QUEUE)] == ["t1", "t2", "t3"]
        assert store.get(KEY_QUEUE_ORIGINAL) == ["t1", "t2", "t3"]
        assert store.get(KEY_CURRENT_SONG)["songID"] == "t2"

    def test_save_loaded_track_outside_queue(self, store, state_store, make_track) -> None:
        queue = PlaybackQueue()
        queue.append(make_track("t1"))
        playing = make_track("gone")

        state_store.save(queue, 0.5, current=playing)

        assert store.get(KEY_CURRENT_SONG)["songID"] == "gone"
        state = state_store.load()
        assert state.current_track.track_id == "gone"
        assert state.current_id == "gone"
        assert [t.track_id for t in state.tracks] == ["t1"]

    def test_save_empty_queue_removes_current_song(self, store, state_store) -> None:
        store.set(KEY_CURRENT_SONG, {"songID": "old"})
        state_store.save(PlaybackQueue(), 0.5)
        assert store.get(KEY_CURRENT_SONG) is None
        assert store.get(KEY_QUEUE) == []

    def test_save_clamps_volume(self, store, state_store) -> None:
        state_store.save(PlaybackQueue(), 3.0)
        assert store.get(KEY_VOLUME) == 1.0


class TestLoad:
    """Tests for reading player state."""

    def test_defaults_for_empty_store(self, state_store) -> None:
        state = state_store.load()
        assert state.volume == DEFAULT_VOLUME
        assert state.shuffled is False
        assert state.repeat_mode == RepeatMode.NONE
        assert state.tracks == []
        assert state.original_ids is None
        assert state.current_id is None

    def test_configured_default_volume(self, store) -> None:
        assert PlayerStateStore(store, default_volume=0.25).load().volume == 0.25

    def test_save_then_load(self, state_store, make_track) -> None:
        queue = PlaybackQueue(rng=random.Random(3))
        for i in range(1, 6):
            queue.append(make_track(f"t{i}"))
        queue.move_to(2)
        queue.set_shuffled(True)
        queue.set_repeat_mode(RepeatMode.ONE)
        state_store.save(queue, 0.3)

        state = state_store.load()

        assert state.volume == 0.3
        assert state.shuffled is True
        assert state.repeat_mode == RepeatMode.ONE
        assert [t.track_id for t in state.tracks] == [t.track_id for t in queue.tracks]
        assert state.original_ids == ["t1", "t2", "t3", "t4", "t5"]
        assert state.current_id == "t3"

    def test_corrupt_entries_fall_back_to_defaults(self, store, state_store) -> None:
        """Unparseable raw values are treated as missing."""
        store.set_raw(KEY_VOLUME, "{not json")
        store.set_raw(KEY_QUEUE, "[[[")
        store.set_raw(KEY_CURRENT_SONG, "nope")

        state = state_store.load()

        assert state.volume == DEFAULT_VOLUME
        assert state.tracks == []
        assert state.current_id is None

    @pytest.mark.parametrize("value", ["loud", True, [0.5], float("nan")])
    def test_invalid_volume(self, store, state_store, value) -> None:
        store.set(KEY_VOLUME, value)
        assert state_store.load().volume == DEFAULT_VOLUME

    def test_out_of_range_volume_is_clamped(self, store, state_store) -> None:
        store.set(KEY_VOLUME, 1.7)
        assert state_store.load().volume == 1.0

    def test_invalid_shuffle_and_repeat(self, store, state_store) -> None:
        store.set(KEY_SHUFFLE, "yes")
        store.set(KEY_REPEAT, "forever")
        state = state_store.load()
        assert state.shuffled is False
        assert state.repeat_mode == RepeatMode.NONE

    def test_invalid_queue_entries_are_skipped(self, store, state_store) -> None:
        store.set(
            KEY_QUEUE,
            [{"songID": "a"}, {"title": "no id"}, "junk", {"songID": "b"}],
        )
        state = state_store.load()
        assert [t.track_id for t in state.tracks] == ["a", "b"]

    def test_queue_not_a_list(self, store, state_store) -> None:
        store.set(KEY_QUEUE, {"songID": "a"})
        assert state_store.load().tracks == []

    def test_invalid_current_song(self, store, state_store) -> None:
        store.set(KEY_CURRENT_SONG, {"title": "missing id"})
        assert state_store.load().current_id is None
