from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import pytest

from voicetracks.modes import PlayMode, TrackFinished
from voicetracks.queue import Queued, TrackQueue
from voicetracks.track import create_player


@dataclass
class FakeMetadata:
    duration: Optional[timedelta] = None


class FakeSource:
    def __init__(self, duration=None, seekable=True):
        self.metadata = FakeMetadata(duration)
        self.seekable = seekable
        self.made_playable = False

    def is_seekable(self):
        return self.seekable

    def seek_time(self, position):
        return position if self.seekable else None

    def make_playable(self):
        self.made_playable = True


class FakeDriver:
    def __init__(self):
        self.played = []

    def play(self, track):
        self.played.append(track)


def add_tracks(queue, driver, count, duration=None):
    tracks = []
    for _ in range(count):
        track, handle = create_player(FakeSource(duration))
        queue.add(track, driver)
        tracks.append(track)
    return tracks


def test_add_source_returns_handle_and_plays():
    queue = TrackQueue()
    driver = FakeDriver()
    handle = queue.add_source(FakeSource(), driver)
    assert len(queue) == 1
    assert not queue.is_empty()
    assert queue.current().uuid() == handle.uuid()
    assert driver.played[0].uuid == handle.uuid()


def test_empty_queue():
    queue = TrackQueue()
    assert queue.is_empty()
    assert len(queue) == 0
    assert queue.current() is None
    assert queue.current_queue() == []


def test_later_tracks_are_paused():
    queue = TrackQueue()
    first, second, third = add_tracks(queue, FakeDriver(), 3)
    assert first.playing is PlayMode.PLAY
    assert second.playing is PlayMode.PAUSE
    assert third.playing is PlayMode.PAUSE


def test_current_queue_order():
    queue = TrackQueue()
    tracks = add_tracks(queue, FakeDriver(), 3)
    assert [h.uuid() for h in queue.current_queue()] == [t.uuid for t in tracks]


def test_end_listener_only_without_duration():
    queue = TrackQueue()
    (track,) = add_tracks(queue, FakeDriver(), 1)
    assert [event.kind for event in track.events] == ["end"]


def test_preload_listener_fires_before_end():
    queue = TrackQueue()
    (track,) = add_tracks(queue, FakeDriver(), 1, duration=timedelta(seconds=30))
    kinds = [event.kind for event in track.events]
    assert kinds == ["end", "delayed"]
    assert track.events[1].delay == timedelta(seconds=25)


def test_preload_delay_saturates_at_zero():
    queue = TrackQueue()
    (track,) = add_tracks(queue, FakeDriver(), 1, duration=timedelta(seconds=3))
    assert track.events[1].delay == timedelta()


def test_track_end_advances_queue():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    queue.on_track_end(first.uuid)
    assert len(queue) == 1
    assert queue.current().uuid() == second.uuid
    second.process_commands(0)
    assert second.playing is PlayMode.PLAY


def test_end_listener_action_advances_queue():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    first.events[0].action(first.uuid)
    assert queue.current().uuid() == second.uuid


def test_track_end_ignores_non_head():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    queue.on_track_end(second.uuid)
    assert [h.uuid() for h in queue.current_queue()] == [first.uuid, second.uuid]


def test_track_end_on_empty_queue_is_harmless():
    queue = TrackQueue()
    track, _ = create_player(FakeSource())
    queue.on_track_end(track.uuid)
    assert queue.is_empty()


def test_track_end_discards_unplayable_tracks():
    queue = TrackQueue()
    first, second, third = add_tracks(queue, FakeDriver(), 3)
    second.commands.close()
    queue.on_track_end(first.uuid)
    assert [h.uuid() for h in queue.current_queue()] == [third.uuid]
    third.process_commands(0)
    assert third.playing is PlayMode.PLAY


def test_preload_next_readies_second_track():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    queue.preload_next()
    second.process_commands(1)
    assert second.source.made_playable
    first.process_commands(0)
    assert not first.source.made_playable


def test_preload_next_ignores_closed_track():
    queue = TrackQueue()
    _, second = add_tracks(queue, FakeDriver(), 2)
    second.commands.close()
    queue.preload_next()
    assert len(queue) == 2


def test_stop_clears_and_stops_all():
    queue = TrackQueue()
    tracks = add_tracks(queue, FakeDriver(), 3)
    tracks[1].commands.close()
    queue.stop()
    assert queue.is_empty()
    for track in (tracks[0], tracks[2]):
        track.process_commands(0)
        assert track.playing is PlayMode.STOP


def test_skip_stops_head():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    queue.skip()
    first.process_commands(0)
    second.process_commands(1)
    assert first.playing is PlayMode.STOP
    assert second.playing is PlayMode.PAUSE


def test_skip_on_finished_head_raises():
    queue = TrackQueue()
    (first,) = add_tracks(queue, FakeDriver(), 1)
    first.commands.close()
    with pytest.raises(TrackFinished):
        queue.skip()


def test_pause_and_resume_head():
    queue = TrackQueue()
    (first,) = add_tracks(queue, FakeDriver(), 1)
    queue.pause()
    first.process_commands(0)
    assert first.playing is PlayMode.PAUSE
    queue.resume()
    first.process_commands(0)
    assert first.playing is PlayMode.PLAY


def test_pause_on_finished_head_raises():
    queue = TrackQueue()
    (first,) = add_tracks(queue, FakeDriver(), 1)
    first.commands.close()
    with pytest.raises(TrackFinished):
        queue.pause()


def test_dequeue():
    queue = TrackQueue()
    first, second = add_tracks(queue, FakeDriver(), 2)
    entry = queue.dequeue(1)
    assert isinstance(entry, Queued)
    assert entry.uuid() == second.uuid
    assert entry.handle().uuid() == second.uuid
    assert [h.uuid() for h in queue.current_queue()] == [first.uuid]


@pytest.mark.parametrize("index", [2, 5, -1])
def test_dequeue_out_of_range(index):
    queue = TrackQueue()
    add_tracks(queue, FakeDriver(), 2)
    assert queue.dequeue(index) is None
    assert len(queue) == 2


def test_modify_queue_reorders():
    queue = TrackQueue()
    tracks = add_tracks(queue, FakeDriver(), 3)
    result = queue.modify_queue(lambda dq: dq.reverse() or len(dq))
    assert result == 3
    assert [h.uuid() for h in queue.current_queue()] == [
        t.uuid for t in reversed(tracks)
    ]