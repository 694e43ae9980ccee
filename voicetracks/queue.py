"""A queue that plays tracks one after another on a driver."""

from __future__ import annotations

import contextlib
import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from voicetracks.handle import TrackHandle
from voicetracks.modes import TrackError
from voicetracks.track import InputSource, Track, create_player

logger = logging.getLogger(__name__)

_PRELOAD_LEAD = timedelta(seconds=5)

T = TypeVar("T")


@dataclass(frozen=True)
class _QueueListener:
    """Event registered on a queued track.

    ``kind`` is ``"end"`` for the end-of-track listener, or ``"delayed"`` for a
    listener that fires ``delay`` after ``position``.
    """

    kind: str
    action: Callable[..., Any]
    position: timedelta
    delay: Optional[timedelta] = None


class Queued:
    """Reference to a track known to be part of a queue.

    Attribute access is forwarded to the wrapped :class:`TrackHandle`.
    Instances should not be moved from one queue to another.
    """

    __slots__ = ("_handle",)

    def __init__(self, handle: TrackHandle) -> None:
        self._handle = handle

    def __getattr__(self, name: str) -> Any:
        return getattr(self._handle, name)

    def __repr__(self) -> str:
        return f"Queued({self._handle!r})"

    def handle(self) -> TrackHandle:
        """Return the wrapped track handle."""
        return self._handle


class TrackQueue:
    """A simple queue of audio sources, played in sequence.

    When the head track ends, the next one is started; tracks that can no
    longer be played are discarded.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tracks: deque[Queued] = deque()

    def __repr__(self) -> str:
        return f"TrackQueue(len={len(self)})"

    def add_source(self, source: InputSource, driver: Any) -> TrackHandle:
        """Queue an input to be played by ``driver``; return its handle."""
        track, handle = create_player(source)
        self.add(track, driver)
        return handle

    def add(self, track: Track, driver: Any) -> None:
        """Queue a prepared track and hand it to ``driver`` for playing."""
        self._add_raw(track)
        driver.play(track)

    def _add_raw(self, track: Track) -> None:
        logger.info("Track added to queue.")
        with self._lock:
            if self._tracks:
                track.pause()

            track.events.append(
                _QueueListener("end", self.on_track_end, track.position)
            )

            # Start loading the next track shortly before this one ends,
            # for near-gapless playback without holding everything in memory.
            duration = getattr(track.source.metadata, "duration", None)
            if duration is not None:
                preload_time = max(duration - _PRELOAD_LEAD, timedelta())
                track.events.append(
                    _QueueListener(
                        "delayed", self.preload_next, track.position, preload_time
                    )
                )

            self._tracks.append(Queued(track.handle))

    def on_track_end(self, uuid: UUID) -> None:
        """Advance the queue if the track identified by ``uuid`` is its head."""
        with self._lock:
            # Users may have reordered or removed tracks, so only progress
            # when the ended track really is the head.
            if not self._tracks or self._tracks[0].uuid() != uuid:
                return

            self._tracks.popleft()
            logger.info("Queued track ended: %s.", uuid)
            logger.info("%d tracks remain.", len(self._tracks))

            while self._tracks:
                try:
                    self._tracks[0].play()
                except TrackError:
                    logger.warning("Track in Queue couldn't be played...")
                    self._tracks.popleft()
                else:
                    break

    def preload_next(self) -> None:
        """Ask the track after the head to become playable."""
        with self._lock:
            if len(self._tracks) > 1:
                with contextlib.suppress(TrackError):
                    self._tracks[1].make_playable()

    def current(self) -> Optional[TrackHandle]:
        """Return a handle to the currently playing track, if any."""
        with self._lock:
            return self._tracks[0].handle() if self._tracks else None

    def dequeue(self, index: int) -> Optional[Queued]:
        """Remove and return the entry at ``index``, or ``None`` if there is none."""

        def remove(tracks: deque[Queued]) -> Optional[Queued]:
            if not 0 <= index < len(tracks):
                return None
            entry = tracks[index]
            del tracks[index]
            return entry

        return self.modify_queue(remove)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._tracks

    def modify_queue(self, func: Callable[[deque[Queued]], T]) -> T:
        """Run ``func`` on the inner queue while holding its lock.

        Callers must stop any tracks they remove, to avoid leaking them.
        """
        with self._lock:
            return func(self._tracks)

    def pause(self) -> None:
        """Pause the track at the head of the queue."""
        with self._lock:
            if self._tracks:
                self._tracks[0].pause()

    def resume(self) -> None:
        """Resume the track at the head of the queue."""
        with self._lock:
            if self._tracks:
                self._tracks[0].play()

    def stop(self) -> None:
        """Stop every queued track and clear the queue."""
        with self._lock:
            while self._tracks:
                entry = self._tracks.popleft()
                # A failure only means the track is already gone.
                with contextlib.suppress(TrackError):
                    entry.stop()

    def skip(self) -> None:
        """Stop the current track so that the next one starts."""
        with self._lock:
            if self._tracks:
                self._tracks[0].stop()

    def current_queue(self) -> list[TrackHandle]:
        """Return a snapshot of the handles currently queued."""
        with self._lock:
            return [entry.handle() for entry in self._tracks]