"""Commands sent from track handles to tracks, and the channel carrying them."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Union

from voicetracks.modes import LoopState, TrackFinished, TrackState


@dataclass(frozen=True)
class Play:
    """Set the track to play or resume."""


@dataclass(frozen=True)
class Pause:
    """Pause the track."""


@dataclass(frozen=True)
class Stop:
    """Stop the track; this cannot be undone."""


@dataclass(frozen=True)
class SetVolume:
    """Set the track's volume."""

    volume: float


@dataclass(frozen=True)
class Seek:
    """Seek to the given position."""

    position: timedelta


@dataclass(frozen=True)
class AddEvent:
    """Register an event on the track."""

    event: Any


@dataclass(frozen=True)
class Do:
    """Run a function with direct access to the track."""

    action: Callable[[Any], None] = field(compare=False)

    def __repr__(self) -> str:
        return "Do([function])"


@dataclass(frozen=True)
class Request:
    """Ask for a copy of the track's state, delivered to ``reply``."""

    reply: Callable[[TrackState], None] = field(compare=False)


@dataclass(frozen=True)
class SetLoop:
    """Change the loop count or strategy of the track."""

    loops: LoopState


@dataclass(frozen=True)
class MakePlayable:
    """Prompt the track's input to become live, if it is not already."""


TrackCommand = Union[
    Play, Pause, Stop, SetVolume, Seek, AddEvent, Do, Request, SetLoop, MakePlayable
]


class CommandChannel:
    """Unbounded, thread-safe queue of track commands.

    Once closed, queued commands are dropped and every send raises
    :class:`TrackFinished`, since the receiving track is gone.
    """

    def __init__(self) -> None:
        self._queue: deque = deque()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, command: TrackCommand) -> None:
        with self._lock:
            if self._closed:
                raise TrackFinished()
            self._queue.append(command)

    def try_recv(self) -> TrackCommand | None:
        """Return the oldest pending command, or ``None`` if there is none."""
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._queue.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)