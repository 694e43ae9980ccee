"""Playback modes, loop settings, track errors and track state snapshots."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import timedelta


class PlayMode(enum.Enum):
    """Playback status of a track."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
    END = "end"

    def is_done(self) -> bool:
        """Whether the track has irreversibly stopped."""
        return self in (PlayMode.STOP, PlayMode.END)

    def change_to(self, other: PlayMode) -> PlayMode:
        """Return the mode after requesting ``other``; finished tracks stay finished."""
        if self in (PlayMode.PLAY, PlayMode.PAUSE):
            return other
        return self


@dataclass(frozen=True)
class LoopState:
    """Looping behaviour of a track.

    ``remaining`` is the number of further loops, or ``None`` to loop forever.
    The default, zero, stops the track once its input ends.
    """

    remaining: int | None = 0

    def __post_init__(self) -> None:
        if self.remaining is None:
            return
        if isinstance(self.remaining, bool) or not isinstance(self.remaining, int):
            raise TypeError("loop count must be an integer or None")
        if self.remaining < 0:
            raise ValueError(f"loop count must not be negative, got {self.remaining}")

    @classmethod
    def infinite(cls) -> LoopState:
        """Loop until the loop state changes or the track is stopped."""
        return cls(None)

    @classmethod
    def finite(cls, count: int) -> LoopState:
        """Loop ``count`` more times."""
        if count is None:
            raise TypeError("finite loop count must be an integer")
        return cls(count)

    def is_infinite(self) -> bool:
        return self.remaining is None

    def __repr__(self) -> str:
        if self.remaining is None:
            return "LoopState.infinite()"
        return f"LoopState.finite({self.remaining})"


class TrackError(Exception):
    """Failure to control or manipulate a track."""

    detail = "track error"

    def __init__(self) -> None:
        super().__init__(f"failed to operate on track (handle): {self.detail}")


class TrackFinished(TrackError):
    """The track has ended, was removed, or the driver failed."""

    detail = "track ended"


class InvalidTrackEvent(TrackError):
    """The event listener can never fire on a track."""

    detail = "given event listener can't be fired on a track"


class SeekUnsupported(TrackError):
    """The track's input does not support seeking."""

    detail = "track did not support seeking"


@dataclass
class TrackState:
    """Snapshot of a track's playback state."""

    playing: PlayMode = PlayMode.PLAY
    volume: float = 0.0
    position: timedelta = field(default_factory=timedelta)
    play_time: timedelta = field(default_factory=timedelta)
    loops: LoopState = field(default_factory=LoopState)

    def step_frame(self, timestep: timedelta) -> None:
        """Advance position and total play time by one frame."""
        self.position += timestep
        self.play_time += timestep