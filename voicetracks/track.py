"""Controllable audio tracks and their creation."""

from __future__ import annotations

import copy
import uuid as uuid_module
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from voicetracks.commands import (
    AddEvent,
    CommandChannel,
    Do,
    MakePlayable,
    Pause,
    Play,
    Request,
    Seek,
    SetLoop,
    SetVolume,
    Stop,
)
from voicetracks.handle import TrackHandle
from voicetracks.modes import LoopState, PlayMode, SeekUnsupported, TrackState


@runtime_checkable
class InputSource(Protocol):
    """The parts of an audio input a track relies on."""

    metadata: Any

    def is_seekable(self) -> bool: ...

    def seek_time(self, position: timedelta) -> Optional[timedelta]: ...

    def make_playable(self) -> None: ...


@dataclass(frozen=True)
class TrackStateChange:
    """Notification that one aspect of the track at ``index`` changed."""

    index: int
    mode: Optional[PlayMode] = None
    volume: Optional[float] = None
    position: Optional[timedelta] = None
    loops: Optional[LoopState] = None
    total: Optional[TrackState] = None


@dataclass(frozen=True)
class TrackEventAdded:
    """Notification that an event was registered on the track at ``index``."""

    index: int
    event: Any


Notify = Optional[Callable[[Any], None]]


class Track:
    """Control object for audio playback, driven by commands from its handle."""

    def __init__(
        self, source: InputSource, commands: CommandChannel, handle: TrackHandle
    ) -> None:
        self.playing = PlayMode.PLAY
        self.volume = 1.0
        self.source = source
        self.position = timedelta()
        self.play_time = timedelta()
        self.events: list = []
        self.commands = commands
        self.handle = handle
        self.loops = LoopState.finite(0)
        self.uuid = handle.uuid()

    def __repr__(self) -> str:
        return (
            f"Track(uuid={self.uuid!r}, playing={self.playing!r}, "
            f"volume={self.volume!r}, position={self.position!r}, loops={self.loops!r})"
        )

    def _set_playing(self, new_state: PlayMode) -> Track:
        self.playing = self.playing.change_to(new_state)
        return self

    def play(self) -> Track:
        """Set the track playing if it is paused."""
        return self._set_playing(PlayMode.PLAY)

    def pause(self) -> Track:
        """Pause the track if it is playing."""
        return self._set_playing(PlayMode.PAUSE)

    def stop(self) -> Track:
        """Stop the track; stopped tracks cannot be restarted."""
        return self._set_playing(PlayMode.STOP)

    def end(self) -> Track:
        """Mark the track as naturally ended."""
        return self._set_playing(PlayMode.END)

    def set_volume(self, volume: float) -> Track:
        self.volume = volume
        return self

    def set_loops(self, loops: LoopState) -> None:
        """Set the loop state; raises :class:`SeekUnsupported` for unseekable input."""
        if not self.source.is_seekable():
            raise SeekUnsupported()
        self.loops = loops

    def do_loop(self) -> bool:
        """Consume one loop if any remain; return whether the track loops again."""
        if self.loops.is_infinite():
            return True
        if self.loops.remaining == 0:
            return False
        self.loops = replace(self.loops, remaining=self.loops.remaining - 1)
        return True

    def step_frame(self, timestep: timedelta) -> None:
        """Advance playback position and total play time by one frame."""
        self.position += timestep
        self.play_time += timestep

    def process_commands(self, index: int, notify: Notify = None) -> None:
        """Act on every pending command from the handles, reporting changes to ``notify``."""

        def emit(message: Any) -> None:
            if notify is not None:
                notify(message)

        while (cmd := self.commands.try_recv()) is not None:
            match cmd:
                case Play():
                    self.play()
                    emit(TrackStateChange(index, mode=self.playing))
                case Pause():
                    self.pause()
                    emit(TrackStateChange(index, mode=self.playing))
                case Stop():
                    self.stop()
                    emit(TrackStateChange(index, mode=self.playing))
                case SetVolume(volume=volume):
                    self.set_volume(volume)
                    emit(TrackStateChange(index, volume=self.volume))
                case Seek(position=position):
                    try:
                        new_time = self.seek_time(position)
                    except SeekUnsupported:
                        continue
                    emit(TrackStateChange(index, position=new_time))
                case AddEvent(event=event):
                    emit(TrackEventAdded(index, event))
                case Do(action=action):
                    action(self)
                    emit(TrackStateChange(index, total=self.state()))
                case Request(reply=reply):
                    reply(self.state())
                case SetLoop(loops=loops):
                    try:
                        self.set_loops(loops)
                    except SeekUnsupported:
                        continue
                    emit(TrackStateChange(index, loops=self.loops))
                case MakePlayable():
                    self.make_playable()

    def make_playable(self) -> None:
        """Ready the input for playing if it is lazily initialised."""
        self.source.make_playable()

    def state(self) -> TrackState:
        """Return a copy of the track's playback state."""
        return TrackState(
            playing=self.playing,
            volume=self.volume,
            position=self.position,
            play_time=self.play_time,
            loops=self.loops,
        )

    def seek_time(self, pos: timedelta) -> timedelta:
        """Seek the input; return the position reached."""
        new_time = self.source.seek_time(pos)
        if new_time is None:
            raise SeekUnsupported()
        self.position = new_time
        return new_time


def create_player(source: InputSource) -> tuple[Track, TrackHandle]:
    """Create a track and a handle for it with a fresh random identifier."""
    return create_player_with_uuid(source, uuid_module.uuid4())


def create_player_with_uuid(
    source: InputSource, uuid: uuid_module.UUID
) -> tuple[Track, TrackHandle]:
    """Create a track and a handle for it with the given identifier."""
    channel = CommandChannel()
    handle = TrackHandle(
        channel, source.is_seekable(), uuid, copy.deepcopy(source.metadata)
    )
    track = Track(source, channel, handle)
    return track, handle