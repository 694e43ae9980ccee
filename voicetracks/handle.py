"""Thread-safe handle for controlling a track from outside the mixer."""

from __future__ import annotations

import asyncio
import contextlib
import threading
import uuid as uuid_module
from datetime import timedelta
from typing import Any, Callable

from voicetracks.commands import (
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
    TrackCommand,
)
from voicetracks.modes import LoopState, SeekUnsupported, TrackFinished, TrackState

_POLL_INTERVAL = 0.05


class TrackHandle:
    """Handle for safe control of a track from other threads.

    Handles are cheap to share. Most calls fail with :class:`TrackFinished`
    once the underlying track has been discarded.
    """

    def __init__(
        self,
        command_channel: CommandChannel,
        seekable: bool,
        uuid: uuid_module.UUID,
        metadata: Any,
    ) -> None:
        self._channel = command_channel
        self._seekable = bool(seekable)
        self._uuid = uuid
        self._metadata = metadata
        self._typemap: dict = {}
        self.typemap_lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"TrackHandle(uuid={self._uuid!r}, seekable={self._seekable!r}, "
            f"metadata={self._metadata!r})"
        )

    def play(self) -> None:
        """Unpause the track."""
        self.send(Play())

    def pause(self) -> None:
        """Pause the track."""
        self.send(Pause())

    def stop(self) -> None:
        """Stop the track. This is final."""
        self.send(Stop())

    def set_volume(self, volume: float) -> None:
        self.send(SetVolume(volume))

    def make_playable(self) -> None:
        """Ready a lazily initialised track for playing."""
        self.send(MakePlayable())

    def is_seekable(self) -> bool:
        """Whether the track's input supports arbitrary seeking (and looping)."""
        return self._seekable

    def _require_seekable(self) -> None:
        if not self._seekable:
            raise SeekUnsupported()

    def seek_time(self, position: timedelta) -> None:
        """Seek to ``position``; raises :class:`SeekUnsupported` if impossible."""
        self._require_seekable()
        self.send(Seek(position))

    def action(self, action: Callable[[Any], None]) -> None:
        """Run a quick synchronous function on the raw track object."""
        self.send(Do(action))

    async def get_info(self) -> TrackState:
        """Request the track's current state from the audio context."""
        loop = asyncio.get_running_loop()
        ready = asyncio.Event()
        replies: list[TrackState] = []

        def reply(state: TrackState) -> None:
            replies.append(state)
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(ready.set)

        self.send(Request(reply))

        while True:
            if replies:
                return replies[0]
            if self._channel.closed:
                if replies:
                    return replies[0]
                raise TrackFinished()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(ready.wait(), _POLL_INTERVAL)

    def enable_loop(self) -> None:
        """Loop the track indefinitely."""
        self._require_seekable()
        self.send(SetLoop(LoopState.infinite()))

    def disable_loop(self) -> None:
        """Stop the track from looping."""
        self._require_seekable()
        self.send(SetLoop(LoopState.finite(0)))

    def loop_for(self, count: int) -> None:
        """Loop the track ``count`` more times."""
        self._require_seekable()
        self.send(SetLoop(LoopState.finite(count)))

    def uuid(self) -> uuid_module.UUID:
        """Unique identifier of this handle and its track."""
        return self._uuid

    def metadata(self) -> Any:
        """Metadata copied from the input when the track was created."""
        return self._metadata

    def typemap(self) -> dict:
        """User data shared by all references to this handle; never touched by the driver."""
        return self._typemap

    def send(self, cmd: TrackCommand) -> None:
        """Send a raw command to the track; raises :class:`TrackFinished` if it is gone."""
        self._channel.send(cmd)