"""Sending voice state updates over sharded gateway connections."""

from __future__ import annotations

import abc
import logging
import threading
from collections import deque
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

_VOICE_STATE_UPDATE_OP = 4
_ID_LIMIT = 2**64

Sender = Callable[[Any], None]


class JoinError(Exception):
    """Failure while asking the gateway to join or leave a voice channel."""


class IllegalGuild(JoinError):
    """The guild identifier is not a valid (non-zero) snowflake."""

    def __init__(self) -> None:
        super().__init__("illegal guild id")


class IllegalChannel(JoinError):
    """The channel identifier is not a valid (non-zero) snowflake."""

    def __init__(self) -> None:
        super().__init__("illegal channel id")


def _valid_id(value: int) -> bool:
    return 0 < value < _ID_LIMIT


class VoiceUpdate(abc.ABC):
    """A shard handle able to send voice state updates to the gateway."""

    @abc.abstractmethod
    async def update_voice_state(
        self,
        guild_id: int,
        channel_id: Optional[int],
        self_deaf: bool,
        self_mute: bool,
    ) -> None:
        """Send a voice state update; raise :class:`JoinError` on failure."""


class GenericSharder(abc.ABC):
    """A source of generic shard handles, for any gateway library."""

    @abc.abstractmethod
    def get_shard(self, shard_id: int) -> Optional[VoiceUpdate]:
        """Return a handle to the given shard, or ``None`` if there is none."""


class SerenityShardHandle:
    """Shard handle that buffers messages while its connection is down.

    Messages sent without a registered sender are queued and delivered, in
    order, as soon as a sender is registered.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sender: Optional[Sender] = None
        self._queue: deque = deque()

    def __repr__(self) -> str:
        return (
            f"SerenityShardHandle(connected={self.connected!r}, "
            f"pending={len(self._queue)})"
        )

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._sender is not None

    @property
    def pending(self) -> tuple:
        """Messages buffered while disconnected, oldest first."""
        with self._lock:
            return tuple(self._queue)

    def register(self, sender: Sender) -> None:
        """Attach a send channel and flush any buffered messages through it."""
        logger.debug("Adding shard handle send channel...")
        with self._lock:
            self._sender = sender
            logger.debug("Added shard handle send channel.")
            logger.debug("Clearing queued messages...")
            messages, self._queue = self._queue, deque()
            sent = 0
            for message in messages:
                try:
                    sender(message)
                except Exception as exc:  # noqa: BLE001 - any channel failure
                    logger.error("Error while clearing gateway message queue: %r", exc)
                    break
                sent += 1
            if sent:
                logger.debug("%d buffered messages sent to Serenity.", sent)
        logger.debug("Cleared queued messages.")

    def deregister(self) -> None:
        """Detach the send channel; later messages are buffered."""
        logger.debug("Removing shard handle send channel...")
        with self._lock:
            self._sender = None
        logger.debug("Removed shard handle send channel.")

    def send(self, message: Any) -> None:
        """Send ``message`` now, or buffer it if no channel is registered.

        Errors raised by the send channel propagate to the caller.
        """
        with self._lock:
            if self._sender is not None:
                self._sender(message)
                return
            logger.debug("Serenity shard temporarily disconnected: buffering message...")
            self._queue.append(message)
            logger.debug("Buffered message.")


class SerenitySharder:
    """Library-maintained map of shard handles, surviving reconnects."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[int, SerenityShardHandle] = {}

    def __repr__(self) -> str:
        with self._lock:
            return f"SerenitySharder(shards={sorted(self._handles)!r})"

    def get_or_insert_shard_handle(self, shard_id: int) -> SerenityShardHandle:
        """Return the handle for ``shard_id``, creating it if needed."""
        with self._lock:
            handle = self._handles.get(shard_id)
            if handle is None:
                handle = self._handles[shard_id] = SerenityShardHandle()
            return handle

    def register_shard_handle(self, shard_id: int, sender: Sender) -> None:
        self.get_or_insert_shard_handle(shard_id).register(sender)

    def deregister_shard_handle(self, shard_id: int) -> None:
        self.get_or_insert_shard_handle(shard_id).deregister()


class Shard(VoiceUpdate):
    """Reference to one gateway connection."""

    def __init__(self, target: Union[SerenityShardHandle, VoiceUpdate]) -> None:
        if not isinstance(target, (SerenityShardHandle, VoiceUpdate)):
            raise TypeError(
                "shard target must be a SerenityShardHandle or a VoiceUpdate"
            )
        self.target = target

    def __repr__(self) -> str:
        if isinstance(self.target, SerenityShardHandle):
            return f"Shard({self.target!r})"
        return "Shard(<generic>)"

    async def update_voice_state(
        self,
        guild_id: int,
        channel_id: Optional[int],
        self_deaf: bool,
        self_mute: bool,
    ) -> None:
        """Ask the gateway to move this session into ``channel_id`` (or leave)."""
        if not _valid_id(guild_id):
            raise IllegalGuild()
        if channel_id is not None and not _valid_id(channel_id):
            raise IllegalChannel()

        if isinstance(self.target, SerenityShardHandle):
            payload = {
                "op": _VOICE_STATE_UPDATE_OP,
                "d": {
                    "channel_id": channel_id,
                    "guild_id": guild_id,
                    "self_deaf": self_deaf,
                    "self_mute": self_mute,
                },
            }
            try:
                self.target.send(payload)
            except Exception as exc:  # noqa: BLE001 - any channel failure
                raise JoinError(f"failed to send voice state update: {exc}") from exc
            return

        await self.target.update_voice_state(guild_id, channel_id, self_deaf, self_mute)


class Sharder:
    """Source of individual shard connection handles."""

    def __init__(self, source: Union[SerenitySharder, GenericSharder]) -> None:
        if not isinstance(source, (SerenitySharder, GenericSharder)):
            raise TypeError("sharder source must be a SerenitySharder or GenericSharder")
        self.source = source

    def __repr__(self) -> str:
        if isinstance(self.source, SerenitySharder):
            return f"Sharder({self.source!r})"
        return "Sharder(<generic>)"

    def get_shard(self, shard_id: int) -> Optional[Shard]:
        """Return a new handle to the given shard, if the source has one."""
        if isinstance(self.source, SerenitySharder):
            return Shard(self.source.get_or_insert_shard_handle(shard_id))
        inner = self.source.get_shard(shard_id)
        return None if inner is None else Shard(inner)

    def register_shard_handle(self, shard_id: int, sender: Sender) -> None:
        if isinstance(self.source, SerenitySharder):
            self.source.register_shard_handle(shard_id, sender)
        else:
            logger.error(
                "Called serenity management function on a non-serenity Songbird instance."
            )

    def deregister_shard_handle(self, shard_id: int) -> None:
        if isinstance(self.source, SerenitySharder):
            self.source.deregister_shard_handle(shard_id)
        else:
            logger.error(
                "Called serenity management function on a non-serenity Songbird instance."
            )