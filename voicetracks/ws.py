"""JSON messaging over the voice gateway websocket."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

_RECV_TIMEOUT = 0.5


class WsError(Exception):
    """Failure while talking to the websocket gateway."""


class UnexpectedBinaryMessage(WsError):
    """A binary message arrived; the voice gateway only sends text."""

    def __init__(self, payload: bytes) -> None:
        super().__init__(f"unexpected binary message of {len(payload)} bytes")
        self.payload = payload


@dataclass(frozen=True)
class CloseFrame:
    """Close frame sent by the remote end."""

    code: int
    reason: str = ""


class WsClosed(WsError):
    """The remote end closed the connection."""

    def __init__(self, frame: Optional[CloseFrame]) -> None:
        super().__init__(f"websocket closed: {frame!r}")
        self.frame = frame


Message = Union[str, bytes, CloseFrame, None]


def convert_ws_message(message: Message) -> Any:
    """Decode one websocket message into a JSON value.

    Text that is not valid JSON yields ``None``; binary messages and close
    frames raise. ``None`` (no message) yields ``None``.
    """
    if isinstance(message, str):
        try:
            return json.loads(message)
        except ValueError:
            logger.debug("Unexpected JSON %r.", message)
            return None
    if isinstance(message, (bytes, bytearray, memoryview)):
        raise UnexpectedBinaryMessage(bytes(message))
    if isinstance(message, CloseFrame):
        raise WsClosed(message)
    return None


async def _next_message(stream: Any) -> Message:
    try:
        return await stream.recv()
    except ConnectionClosed as exc:
        received = getattr(exc, "rcvd", None)
        if received is None:
            return None
        return CloseFrame(int(received.code), str(received.reason))
    except WebSocketException as exc:
        raise WsError(str(exc)) from exc


async def recv_json(stream: Any) -> Any:
    """Receive one JSON value, giving ``None`` if nothing arrives within 500 ms."""
    try:
        message = await asyncio.wait_for(_next_message(stream), _RECV_TIMEOUT)
    except asyncio.TimeoutError:
        message = None
    return convert_ws_message(message)


async def recv_json_no_timeout(stream: Any) -> Any:
    """Receive one JSON value, waiting as long as it takes."""
    return convert_ws_message(await _next_message(stream))


async def send_json(sink: Any, value: Any) -> None:
    """Send ``value`` as a JSON text message."""
    try:
        text = json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise WsError(f"could not encode JSON: {exc}") from exc
    try:
        await sink.send(text)
    except WebSocketException as exc:
        raise WsError(str(exc)) from exc


async def connect(url: str) -> Any:
    """Open a websocket client connection with no message size limit."""
    try:
        return await websockets.connect(url, max_size=None)
    except (WebSocketException, OSError, ValueError) as exc:
        raise WsError(f"could not connect to {url}: {exc}") from exc