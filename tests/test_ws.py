import asyncio

import pytest
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.frames import Close

from voicetracks.ws import (
    CloseFrame,
    UnexpectedBinaryMessage,
    WsClosed,
    WsError,
    connect,
    convert_ws_message,
    recv_json,
    recv_json_no_timeout,
    send_json,
)


class FakeStream:
    def __init__(self, items=(), delay=0.0):
        self.items = list(items)
        self.delay = delay
        self.sent = []

    async def recv(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.items.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, text):
        self.sent.append(text)


class FailingSink:
    async def send(self, text):
        raise WebSocketException("broken")


def test_convert_text():
    assert convert_ws_message('{"op": 4, "d": [1, 2]}') == {"op": 4, "d": [1, 2]}


def test_convert_invalid_json_is_none():
    assert convert_ws_message("{not json") is None


def test_convert_none_is_none():
    assert convert_ws_message(None) is None


def test_convert_binary_raises():
    with pytest.raises(UnexpectedBinaryMessage) as info:
        convert_ws_message(b"\x01\x02")
    assert info.value.payload == b"\x01\x02"


def test_convert_close_raises():
    frame = CloseFrame(4006, "session invalid")
    with pytest.raises(WsClosed) as info:
        convert_ws_message(frame)
    assert info.value.frame == frame
    assert isinstance(info.value, WsError)


@pytest.mark.asyncio
async def test_recv_json_returns_value():
    stream = FakeStream(['{"op": 8}'])
    assert await recv_json(stream) == {"op": 8}


@pytest.mark.asyncio
async def test_recv_json_times_out():
    stream = FakeStream(['{"op": 8}'], delay=2.0)
    assert await recv_json(stream) is None


@pytest.mark.asyncio
async def test_recv_json_no_timeout_waits():
    stream = FakeStream(['{"op": 2}'], delay=0.6)
    assert await recv_json_no_timeout(stream) == {"op": 2}


@pytest.mark.asyncio
async def test_recv_close_frame_raises():
    stream = FakeStream([ConnectionClosed(Close(4014, "disconnected"), None)])
    with pytest.raises(WsClosed) as info:
        await recv_json_no_timeout(stream)
    assert info.value.frame == CloseFrame(4014, "disconnected")


@pytest.mark.asyncio
async def test_recv_closed_without_frame_is_none():
    stream = FakeStream([ConnectionClosed(None, None)])
    assert await recv_json(stream) is None


@pytest.mark.asyncio
async def test_recv_transport_error_raises():
    stream = FakeStream([WebSocketException("broken")])
    with pytest.raises(WsError):
        await recv_json_no_timeout(stream)


@pytest.mark.asyncio
async def test_recv_binary_raises():
    stream = FakeStream([b"\x00"])
    with pytest.raises(UnexpectedBinaryMessage):
        await recv_json(stream)


@pytest.mark.asyncio
async def test_send_json_round_trip():
    sink = FakeStream()
    value = {"op": 4, "d": {"guild_id": 1, "self_mute": False}}
    await send_json(sink, value)
    assert len(sink.sent) == 1
    assert convert_ws_message(sink.sent[0]) == value


@pytest.mark.asyncio
async def test_send_json_unencodable_raises():
    with pytest.raises(WsError):
        await send_json(FakeStream(), {"bad": object()})


@pytest.mark.asyncio
async def test_send_json_transport_error_raises():
    with pytest.raises(WsError):
        await send_json(FailingSink(), {"op": 1})


@pytest.mark.asyncio
async def test_connect_invalid_url_raises():
    with pytest.raises(WsError):
        await connect("not a websocket url")


@pytest.mark.asyncio
async def test_connect_and_echo():
    async def echo(ws):
        async for message in ws:
            await ws.send(message)

    async with websockets.serve(echo, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        client = await connect(f"ws://127.0.0.1:{port}")
        try:
            await send_json(client, {"op": 3, "d": 42})
            assert await recv_json_no_timeout(client) == {"op": 3, "d": 42}
        finally:
            await client.close()