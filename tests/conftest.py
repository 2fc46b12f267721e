"""
Test Configuration
==================

Pytest fixtures and test doubles for the screencast transport.

Doubles:
    - RawCodec: lossless stand-in codec (8-byte size header + raw pixels)
    - ScriptedCapture: returns queued frames / raises queued exceptions
    - RecordingDisplay: records every open / present / refresh call
    - MemoryWriter: asyncio.StreamWriter stand-in collecting written bytes
"""

import asyncio
import itertools
import socket
import struct
from typing import Iterable, List, Optional, Tuple, Union

import pytest

from screencast.stream.cancellation import CancellationToken
from screencast.stream.errors import InvalidImageData
from screencast.stream.frame import Frame


RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


class RawCodec:
    """Codec that stores the frame size followed by the raw RGBA pixels."""

    SIZE = struct.Struct(">II")

    def __init__(self) -> None:
        self.encoded = 0
        self.decoded = 0

    def encode(self, frame: Frame) -> bytes:
        self.encoded += 1
        return self.SIZE.pack(frame.width, frame.height) + frame.pixels

    def decode(self, data: bytes) -> Frame:
        self.decoded += 1
        if len(data) < self.SIZE.size:
            raise InvalidImageData(f"Payload too short: {len(data)} bytes")
        width, height = self.SIZE.unpack_from(data)
        try:
            return Frame(width=width, height=height, pixels=data[self.SIZE.size:])
        except ValueError as e:
            raise InvalidImageData(str(e)) from e


class ScriptedCapture:
    """
    Capture source replaying a script of frames and exceptions.

    When the script runs out, `token` (if given) is cancelled after the last
    item is returned, so a sender loop stops right after sending it.
    With `repeat=True` the script cycles forever.
    """

    def __init__(
        self,
        script: Iterable[Union[Frame, Exception]],
        token: Optional[CancellationToken] = None,
        repeat: bool = False,
    ) -> None:
        self._items = list(script)
        self._iter = itertools.cycle(self._items) if repeat else iter(self._items)
        self._remaining = None if repeat else len(self._items)
        self.token = token
        self.regions: List = []
        self.closed = False

    def grab(self, region=None) -> Frame:
        self.regions.append(region)
        item = next(self._iter)
        if self._remaining is not None:
            self._remaining -= 1
            if self._remaining == 0 and self.token is not None:
                self.token.cancel()
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class RecordingDisplay:
    """
    Display sink recording every call.

    Args:
        close_after: present() returns False (window closed) on this frame number
        cancel_after: cancel `token` after presenting this many frames
        refresh_closes_after: refresh() returns False on this call number
    """

    def __init__(
        self,
        close_after: Optional[int] = None,
        token: Optional[CancellationToken] = None,
        cancel_after: Optional[int] = None,
        refresh_closes_after: Optional[int] = None,
    ) -> None:
        self.opened: List[Tuple[int, int]] = []
        self.presented: List[Frame] = []
        self.refreshes = 0
        self.closed = False
        self.close_after = close_after
        self.token = token
        self.cancel_after = cancel_after
        self.refresh_closes_after = refresh_closes_after

    def open(self, width: int, height: int) -> None:
        self.opened.append((width, height))

    def present(self, frame: Frame) -> bool:
        self.presented.append(frame)
        if self.cancel_after is not None and len(self.presented) >= self.cancel_after:
            self.token.cancel()
        if self.close_after is not None and len(self.presented) >= self.close_after:
            return False
        return True

    def refresh(self) -> bool:
        self.refreshes += 1
        if self.refresh_closes_after is not None and self.refreshes >= self.refresh_closes_after:
            return False
        return True

    def close(self) -> None:
        self.closed = True


class MemoryWriter:
    """StreamWriter stand-in. Fails on the Nth drain if `fail_on_drain` is set."""

    def __init__(self, fail_on_drain: Optional[int] = None) -> None:
        self.buffer = bytearray()
        self.drains = 0
        self.closed = False
        self.fail_on_drain = fail_on_drain

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        self.drains += 1
        if self.fail_on_drain is not None and self.drains >= self.fail_on_drain:
            raise ConnectionResetError("Connection reset by peer")

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None

    def get_extra_info(self, name, default=None):
        return default


@pytest.fixture
def rgb_frames():
    """Three 2x2 RGBA frames: red, green, blue."""
    return [Frame.solid(2, 2, RED), Frame.solid(2, 2, GREEN), Frame.solid(2, 2, BLUE)]


@pytest.fixture
def raw_codec():
    return RawCodec()


@pytest.fixture
def token():
    return CancellationToken()


@pytest.fixture
def make_reader():
    """
    Factory for a StreamReader pre-loaded with bytes.

    Must be called from inside a running event loop (i.e. an async test).
    """
    def make(data: bytes = b"", eof: bool = True) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        if data:
            reader.feed_data(data)
        if eof:
            reader.feed_eof()
        return reader

    return make


@pytest.fixture
def free_port():
    """A TCP port that was free a moment ago on 127.0.0.1."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
