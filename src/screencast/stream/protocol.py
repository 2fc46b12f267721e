"""
Wire Protocol
=============

Length-prefixed framing used on the caster -> receiver TCP connection.

Wire Format:
    Frame  := Length (4 bytes, unsigned, big-endian) || Payload (Length bytes)
    Stream := Frame*

There is no handshake, no version negotiation and no end-of-stream marker;
the stream ends when the connection closes.

Design Rules:
    - Payloads larger than MAX_FRAME_SIZE are a protocol violation on both
      sides: the sender refuses to write them, the receiver refuses to read
      them
    - A frame is written as one buffer (header + payload) and drained before
      the next one is produced
    - A short read anywhere inside a frame is a connection error; there is
      no partial-frame recovery
"""

import asyncio
import logging
import struct
from typing import Optional

from screencast.constants import MAX_FRAME_SIZE
from screencast.stream.errors import FrameTooLarge, TransportConnectionError


logger = logging.getLogger(__name__)


HEADER = struct.Struct(">I")
HEADER_SIZE = HEADER.size


def encode_header(length: int) -> bytes:
    """Pack a payload length into the 4-byte wire header."""
    return HEADER.pack(length)


def decode_header(data: bytes, limit: int = MAX_FRAME_SIZE) -> int:
    """
    Unpack a 4-byte wire header.

    Args:
        data: Exactly HEADER_SIZE bytes
        limit: Maximum accepted payload length

    Returns:
        Declared payload length

    Raises:
        FrameTooLarge: If the declared length exceeds the limit
    """
    (length,) = HEADER.unpack(data)
    if length > limit:
        raise FrameTooLarge(length, limit)
    return length


def pack_frame(payload: bytes, limit: int = MAX_FRAME_SIZE) -> bytes:
    """
    Build the full wire representation of one payload.

    Raises:
        FrameTooLarge: If the payload exceeds the limit
    """
    if len(payload) > limit:
        raise FrameTooLarge(len(payload), limit)
    return encode_header(len(payload)) + payload


async def write_frame(
    writer: asyncio.StreamWriter,
    payload: bytes,
    limit: int = MAX_FRAME_SIZE,
) -> int:
    """
    Write one length-prefixed frame and wait until it is flushed.

    Args:
        writer: Connected stream writer
        payload: Encoded image bytes
        limit: Maximum payload length

    Returns:
        Number of bytes written, header included

    Raises:
        FrameTooLarge: If the payload exceeds the limit (nothing is written)
        TransportConnectionError: If the connection fails during the write
    """
    data = pack_frame(payload, limit)
    try:
        writer.write(data)
        await writer.drain()
    except (ConnectionError, OSError) as e:
        raise TransportConnectionError(f"Failed to send frame: {e}") from e
    return len(data)


async def read_header(
    reader: asyncio.StreamReader,
    limit: int = MAX_FRAME_SIZE,
    timeout: Optional[float] = None,
) -> int:
    """
    Read the next frame header.

    With a timeout, asyncio.TimeoutError means no complete header arrived in
    time. Bytes of a partially received header stay buffered in the reader,
    so the call can simply be retried.

    Raises:
        asyncio.TimeoutError: No complete header within `timeout`
        FrameTooLarge: Declared length exceeds the limit
        TransportConnectionError: Connection closed or failed
    """
    try:
        if timeout is not None:
            data = await asyncio.wait_for(reader.readexactly(HEADER_SIZE), timeout=timeout)
        else:
            data = await reader.readexactly(HEADER_SIZE)
    except asyncio.IncompleteReadError as e:
        if e.partial:
            raise TransportConnectionError(
                f"Connection closed mid-header ({len(e.partial)} of {HEADER_SIZE} bytes)"
            ) from e
        raise TransportConnectionError("Connection closed by peer") from e
    except asyncio.TimeoutError:
        # TimeoutError is an OSError on 3.11+, keep it out of the clause below
        raise
    except (ConnectionError, OSError) as e:
        raise TransportConnectionError(f"Failed to read frame header: {e}") from e

    return decode_header(data, limit)


async def read_payload(reader: asyncio.StreamReader, length: int) -> bytes:
    """
    Read exactly `length` payload bytes.

    Raises:
        TransportConnectionError: Connection closed before the payload was complete
    """
    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise TransportConnectionError(
            f"Connection closed mid-frame ({len(e.partial)} of {length} bytes)"
        ) from e
    except (ConnectionError, OSError) as e:
        raise TransportConnectionError(f"Failed to read frame payload: {e}") from e


async def close_connection(writer: asyncio.StreamWriter) -> None:
    """Close a connection, ignoring errors from an already broken socket."""
    writer.close()
    try:
        await writer.wait_closed()
    except (ConnectionError, OSError) as e:
        logger.debug(f"Error while closing connection: {e}")


async def read_frame(
    reader: asyncio.StreamReader,
    limit: int = MAX_FRAME_SIZE,
) -> bytes:
    """Read one complete frame payload (header, then payload)."""
    length = await read_header(reader, limit)
    return await read_payload(reader, length)
