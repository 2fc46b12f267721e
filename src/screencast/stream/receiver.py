"""
Frame Receiver
==============

Receiver half of the transport: read, decode, present.

This module provides:
    - run_receiver: the per-connection receive loop
    - connect_receiver: connect to a caster and run the loop
    - start_receiver: blocking wrapper around connect_receiver

Design Rules:
    - A new read starts only after the previous frame was decoded and presented
    - The display window is opened once, at the first frame's resolution; a
      later frame with a different resolution ends the session
    - Waiting for the next header is bounded by the retry interval so the
      window stays responsive and cancellation is noticed while idle; the
      payload read itself is never interrupted
    - Any corrupt, oversized or truncated frame ends the session, nothing
      partial ever reaches the display
"""

import asyncio
import logging
from typing import Optional, Tuple

from screencast.config import Settings, TransportConfig, parse_address
from screencast.display.sink import DisplaySink, OpenCVWindowSink
from screencast.models.outcome import SessionOutcome
from screencast.stream.cancellation import CancellationToken
from screencast.stream.codec import FrameCodec, create_codec
from screencast.stream.errors import (
    CodecError,
    InvalidImageData,
    ResolutionChanged,
    TransportConnectionError,
)
from screencast.stream.frame import Frame
from screencast.stream.metrics import StreamMetrics
from screencast.stream.protocol import close_connection, read_header, read_payload


logger = logging.getLogger(__name__)


async def run_receiver(
    reader: asyncio.StreamReader,
    display: DisplaySink,
    codec: FrameCodec,
    token: CancellationToken,
    transport: Optional[TransportConfig] = None,
) -> SessionOutcome:
    """
    Receive and display frames until cancelled or the window is closed.

    Args:
        reader: Connected stream reader
        display: Display sink, opened lazily at the first frame
        codec: Frame decoder
        token: Cancellation token polled between frames and while idle
        transport: Retry / size limits (defaults if None)

    Returns:
        SessionOutcome.STOPPED if the token was observed set,
        SessionOutcome.WINDOW_CLOSED if the user closed the window

    Raises:
        FrameTooLarge: A declared frame length exceeds the limit
        ResolutionChanged: A frame's size differs from the first frame's
        InvalidImageData: A payload could not be decoded
        TransportConnectionError: The connection closed or failed
    """
    transport = transport or TransportConfig()
    metrics = StreamMetrics("receiver")
    resolution: Optional[Tuple[int, int]] = None

    logger.info("Receiver started")

    try:
        while not token.cancelled:
            try:
                length = await read_header(
                    reader, transport.max_frame_size, timeout=transport.retry_delay
                )
            except asyncio.TimeoutError:
                # No frame yet, keep the window alive
                metrics.transient_waits += 1
                if not display.refresh():
                    logger.info("Display window closed by user")
                    return SessionOutcome.WINDOW_CLOSED
                continue

            payload = await read_payload(reader, length)
            frame = _decode_frame(codec, payload)

            if resolution is None:
                resolution = frame.size
                display.open(frame.width, frame.height)
                logger.info(f"Stream resolution fixed at {frame.width}x{frame.height}")
            elif frame.size != resolution:
                raise ResolutionChanged(resolution, frame.size)

            metrics.record_frame(length)
            logger.debug(f"Received frame #{metrics.frames}: {length} bytes")

            if not display.present(frame):
                logger.info("Display window closed by user")
                return SessionOutcome.WINDOW_CLOSED
    finally:
        logger.info(f"Receiver finished: {metrics.to_dict()}")

    logger.info("Receiver stopped by request")
    return SessionOutcome.STOPPED


def _decode_frame(codec: FrameCodec, payload: bytes) -> Frame:
    try:
        return codec.decode(payload)
    except CodecError:
        raise
    except Exception as e:
        raise InvalidImageData(f"Unexpected error decoding {len(payload)}-byte payload: {e}") from e


async def connect_receiver(
    address: str,
    token: CancellationToken,
    *,
    display: Optional[DisplaySink] = None,
    codec: Optional[FrameCodec] = None,
    settings: Optional[Settings] = None,
) -> SessionOutcome:
    """
    Connect to the caster at `address` and display its frames.

    The connection and the display window are always closed on exit.

    Raises:
        TransportConnectionError: The caster cannot be reached, or the connection failed
        TransportError: Any other fatal condition from run_receiver
    """
    settings = settings or Settings()
    host, port = parse_address(address)

    if display is None:
        display = OpenCVWindowSink(
            title=settings.display.window_title,
            close_keys=settings.display.close_key_codes,
        )
    if codec is None:
        codec = create_codec(settings.codec.format, settings.codec.jpeg_quality)

    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port),
            timeout=settings.network.connect_timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise TransportConnectionError(f"Timed out connecting to caster at {address}") from e
    except OSError as e:
        raise TransportConnectionError(f"Could not connect to caster at {address}: {e}") from e

    logger.info(f"Connected to caster at {address}")

    try:
        return await run_receiver(
            reader, display, codec, token, transport=settings.transport
        )
    finally:
        display.close()
        await close_connection(writer)


def start_receiver(
    address: str,
    token: CancellationToken,
    *,
    display: Optional[DisplaySink] = None,
    codec: Optional[FrameCodec] = None,
    settings: Optional[Settings] = None,
) -> SessionOutcome:
    """
    Run a receiver session on a fresh event loop, blocking until it ends.

    See connect_receiver for arguments, return value and errors.
    """
    return asyncio.run(
        connect_receiver(address, token, display=display, codec=codec, settings=settings)
    )
