"""
Frame Sender
============

Caster half of the transport: capture, encode, frame, write.

This module provides:
    - run_sender: the per-connection send loop
    - serve_sender: listen on an address, accept one receiver, run the loop
    - start_sender: blocking wrapper around serve_sender

Design Rules:
    - Strictly one frame in flight: the next capture starts only after the
      previous frame has been fully written and drained
    - Cancellation is checked between frames, never mid-write
    - Transient capture failures are retried after a fixed delay; only a
      long run of them becomes a CaptureError
    - Exactly one receiver per session, the listener is closed once it connects
"""

import asyncio
import logging
from typing import Optional, Tuple

from screencast.capture.source import CaptureSource, CaptureUnavailable, MssCaptureSource
from screencast.config import Settings, TransportConfig, parse_address
from screencast.models.outcome import SessionOutcome
from screencast.models.region import CaptureRegion
from screencast.stream.cancellation import CancellationToken
from screencast.stream.codec import FrameCodec, create_codec
from screencast.stream.errors import (
    CaptureError,
    CodecError,
    EncodeError,
    TransportConnectionError,
)
from screencast.stream.frame import Frame
from screencast.stream.metrics import StreamMetrics
from screencast.stream.protocol import close_connection, write_frame


logger = logging.getLogger(__name__)


async def run_sender(
    writer: asyncio.StreamWriter,
    capture: CaptureSource,
    codec: FrameCodec,
    region: Optional[CaptureRegion],
    token: CancellationToken,
    transport: Optional[TransportConfig] = None,
) -> SessionOutcome:
    """
    Stream captured frames to a connected receiver until cancelled.

    Args:
        writer: Connected stream writer
        capture: Screen capture source
        codec: Frame encoder
        region: Optional sub-rectangle to capture (None = full screen)
        token: Cancellation token polled between frames
        transport: Retry / size limits (defaults if None)

    Returns:
        SessionOutcome.STOPPED once the token is observed set

    Raises:
        CaptureError: Capture failed, or stayed unavailable for too long
        CodecError: A frame could not be encoded
        FrameTooLarge: An encoded frame exceeds the size limit
        TransportConnectionError: The connection failed
    """
    transport = transport or TransportConfig()
    metrics = StreamMetrics("sender")

    logger.info(f"Sender started (region={region or 'full screen'})")

    try:
        while not token.cancelled:
            frame = await _capture_frame(capture, region, token, transport, metrics)
            if frame is None:
                break

            payload = _encode_frame(codec, frame)
            await write_frame(writer, payload, transport.max_frame_size)
            metrics.record_frame(len(payload))

            logger.debug(
                f"Sent frame #{metrics.frames}: {frame.width}x{frame.height}, "
                f"{len(payload)} bytes"
            )
    finally:
        logger.info(f"Sender finished: {metrics.to_dict()}")

    logger.info("Sender stopped by request")
    return SessionOutcome.STOPPED


async def _capture_frame(
    capture: CaptureSource,
    region: Optional[CaptureRegion],
    token: CancellationToken,
    transport: TransportConfig,
    metrics: StreamMetrics,
) -> Optional[Frame]:
    """
    Grab one frame, absorbing transient failures.

    Returns None if the token is set while waiting for the screen.
    """
    failures = 0
    while True:
        try:
            return capture.grab(region)
        except CaptureUnavailable as e:
            failures += 1
            metrics.transient_waits += 1
            if failures >= transport.max_capture_retries:
                raise CaptureError(
                    f"Screen capture unavailable after {failures} attempts: {e}"
                ) from e
            logger.debug(f"Capture not ready ({e}), retrying in {transport.retry_delay_ms}ms")

        if token.cancelled:
            return None
        await asyncio.sleep(transport.retry_delay)


def _encode_frame(codec: FrameCodec, frame: Frame) -> bytes:
    try:
        return codec.encode(frame)
    except CodecError:
        raise
    except Exception as e:
        raise EncodeError(f"Unexpected error encoding {frame!r}: {e}") from e


async def _wait_for_receiver(
    connected: "asyncio.Future[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]",
    token: CancellationToken,
    poll_interval: float,
) -> Optional[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]:
    """Wait for the first receiver, checking the token every poll_interval."""
    while not token.cancelled:
        try:
            return await asyncio.wait_for(asyncio.shield(connected), timeout=poll_interval)
        except asyncio.TimeoutError:
            continue
    return None


async def serve_sender(
    address: str,
    token: CancellationToken,
    region: Optional[CaptureRegion] = None,
    *,
    capture: Optional[CaptureSource] = None,
    codec: Optional[FrameCodec] = None,
    settings: Optional[Settings] = None,
) -> SessionOutcome:
    """
    Listen on `address`, accept one receiver and stream frames to it.

    Returns:
        SessionOutcome.STOPPED when cancelled, before or after a receiver connected

    Raises:
        TransportConnectionError: The address cannot be bound, or the connection failed
        TransportError: Any other fatal condition from run_sender
    """
    settings = settings or Settings()
    host, port = parse_address(address)

    owns_capture = capture is None
    if capture is None:
        capture = MssCaptureSource(monitor=settings.capture.monitor)
    if codec is None:
        codec = create_codec(settings.codec.format, settings.codec.jpeg_quality)

    loop = asyncio.get_running_loop()
    connected: asyncio.Future = loop.create_future()

    def on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if connected.done():
            logger.warning(
                f"Rejecting extra receiver from {writer.get_extra_info('peername')}"
            )
            writer.close()
            return
        connected.set_result((reader, writer))

    try:
        server = await asyncio.start_server(on_connect, host, port)
    except OSError as e:
        if owns_capture:
            capture.close()
        raise TransportConnectionError(f"Could not listen on {address}: {e}") from e

    logger.info(f"Caster listening on {address}, waiting for a receiver")

    writer: Optional[asyncio.StreamWriter] = None
    try:
        accepted = await _wait_for_receiver(connected, token, settings.transport.retry_delay)
        if accepted is None:
            logger.info("Caster stopped before a receiver connected")
            return SessionOutcome.STOPPED

        _, writer = accepted
        server.close()
        logger.info(f"Receiver connected from {writer.get_extra_info('peername')}")

        return await run_sender(
            writer, capture, codec, region, token, transport=settings.transport
        )
    finally:
        server.close()
        if writer is not None:
            await close_connection(writer)
        await server.wait_closed()
        if owns_capture:
            capture.close()


def start_sender(
    address: str,
    token: CancellationToken,
    region: Optional[CaptureRegion] = None,
    *,
    capture: Optional[CaptureSource] = None,
    codec: Optional[FrameCodec] = None,
    settings: Optional[Settings] = None,
) -> SessionOutcome:
    """
    Run a caster session on a fresh event loop, blocking until it ends.

    See serve_sender for arguments, return value and errors.
    """
    return asyncio.run(
        serve_sender(
            address, token, region, capture=capture, codec=codec, settings=settings
        )
    )
