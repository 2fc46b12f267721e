"""
Stream Module
=============

Frame-streaming transport between a caster and a receiver.

This package provides the building blocks shared by both halves:
    - Frame: Immutable RGBA frame
    - FrameCodec / OpenCVCodec: Image encode / decode
    - protocol: Length-prefixed wire framing
    - CancellationToken: Cooperative stop flag
    - errors: Fatal transport error taxonomy

The loops themselves live in screencast.stream.sender (run_sender,
start_sender) and screencast.stream.receiver (run_receiver, start_receiver).

Example:
    from screencast.stream import CancellationToken
    from screencast.stream.receiver import start_receiver

    token = CancellationToken()
    outcome = start_receiver("127.0.0.1:12345", token)
"""

from screencast.stream.cancellation import CancellationToken
from screencast.stream.codec import FrameCodec, OpenCVCodec
from screencast.stream.errors import (
    CaptureError,
    CodecError,
    EncodeError,
    FrameTooLarge,
    InvalidImageData,
    ProtocolViolation,
    ResolutionChanged,
    TransportConnectionError,
    TransportError,
)
from screencast.stream.frame import Frame
from screencast.stream.metrics import StreamMetrics
from screencast.stream.protocol import MAX_FRAME_SIZE


__all__ = [
    "CancellationToken",
    "CaptureError",
    "CodecError",
    "EncodeError",
    "Frame",
    "FrameCodec",
    "FrameTooLarge",
    "InvalidImageData",
    "MAX_FRAME_SIZE",
    "OpenCVCodec",
    "ProtocolViolation",
    "ResolutionChanged",
    "StreamMetrics",
    "TransportConnectionError",
    "TransportError",
]
