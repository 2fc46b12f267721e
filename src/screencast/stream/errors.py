"""
Transport Errors
================

Error taxonomy for the frame-streaming transport.

Every exception here is fatal to the session that raised it: the loop
terminates and the error is surfaced to whoever started the session.
Transient conditions (capture not ready, no data yet) never appear here,
they are absorbed inside the loops.

Hierarchy:
    TransportError
        TransportConnectionError   (also a builtin ConnectionError)
        ProtocolViolation
            FrameTooLarge
            ResolutionChanged
        CodecError
            EncodeError
            InvalidImageData
        CaptureError
"""

from typing import Tuple


class TransportError(Exception):
    """Base class for fatal transport errors."""
    pass


class TransportConnectionError(TransportError, ConnectionError):
    """Connect, accept, read or write failure, including the peer closing."""
    pass


class ProtocolViolation(TransportError):
    """The peer sent something the wire protocol does not allow."""
    pass


class FrameTooLarge(ProtocolViolation):
    """Declared or produced frame length exceeds the maximum."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Frame too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class ResolutionChanged(ProtocolViolation):
    """A frame's decoded size differs from the session's fixed resolution."""

    def __init__(self, expected: Tuple[int, int], actual: Tuple[int, int]) -> None:
        super().__init__(
            f"Frame resolution changed mid-session: "
            f"expected {expected[0]}x{expected[1]}, got {actual[0]}x{actual[1]}"
        )
        self.expected = expected
        self.actual = actual


class CodecError(TransportError):
    """Encode or decode failure on an otherwise well-framed payload."""
    pass


class EncodeError(CodecError):
    """Raised when a frame cannot be encoded."""
    pass


class InvalidImageData(CodecError):
    """Raised when a payload cannot be decoded into a frame."""
    pass


class CaptureError(TransportError):
    """Raised when the screen cannot be captured."""
    pass
