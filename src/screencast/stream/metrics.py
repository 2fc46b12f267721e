"""
Stream Metrics
==============

Per-session counters for the sender and receiver loops.

A fresh StreamMetrics is created for every session and summarized in the
log when the loop exits.
"""

import time


class StreamMetrics:
    """Metrics for one direction of one session."""

    __slots__ = (
        "direction",
        "frames",
        "bytes",
        "transient_waits",
        "last_frame_size",
        "started_at",
    )

    def __init__(self, direction: str) -> None:
        self.direction: str = direction
        self.frames: int = 0
        self.bytes: int = 0
        self.transient_waits: int = 0
        self.last_frame_size: int = 0
        self.started_at: float = time.monotonic()

    def record_frame(self, payload_size: int) -> None:
        """Count one fully transferred frame."""
        self.frames += 1
        self.bytes += payload_size
        self.last_frame_size = payload_size

    @property
    def elapsed(self) -> float:
        """Seconds since the session started."""
        return time.monotonic() - self.started_at

    @property
    def fps(self) -> float:
        """Average frames per second over the session so far."""
        elapsed = self.elapsed
        return self.frames / elapsed if elapsed > 0 else 0.0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "direction": self.direction,
            "frames": self.frames,
            "bytes": self.bytes,
            "transient_waits": self.transient_waits,
            "last_frame_size": self.last_frame_size,
            "elapsed_seconds": round(self.elapsed, 3),
            "fps": round(self.fps, 2),
        }
