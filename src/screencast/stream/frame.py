"""
Frame Data Model
=================

Internal frame representation shared by both halves of the transport.

A Frame is produced either by the capture source (caster side) or by the
codec decoding a wire payload (receiver side), and is handed from one loop
stage to the next without being modified.

Design Rules:
    - Pixels are row-major RGBA, 4 bytes per pixel
    - Immutable once constructed
    - Dimensions are validated against the pixel buffer length
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


BYTES_PER_PIXEL = 4


@dataclass(frozen=True, slots=True)
class Frame:
    """
    A single captured image at one point in time.

    Attributes:
        width: Width in pixels (> 0)
        height: Height in pixels (> 0)
        pixels: Raw RGBA bytes, length width * height * 4
    """

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Frame dimensions must be positive, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * BYTES_PER_PIXEL
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer has {len(self.pixels)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> Tuple[int, int]:
        """Frame size as (width, height)."""
        return (self.width, self.height)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Frame":
        """
        Build a frame from an RGBA array.

        Args:
            array: np.ndarray of shape (H, W, 4), dtype=uint8

        Raises:
            ValueError: If shape or dtype is not RGBA uint8
        """
        if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL:
            raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {array.shape}")
        if array.dtype != np.uint8:
            raise ValueError(f"Expected dtype uint8, got {array.dtype}")

        height, width = array.shape[:2]
        return cls(width=width, height=height, pixels=np.ascontiguousarray(array).tobytes())

    @classmethod
    def solid(cls, width: int, height: int, rgba: Tuple[int, int, int, int]) -> "Frame":
        """Build a frame filled with a single RGBA color."""
        return cls(width=width, height=height, pixels=bytes(rgba) * (width * height))

    def to_array(self) -> np.ndarray:
        """Read-only (H, W, 4) uint8 view of the pixel buffer."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, BYTES_PER_PIXEL
        )

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return f"Frame(width={self.width}, height={self.height}, bytes={len(self.pixels)})"
