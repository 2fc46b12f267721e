"""
Frame Codec
===========

Encodes frames into self-contained compressed image blobs and decodes
such blobs back into frames.

Design Rules:
    - This is the ONLY place in the codebase that encodes or decodes images
    - Every payload is an independently decodable image (no inter-frame state)
    - Fails fast: any problem raises EncodeError / InvalidImageData, the
      caller never sees a partially decoded frame
    - The decoder accepts any format OpenCV can read, not just the one the
      local encoder is configured for
"""

import logging
from typing import Protocol

import cv2
import numpy as np

from screencast.stream.errors import EncodeError, InvalidImageData
from screencast.stream.frame import Frame


logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = ("png", "jpeg")


class FrameCodec(Protocol):
    """
    Protocol for frame codecs.

    Implemented by:
        - OpenCVCodec (PNG / JPEG)
        - the identity codec used by the tests
    """

    def encode(self, frame: Frame) -> bytes:
        """
        Encode a frame into a compressed image blob.

        Raises:
            EncodeError: If the frame cannot be encoded
        """
        ...

    def decode(self, data: bytes) -> Frame:
        """
        Decode an image blob into an RGBA frame.

        Raises:
            InvalidImageData: If the blob is not a decodable image
        """
        ...


class OpenCVCodec:
    """
    Image codec backed by cv2.imencode / cv2.imdecode.

    PNG keeps the alpha channel and is lossless. JPEG drops alpha (decoded
    frames come back fully opaque) and trades exactness for size.

    Attributes:
        format: "png" or "jpeg"
        jpeg_quality: JPEG quality, 1-100 (ignored for PNG)
    """

    def __init__(self, format: str = "png", jpeg_quality: int = 80) -> None:
        if format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported codec format: {format!r} (expected one of {SUPPORTED_FORMATS})"
            )
        if not 1 <= jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be in 1..100, got {jpeg_quality}")

        self.format = format
        self.jpeg_quality = jpeg_quality

    def encode(self, frame: Frame) -> bytes:
        """Encode an RGBA frame as PNG or JPEG."""
        try:
            rgba = frame.to_array()
            if self.format == "png":
                image = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
                ok, buf = cv2.imencode(".png", image)
            else:
                image = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
                ok, buf = cv2.imencode(
                    ".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality]
                )
        except cv2.error as e:
            raise EncodeError(f"Failed to encode {frame!r} as {self.format}: {e}") from e

        if not ok:
            raise EncodeError(f"cv2.imencode rejected {frame!r} as {self.format}")

        return buf.tobytes()

    def decode(self, data: bytes) -> Frame:
        """Decode any OpenCV-readable image into an RGBA frame."""
        if not data:
            raise InvalidImageData("Empty image payload")

        try:
            nparr = np.frombuffer(data, np.uint8)
            image = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)

            if image is None:
                raise InvalidImageData(
                    f"Failed to decode {len(data)}-byte payload: cv2.imdecode returned None"
                )

            if image.dtype != np.uint8:
                raise InvalidImageData(f"Unsupported image dtype: {image.dtype}")

            if image.ndim == 2:
                rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
            elif image.shape[2] == 3:
                rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
            elif image.shape[2] == 4:
                rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
            else:
                raise InvalidImageData(f"Invalid image shape: {image.shape}")

            return Frame.from_array(rgba)

        except Exception as e:
            if isinstance(e, InvalidImageData):
                raise
            raise InvalidImageData(f"Unexpected error decoding image: {e}") from e


def create_codec(format: str = "png", jpeg_quality: int = 80) -> OpenCVCodec:
    """Create the configured codec."""
    logger.debug(f"Using OpenCVCodec: format={format}, jpeg_quality={jpeg_quality}")
    return OpenCVCodec(format=format, jpeg_quality=jpeg_quality)
