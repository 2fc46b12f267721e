"""
Display Sink
============

Live window presenting the frames received from a caster.

Design Rules:
    - The window is opened once, at the resolution of the first frame
    - present() and refresh() report whether the window is still open;
      a False return means the user closed it
    - Only the receiver loop that owns the sink touches it
"""

import logging
from typing import Optional, Protocol, Sequence

import cv2
import numpy as np

from screencast.stream.frame import Frame


logger = logging.getLogger(__name__)


class DisplaySink(Protocol):
    """
    Protocol for frame presentation backends.

    Implemented by:
        - OpenCVWindowSink (cv2 HighGUI window)
        - the recording sinks used by the tests
    """

    def open(self, width: int, height: int) -> None:
        """Create the window at a fixed resolution."""
        ...

    def present(self, frame: Frame) -> bool:
        """Show a new frame. Returns False if the window was closed."""
        ...

    def refresh(self) -> bool:
        """Keep the window responsive without a new frame. Returns False if closed."""
        ...

    def close(self) -> None:
        """Destroy the window, if open."""
        ...


class OpenCVWindowSink:
    """
    Display sink backed by an OpenCV window.

    Pressing one of `close_keys` inside the window counts as the user
    closing it, as does closing it from the window manager.

    Attributes:
        title: Window title
        close_keys: Key codes that close the window (default: q, ESC)
    """

    def __init__(
        self,
        title: str = "screencast",
        close_keys: Sequence[int] = (ord("q"), 27),
    ) -> None:
        self.title = title
        self.close_keys = tuple(close_keys)
        self._opened = False
        self._closed_by_user = False
        self._last: Optional[np.ndarray] = None

    @property
    def is_open(self) -> bool:
        if not self._opened or self._closed_by_user:
            return False
        try:
            return cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) >= 1
        except cv2.error:
            return False

    def open(self, width: int, height: int) -> None:
        cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
        self._opened = True
        logger.info(f"Display window opened: {self.title!r} at {width}x{height}")

    def present(self, frame: Frame) -> bool:
        # Some backends report the window hidden until the first imshow
        if self._last is not None and not self.is_open:
            return False
        if not self._opened or self._closed_by_user:
            return False
        self._last = cv2.cvtColor(frame.to_array(), cv2.COLOR_RGBA2BGR)
        cv2.imshow(self.title, self._last)
        return self._pump()

    def refresh(self) -> bool:
        if not self._opened:
            # Nothing to keep alive before the first frame
            return True
        if not self.is_open:
            return False
        if self._last is not None:
            cv2.imshow(self.title, self._last)
        return self._pump()

    def _pump(self) -> bool:
        key = cv2.waitKey(1) & 0xFF
        if key in self.close_keys:
            logger.info("Display window closed from keyboard")
            self._closed_by_user = True
            return False
        return self.is_open

    def close(self) -> None:
        if self._opened:
            try:
                cv2.destroyWindow(self.title)
                cv2.waitKey(1)
            except cv2.error as e:
                logger.debug(f"Window already gone: {e}")
            self._opened = False
        self._last = None
