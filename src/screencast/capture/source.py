"""
Capture Source
==============

Screen capture abstraction used by the sender loop.

This module provides the CaptureSource protocol and the mss-backed
implementation used by the caster.

Design Rules:
    - grab() is synchronous and bounded-time
    - "Not ready yet" is signalled with CaptureUnavailable and retried by the
      caller; anything else is a CaptureError
    - Output is always an opaque RGBA Frame (alpha forced to 255)
"""

import logging
from typing import Optional, Protocol, Tuple

import cv2
import mss
import numpy as np
from mss.exception import ScreenShotError

from screencast.models.region import CaptureRegion
from screencast.stream.errors import CaptureError
from screencast.stream.frame import Frame


logger = logging.getLogger(__name__)


class CaptureUnavailable(Exception):
    """Transient: the screen could not be captured yet, try again shortly."""
    pass


class CaptureSource(Protocol):
    """
    Protocol for screen capture backends.

    Implemented by:
        - MssCaptureSource (real screen)
        - the scripted sources used by the tests
    """

    def grab(self, region: Optional[CaptureRegion] = None) -> Frame:
        """
        Capture the screen, or only `region` of it.

        Raises:
            CaptureUnavailable: Transient, the caller should retry
            CaptureError: The capture cannot succeed
        """
        ...

    def close(self) -> None:
        """Release capture resources."""
        ...


class MssCaptureSource:
    """
    Screen capture through the mss library.

    The mss handle is created lazily on first grab, so the source can be
    built on one thread and used on the session thread (mss handles are not
    shareable across threads on every platform).

    Attributes:
        monitor: Index into mss monitors (0 = all monitors combined, 1 = primary)
    """

    def __init__(self, monitor: int = 1) -> None:
        self.monitor = monitor
        self._sct: Optional[mss.base.MSSBase] = None

    def _handle(self) -> "mss.base.MSSBase":
        if self._sct is None:
            try:
                self._sct = mss.mss()
            except ScreenShotError as e:
                raise CaptureUnavailable(f"Screen capture not available: {e}") from e
        return self._sct

    def _monitor_area(self) -> dict:
        monitors = self._handle().monitors
        if not 0 <= self.monitor < len(monitors):
            raise CaptureError(
                f"Monitor {self.monitor} does not exist ({len(monitors) - 1} monitors found)"
            )
        return monitors[self.monitor]

    @property
    def screen_size(self) -> Tuple[int, int]:
        """Size of the captured monitor as (width, height)."""
        area = self._monitor_area()
        return (area["width"], area["height"])

    def grab(self, region: Optional[CaptureRegion] = None) -> Frame:
        monitor = self._monitor_area()

        if region is not None:
            if not region.fits_within(monitor["width"], monitor["height"]):
                raise CaptureError(
                    f"Capture region {region} is outside the "
                    f"{monitor['width']}x{monitor['height']} screen"
                )
            area = {
                "left": monitor["left"] + region.x,
                "top": monitor["top"] + region.y,
                "width": region.width,
                "height": region.height,
            }
        else:
            area = {
                "left": monitor["left"],
                "top": monitor["top"],
                "width": monitor["width"],
                "height": monitor["height"],
            }

        try:
            shot = self._handle().grab(area)
        except ScreenShotError as e:
            raise CaptureUnavailable(f"Screen grab failed: {e}") from e

        # mss returns BGRA with undefined alpha
        rgba = cv2.cvtColor(np.array(shot), cv2.COLOR_BGRA2RGBA)
        rgba[..., 3] = 255
        return Frame.from_array(rgba)

    def close(self) -> None:
        if self._sct is not None:
            self._sct.close()
            self._sct = None
