"""Tests for the mss capture source, with mss replaced by a fake screen."""

import numpy as np
import pytest
from mss.exception import ScreenShotError

from screencast.capture import source
from screencast.capture.source import CaptureUnavailable, MssCaptureSource
from screencast.models.region import CaptureRegion
from screencast.stream.errors import CaptureError


class FakeScreen:
    """Stand-in for an mss handle: one 8x4 monitor with known BGRA pixels."""

    def __init__(self, fail=False):
        self.monitors = [
            {"left": 0, "top": 0, "width": 8, "height": 4},
            {"left": 0, "top": 0, "width": 8, "height": 4},
        ]
        self.fail = fail
        self.areas = []
        self.closed = False

    def grab(self, area):
        self.areas.append(area)
        if self.fail:
            raise ScreenShotError("display asleep")
        shot = np.zeros((area["height"], area["width"], 4), dtype=np.uint8)
        shot[..., 0] = 10   # B
        shot[..., 1] = 20   # G
        shot[..., 2] = 30   # R
        shot[..., 3] = 0    # undefined alpha
        return shot

    def close(self):
        self.closed = True


@pytest.fixture
def fake_screen(monkeypatch):
    screen = FakeScreen()
    monkeypatch.setattr(source.mss, "mss", lambda: screen)
    return screen


class TestMssCaptureSource:
    """Tests for MssCaptureSource."""

    def test_full_screen_is_opaque_rgba(self, fake_screen):
        frame = MssCaptureSource().grab()
        assert frame.size == (8, 4)
        assert frame.pixels[:4] == bytes([30, 20, 10, 255])

    def test_region(self, fake_screen):
        frame = MssCaptureSource().grab(CaptureRegion(x=2, y=1, width=4, height=2))
        assert frame.size == (4, 2)
        assert fake_screen.areas == [{"left": 2, "top": 1, "width": 4, "height": 2}]

    def test_region_outside_screen(self, fake_screen):
        with pytest.raises(CaptureError, match="outside"):
            MssCaptureSource().grab(CaptureRegion(x=6, y=0, width=4, height=2))
        assert fake_screen.areas == []

    def test_missing_monitor(self, fake_screen):
        with pytest.raises(CaptureError, match="Monitor 3"):
            MssCaptureSource(monitor=3).grab()

    def test_screenshot_error_is_transient(self, fake_screen):
        fake_screen.fail = True
        with pytest.raises(CaptureUnavailable):
            MssCaptureSource().grab()

    def test_screen_size(self, fake_screen):
        assert MssCaptureSource().screen_size == (8, 4)

    def test_close_releases_handle(self, fake_screen):
        capture = MssCaptureSource()
        capture.grab()
        capture.close()
        assert fake_screen.closed
        capture.close()
