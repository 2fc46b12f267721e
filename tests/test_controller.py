"""Tests for the session controller."""

import threading
import time

from screencast.config import Settings, TransportConfig
from screencast.models.outcome import SessionOutcome
from screencast.session.controller import Direction, ErrorSlot, SessionController

from conftest import RawCodec, RecordingDisplay, ScriptedCapture


def _settings() -> Settings:
    return Settings(transport=TransportConfig(retry_delay_ms=10))


def _wait_until(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestErrorSlot:
    """Tests for ErrorSlot."""

    def test_latest_error_wins(self):
        slot = ErrorSlot()
        slot.set("first")
        slot.set("second")
        assert slot.get() == "second"

    def test_take_clears(self):
        slot = ErrorSlot()
        slot.set("boom")
        assert slot.take() == "boom"
        assert slot.take() is None

    def test_clear(self):
        slot = ErrorSlot()
        slot.set("boom")
        slot.clear()
        assert slot.get() is None


class TestSessionController:
    """Tests for SessionController."""

    def _controller(self, rgb_frames, **kwargs) -> SessionController:
        return SessionController(
            _settings(),
            capture_factory=lambda: ScriptedCapture(rgb_frames, repeat=True),
            codec_factory=RawCodec,
            **kwargs,
        )

    def test_initial_state(self):
        controller = SessionController()
        assert not controller.any_running
        assert controller.error is None
        assert controller.status_message == "Select a mode to start."
        assert controller.last_outcome(Direction.CASTER) is None

    def test_one_caster_at_a_time(self, rgb_frames, free_port):
        """Test a second caster start is refused while one runs."""
        controller = self._controller(rgb_frames)
        address = f"127.0.0.1:{free_port}"

        assert controller.start_caster(address)
        assert controller.caster_running
        assert not controller.start_caster(address)

        controller.stop_caster()
        assert controller.join(timeout=10)
        assert controller.last_outcome(Direction.CASTER) == SessionOutcome.STOPPED
        assert controller.error is None

    def test_restart_after_stop(self, rgb_frames, free_port):
        """Test a stopped session can be started again with a fresh token."""
        controller = self._controller(rgb_frames)
        address = f"127.0.0.1:{free_port}"

        for _ in range(2):
            assert controller.start_caster(address)
            controller.stop()
            assert controller.join(timeout=10)
            assert controller.last_outcome(Direction.CASTER) == SessionOutcome.STOPPED

    def test_receiver_error_is_reported(self, free_port):
        """Test a failed connection lands in the error slot."""
        finished = []
        done = threading.Event()

        def on_finished(direction, outcome, error):
            finished.append((direction, outcome, error))
            done.set()

        controller = SessionController(
            _settings(),
            display_factory=RecordingDisplay,
            codec_factory=RawCodec,
            on_finished=on_finished,
        )

        assert controller.start_receiver(f"127.0.0.1:{free_port}")
        assert done.wait(timeout=10)
        assert controller.join(timeout=10)

        assert controller.error.startswith("Receiver error: Could not connect")
        assert controller.last_outcome(Direction.RECEIVER) is None
        assert finished == [(Direction.RECEIVER, None, controller.error)]
        assert "error" in controller.status_message

    def test_start_clears_previous_error(self, rgb_frames, free_port):
        controller = self._controller(rgb_frames, display_factory=RecordingDisplay)
        controller.start_receiver(f"127.0.0.1:{free_port}")
        controller.join(timeout=10)
        assert controller.error is not None

        controller.start_caster(f"127.0.0.1:{free_port}")
        assert controller.error is None
        controller.stop()
        controller.join(timeout=10)

    def test_caster_and_receiver_together(self, rgb_frames, free_port):
        """Test one controller can run both halves against each other."""
        display = RecordingDisplay()
        controller = self._controller(rgb_frames, display_factory=lambda: display)
        address = f"127.0.0.1:{free_port}"

        assert controller.start_caster(address)
        # Give the caster time to start listening
        time.sleep(0.3)
        assert controller.start_receiver(address)

        assert _wait_until(lambda: len(display.presented) >= 3)
        assert display.presented[:3] == rgb_frames
        assert display.opened == [(2, 2)]

        controller.stop_receiver()
        assert _wait_until(lambda: not controller.receiver_running)
        assert controller.last_outcome(Direction.RECEIVER) == SessionOutcome.STOPPED
        assert display.closed

        controller.stop_caster()
        assert controller.join(timeout=10)
        assert not controller.any_running
