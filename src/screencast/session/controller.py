"""
Session Controller
==================

Lifecycle owner for caster and receiver sessions.

The controller is what a user interface drives: it starts at most one
caster session and at most one receiver session at a time, each on its own
thread with its own event loop, and relays how each session ended.

Shared State (all thread-safe):
    - running flag per direction (threading.Event)
    - CancellationToken per session, fresh for every start
    - error slot holding the latest error message (overwritten)

Design Rules:
    - The controller never touches a session's socket or window, it only
      flips the session's token and waits for the thread to finish
    - A session's running flag is cleared only when its thread is done
    - Nothing carries over between sessions except the last outcome

Example:
    controller = SessionController(settings)
    controller.start_receiver("127.0.0.1:12345")
    ...
    controller.stop_receiver()
    controller.join()
    if controller.error:
        print(controller.error)
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from screencast.capture.source import CaptureSource
from screencast.config import Settings
from screencast.display.sink import DisplaySink
from screencast.models.outcome import SessionOutcome
from screencast.models.region import CaptureRegion
from screencast.stream.cancellation import CancellationToken
from screencast.stream.codec import FrameCodec
from screencast.stream.errors import TransportError
from screencast.stream.receiver import start_receiver
from screencast.stream.sender import start_sender


logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """Which half of the transport a session runs."""

    CASTER = "caster"
    RECEIVER = "receiver"


class ErrorSlot:
    """At most one pending error message, guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._message: Optional[str] = None

    def set(self, message: str) -> None:
        with self._lock:
            self._message = message

    def get(self) -> Optional[str]:
        with self._lock:
            return self._message

    def take(self) -> Optional[str]:
        """Return and clear the pending message."""
        with self._lock:
            message, self._message = self._message, None
            return message

    def clear(self) -> None:
        with self._lock:
            self._message = None


class _Session:
    """Per-direction bookkeeping."""

    __slots__ = ("running", "token", "thread", "outcome")

    def __init__(self) -> None:
        self.running = threading.Event()
        self.token = CancellationToken()
        self.thread: Optional[threading.Thread] = None
        self.outcome: Optional[SessionOutcome] = None


FinishedCallback = Callable[[Direction, Optional[SessionOutcome], Optional[str]], None]


class SessionController:
    """
    Starts, stops and reports on caster / receiver sessions.

    Attributes:
        settings: Settings used for every session
        on_finished: Optional callback(direction, outcome, error) invoked on
            the session thread when a session ends (e.g. to repaint a UI)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        capture_factory: Optional[Callable[[], CaptureSource]] = None,
        display_factory: Optional[Callable[[], DisplaySink]] = None,
        codec_factory: Optional[Callable[[], FrameCodec]] = None,
        on_finished: Optional[FinishedCallback] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            settings: Configuration (defaults if None)
            capture_factory: Builds the capture source for each caster session
            display_factory: Builds the display sink for each receiver session
            codec_factory: Builds the codec for each session
            on_finished: Session-end callback
        """
        self.settings = settings or Settings()
        self.on_finished = on_finished

        self._capture_factory = capture_factory
        self._display_factory = display_factory
        self._codec_factory = codec_factory

        self._lock = threading.Lock()
        self._sessions = {
            Direction.CASTER: _Session(),
            Direction.RECEIVER: _Session(),
        }
        self._errors = ErrorSlot()
        self._status = "Select a mode to start."

    # =========================================================================
    # State
    # =========================================================================

    @property
    def caster_running(self) -> bool:
        return self._sessions[Direction.CASTER].running.is_set()

    @property
    def receiver_running(self) -> bool:
        return self._sessions[Direction.RECEIVER].running.is_set()

    @property
    def any_running(self) -> bool:
        return self.caster_running or self.receiver_running

    @property
    def error(self) -> Optional[str]:
        """Latest error message, if any."""
        return self._errors.get()

    @property
    def status_message(self) -> str:
        with self._lock:
            return self._status

    def last_outcome(self, direction: Direction) -> Optional[SessionOutcome]:
        """Outcome of the last session of `direction` that ended cleanly."""
        return self._sessions[direction].outcome

    def clear_error(self) -> None:
        self._errors.clear()

    def _set_status(self, message: str) -> None:
        with self._lock:
            self._status = message

    # =========================================================================
    # Start / Stop
    # =========================================================================

    def start_caster(self, address: str, region: Optional[CaptureRegion] = None) -> bool:
        """
        Start a caster session listening on `address`.

        Returns:
            False if a caster session is already running
        """
        def run(token: CancellationToken) -> SessionOutcome:
            return start_sender(
                address,
                token,
                region,
                capture=self._capture_factory() if self._capture_factory else None,
                codec=self._codec_factory() if self._codec_factory else None,
                settings=self.settings,
            )

        if not self._start(Direction.CASTER, run):
            return False
        self._set_status(f"Starting caster on {address}...")
        return True

    def start_receiver(self, address: str) -> bool:
        """
        Start a receiver session connecting to `address`.

        Returns:
            False if a receiver session is already running
        """
        def run(token: CancellationToken) -> SessionOutcome:
            return start_receiver(
                address,
                token,
                display=self._display_factory() if self._display_factory else None,
                codec=self._codec_factory() if self._codec_factory else None,
                settings=self.settings,
            )

        if not self._start(Direction.RECEIVER, run):
            return False
        self._set_status(f"Connecting to caster at {address}...")
        return True

    def _start(
        self,
        direction: Direction,
        run: Callable[[CancellationToken], SessionOutcome],
    ) -> bool:
        session = self._sessions[direction]

        with self._lock:
            if session.running.is_set():
                logger.warning(f"A {direction.value} session is already running")
                return False
            session.running.set()
            session.token = CancellationToken()
            session.outcome = None

        self._errors.clear()
        session.thread = threading.Thread(
            target=self._run_session,
            args=(direction, session, run),
            name=f"screencast-{direction.value}",
            daemon=True,
        )
        session.thread.start()
        logger.info(f"Started {direction.value} session")
        return True

    def _run_session(
        self,
        direction: Direction,
        session: _Session,
        run: Callable[[CancellationToken], SessionOutcome],
    ) -> None:
        label = direction.value.capitalize()
        outcome: Optional[SessionOutcome] = None
        error: Optional[str] = None

        try:
            outcome = run(session.token)
        except TransportError as e:
            error = f"{label} error: {e}"
            logger.error(error)
        except Exception as e:
            error = f"{label} error: {e}"
            logger.exception(f"Unexpected failure in {direction.value} session")

        if error is not None:
            self._errors.set(error)
            self._set_status(f"{label} stopped with an error.")
        else:
            self._set_status(f"{label} stopped ({outcome.value.lower()}).")
            logger.info(f"{label} session ended: {outcome.value}")

        session.outcome = outcome
        session.running.clear()

        if self.on_finished is not None:
            self.on_finished(direction, outcome, error)

    def stop_caster(self) -> None:
        """Request the caster session to stop after its current frame."""
        self._stop(Direction.CASTER)

    def stop_receiver(self) -> None:
        """Request the receiver session to stop after its current frame."""
        self._stop(Direction.RECEIVER)

    def stop(self) -> None:
        """Request every running session to stop."""
        for direction in Direction:
            self._stop(direction)

    def _stop(self, direction: Direction) -> None:
        session = self._sessions[direction]
        if session.running.is_set():
            logger.info(f"Stopping {direction.value} session...")
            self._set_status(f"Stopping {direction.value}...")
            session.token.cancel()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for running sessions to finish.

        Returns:
            True if no session is running anymore
        """
        for session in self._sessions.values():
            thread = session.thread
            if thread is not None:
                thread.join(timeout)
        return not self.any_running
