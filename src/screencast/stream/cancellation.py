"""
Cancellation Token
==================

Cooperative stop flag shared by a controller and exactly one running loop.

The controller and the loop live on different threads, so the flag is
backed by a threading.Event rather than an asyncio.Event. Loops poll
`cancelled` between frames; nothing interrupts an in-progress read or write.
"""

import threading
from typing import Optional


class CancellationToken:
    """
    Thread-safe request to stop a sender or receiver loop.

    Example:
        token = CancellationToken()
        worker = threading.Thread(target=start_receiver, args=(addr, token))
        worker.start()
        ...
        token.cancel()
        worker.join()
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Whether a stop has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request the loop to stop at its next check."""
        self._event.set()

    def reset(self) -> None:
        """Clear a previous stop request."""
        self._event.clear()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout. Returns the cancelled state."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
