"""
Session Outcome
===============

Clean, non-error ways a streaming session can end.

Errors are raised as TransportError subclasses instead; a session that
returns normally always returns one of these values.
"""

from enum import Enum


class SessionOutcome(str, Enum):
    """
    Why a session ended without an error.

    Attributes:
        STOPPED: The cancellation token was observed set
        WINDOW_CLOSED: The user closed the receiver's display window
    """

    STOPPED = "STOPPED"
    WINDOW_CLOSED = "WINDOW_CLOSED"
