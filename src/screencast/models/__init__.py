"""
Data Models
===========

Models shared between the transport, the capture layer and the controller.

Models:
    - CaptureRegion: Validated screen rectangle to capture
    - SessionOutcome: Enum of clean session terminations
"""

from screencast.models.outcome import SessionOutcome
from screencast.models.region import CaptureRegion

__all__ = [
    "CaptureRegion",
    "SessionOutcome",
]
