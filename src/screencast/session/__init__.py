"""
Session Module
==============

Lifecycle control for streaming sessions:
    - SessionController: one caster and one receiver session at most,
      each on its own thread, with a shared error slot
    - Direction: caster / receiver
    - ErrorSlot: lock-guarded latest error message
"""

from screencast.session.controller import Direction, ErrorSlot, SessionController


__all__ = [
    "Direction",
    "ErrorSlot",
    "SessionController",
]
