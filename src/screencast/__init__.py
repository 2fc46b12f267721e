"""
screencast
==========

Stream screen captures from one host (the caster) to another (the receiver)
over a single TCP connection, displaying each frame as it arrives.

Components:
    - stream: Wire framing, codec, and the sender / receiver loops
    - capture: Screen capture (mss)
    - display: Receiver window (OpenCV)
    - session: Controller that runs one caster / receiver session at a time
    - config: YAML + environment configuration

Example:
    from screencast.stream import CancellationToken
    from screencast.stream.sender import start_sender

    token = CancellationToken()
    start_sender("0.0.0.0:12345", token)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
