"""
Display Module
==============

Frame presentation for the receiver:
    - DisplaySink: Protocol every display backend implements
    - OpenCVWindowSink: OpenCV window, opened lazily at the first frame's size
"""

from screencast.display.sink import DisplaySink, OpenCVWindowSink


__all__ = [
    "DisplaySink",
    "OpenCVWindowSink",
]
