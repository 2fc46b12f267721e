"""
Capture Module
==============

Screen capture for the caster:
    - CaptureSource: Protocol every capture backend implements
    - MssCaptureSource: mss-backed capture of a monitor or a region of it
    - CaptureUnavailable: Transient "try again shortly" signal
"""

from screencast.capture.source import CaptureSource, CaptureUnavailable, MssCaptureSource


__all__ = [
    "CaptureSource",
    "CaptureUnavailable",
    "MssCaptureSource",
]
