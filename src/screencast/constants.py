"""
Constants
=========

Values shared by the wire protocol and the configuration layer.
"""

# Largest payload either side accepts, in bytes
MAX_FRAME_SIZE = 10_000_000

DEFAULT_ADDRESS = "127.0.0.1:12345"

# Transient capture / read retry interval
DEFAULT_RETRY_DELAY_MS = 100

# Consecutive transient capture failures tolerated before giving up (~5s)
DEFAULT_MAX_CAPTURE_RETRIES = 50
