"""
Screencast Configuration
========================

This module handles configuration loading for the caster and the receiver.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. screencast.yaml / config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SCREENCAST_ADDRESS             -> network.address
    SCREENCAST_CONNECT_TIMEOUT     -> network.connect_timeout_seconds
    SCREENCAST_RETRY_DELAY_MS      -> transport.retry_delay_ms
    SCREENCAST_MAX_CAPTURE_RETRIES -> transport.max_capture_retries
    SCREENCAST_CODEC               -> codec.format
    SCREENCAST_JPEG_QUALITY        -> codec.jpeg_quality
    SCREENCAST_MONITOR             -> capture.monitor
    SCREENCAST_WINDOW_TITLE        -> display.window_title
    SCREENCAST_LOG_LEVEL           -> logging.level

Example:
    from screencast.config import load_config

    settings = load_config()
    host, port = parse_address(settings.network.address)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator

from screencast.constants import (
    DEFAULT_ADDRESS,
    DEFAULT_MAX_CAPTURE_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    MAX_FRAME_SIZE,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class NetworkConfig(BaseModel):
    """Connection configuration."""

    address: str = Field(
        default=DEFAULT_ADDRESS,
        description="host:port the caster listens on and the receiver connects to",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Receiver connect timeout",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Ensure address parses as host:port."""
        parse_address(v)
        return v


class TransportConfig(BaseModel):
    """Frame transport configuration."""

    retry_delay_ms: int = Field(
        default=DEFAULT_RETRY_DELAY_MS,
        ge=1,
        description="Delay before retrying a transient capture or read condition",
    )
    max_capture_retries: int = Field(
        default=DEFAULT_MAX_CAPTURE_RETRIES,
        ge=1,
        description="Consecutive transient capture failures before giving up",
    )
    max_frame_size: int = Field(
        default=MAX_FRAME_SIZE,
        ge=1,
        le=MAX_FRAME_SIZE,
        description="Maximum encoded frame size in bytes",
    )

    @property
    def retry_delay(self) -> float:
        """Retry delay in seconds."""
        return self.retry_delay_ms / 1000.0


class CodecConfig(BaseModel):
    """Image codec configuration."""

    format: str = Field(
        default="png",
        description="Encoding format: 'png' (lossless) or 'jpeg'",
    )
    jpeg_quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="JPEG quality (ignored for PNG)",
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        v = v.lower()
        if v == "jpg":
            v = "jpeg"
        if v not in ("png", "jpeg"):
            raise ValueError(f"codec format must be 'png' or 'jpeg', got {v!r}")
        return v


class CaptureConfig(BaseModel):
    """Screen capture configuration."""

    monitor: int = Field(
        default=1,
        ge=0,
        description="mss monitor index (0 = all monitors, 1 = primary)",
    )


class DisplayConfig(BaseModel):
    """Receiver window configuration."""

    window_title: str = Field(default="screencast", description="Window title")
    close_keys: List[str] = Field(
        default_factory=lambda: ["q", "esc"],
        description="Keys that close the receiver window",
    )

    @property
    def close_key_codes(self) -> Tuple[int, ...]:
        """close_keys as cv2.waitKey codes."""
        return tuple(27 if k.lower() == "esc" else ord(k[0]) for k in self.close_keys if k)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for screencast.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    codec: CodecConfig = Field(default_factory=CodecConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a "host:port" address.

    Raises:
        ValueError: If the address is malformed or the port is out of range
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Address must be host:port, got {address!r}")
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"Invalid port in address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range in address {address!r}")
    return host.strip("[]"), port


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to a YAML file. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("screencast.yaml"),
            Path("screencast.yml"),
            Path("config.yaml"),
            Path.home() / ".config" / "screencast" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Network settings
    if env_addr := os.environ.get("SCREENCAST_ADDRESS"):
        config_data.setdefault("network", {})["address"] = env_addr
    if env_timeout := os.environ.get("SCREENCAST_CONNECT_TIMEOUT"):
        config_data.setdefault("network", {})["connect_timeout_seconds"] = float(env_timeout)

    # Transport settings
    if env_delay := os.environ.get("SCREENCAST_RETRY_DELAY_MS"):
        config_data.setdefault("transport", {})["retry_delay_ms"] = int(env_delay)
    if env_retries := os.environ.get("SCREENCAST_MAX_CAPTURE_RETRIES"):
        config_data.setdefault("transport", {})["max_capture_retries"] = int(env_retries)

    # Codec settings
    if env_codec := os.environ.get("SCREENCAST_CODEC"):
        config_data.setdefault("codec", {})["format"] = env_codec
    if env_quality := os.environ.get("SCREENCAST_JPEG_QUALITY"):
        config_data.setdefault("codec", {})["jpeg_quality"] = int(env_quality)

    # Capture / display settings
    if env_monitor := os.environ.get("SCREENCAST_MONITOR"):
        config_data.setdefault("capture", {})["monitor"] = int(env_monitor)
    if env_title := os.environ.get("SCREENCAST_WINDOW_TITLE"):
        config_data.setdefault("display", {})["window_title"] = env_title

    # Logging settings
    if env_log := os.environ.get("SCREENCAST_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
