"""
Screencast Command Line
=======================

Entry point for running a caster or a receiver from a terminal.

Usage:
    screencast caster --address 0.0.0.0:12345
    screencast caster --address 0.0.0.0:12345 --region 0,0,1280,720
    screencast receiver --address 192.168.1.20:12345

Ctrl+C (SIGINT) or SIGTERM stops the session after the current frame.
Closing the receiver window (or pressing q / ESC in it) ends a receiver
session cleanly.

Exit Codes:
    0 - session ended cleanly
    1 - session ended with an error
    2 - invalid arguments
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from screencast import __version__
from screencast.config import load_config, parse_address, setup_logging
from screencast.models.region import CaptureRegion
from screencast.session.controller import SessionController


logger = logging.getLogger(__name__)


def _region_arg(text: str) -> CaptureRegion:
    try:
        return CaptureRegion.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="screencast",
        description="Stream your screen to another host over TCP",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (DEBUG, INFO, ...)",
    )

    modes = parser.add_subparsers(dest="mode", required=True)

    caster = modes.add_parser("caster", help="Capture this screen and serve it")
    caster.add_argument(
        "--address",
        default=None,
        help="host:port to listen on (default from config)",
    )
    caster.add_argument(
        "--region",
        type=_region_arg,
        default=None,
        help="Capture only this area: x,y,width,height",
    )

    receiver = modes.add_parser("receiver", help="Connect to a caster and show its screen")
    receiver.add_argument(
        "--address",
        default=None,
        help="host:port of the caster (default from config)",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run one session and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_config(args.config)
    if args.log_level:
        settings.logging.level = args.log_level
    setup_logging(settings)

    address = args.address or settings.network.address
    try:
        parse_address(address)
    except ValueError as e:
        parser.error(str(e))

    controller = SessionController(settings)

    def _handle_stop(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, stopping after the current frame...")
        controller.stop()

    signal.signal(signal.SIGINT, _handle_stop)
    signal.signal(signal.SIGTERM, _handle_stop)

    if args.mode == "caster":
        controller.start_caster(address, args.region)
    else:
        controller.start_receiver(address)

    while not controller.join(timeout=0.5):
        pass

    logger.info(controller.status_message)

    if controller.error:
        print(controller.error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
