"""hostcmd - host OS commands for lightweight shell front-ends.

Reads one JSON request per write from a named channel and prints one
plaintext result line per recognised command on stdout.

Usage:
    hostcmd /tmp/hostcmd.pipe          Serve requests from a named pipe
    hostcmd --help                     Show this help message

Environment Variables:
    HOSTCMD_LOG_LEVEL          Logging level (default: INFO)
    HOSTCMD_LOG_PATH           Also log to this rotating file
    HOSTCMD_ESCAPE_MARKUP      Escape notification text (default: true)
    HOSTCMD_REPORT_MALFORMED   Print ERROR: for malformed requests (default: false)
    HOSTCMD_RETRY_DELAY        Seconds to wait before reopening after a cancelled read
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .capabilities import default_capabilities
from .dispatch import Dispatcher, build_registry
from .errors import ChannelError
from .logging_setup import configure_logging
from .server import ServerLoop
from .settings import LOG_LEVELS, normalize_log_level, settings

logger = logging.getLogger(__name__)

EXIT_CHANNEL_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    default_level = normalize_log_level(settings.log_level)
    parser = argparse.ArgumentParser(
        prog="hostcmd",
        description="Serve host OS commands to shell front-ends over a named channel",
        epilog="""
Request format (one per write):
  {"Command": "GetForegroundWindow"}
  {"Command": "ShowNotification", "Arguments": {"SoundOpt": true, "Title": "Hi", "Message": "Done"}}
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "channel",
        help="Path of the channel to read requests from (e.g. a named pipe)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=default_level,
        help=f"Logging level (default: {default_level})",
    )
    parser.add_argument(
        "--report-malformed",
        action="store_true",
        default=settings.report_malformed,
        help="Print an ERROR: line for requests that cannot be decoded",
    )
    parser.add_argument(
        "--no-escape-markup",
        dest="escape_markup",
        action="store_false",
        default=settings.escape_markup,
        help="Embed notification text without escaping it",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the hostcmd helper."""
    args = build_parser().parse_args(argv)

    configure_logging(args.log_level)

    window_query, notifier = default_capabilities(escape_markup=args.escape_markup)
    dispatcher = Dispatcher(build_registry(window_query, notifier))
    loop = ServerLoop.for_channel(
        args.channel,
        dispatcher,
        report_malformed=args.report_malformed,
    )

    logger.info("hostcmd %s serving %s", __version__, args.channel)
    try:
        loop.run()
    except ChannelError as e:
        logger.error("Exiting: %s", e.message)
        return EXIT_CHANNEL_FAILURE
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return EXIT_INTERRUPTED
    return 0


if __name__ == "__main__":
    sys.exit(main())
