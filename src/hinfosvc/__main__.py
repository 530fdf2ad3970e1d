"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    hinfosvc 8080
    python -m hinfosvc 8080 --host 127.0.0.1 --log-format json

The port is the only required argument. Everything else falls back to the
HINFOSVC_* environment variables and then to the ServerConfig defaults.
A missing or invalid port is a usage error: the process exits non-zero
before any socket is opened.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import InfoServer


def port_number(value: str) -> int:
    """argparse type for a TCP port in [0, 65535]."""
    try:
        port = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}")

    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 0 and 65535, got {port}")
    return port


def positive_int(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")

    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hinfosvc",
        description="HTTP service reporting host name, CPU model and CPU load",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Endpoints:
  GET /hostname    host name of this machine
  GET /cpu-name    CPU model name
  GET /load        CPU utilisation over one second, e.g. "37%"

Examples:
  hinfosvc 8080                          # all interfaces, port 8080
  hinfosvc 8080 --host 127.0.0.1         # local only
  hinfosvc 0                             # any free port
  hinfosvc 8080 --error-responses        # answer failures with 4xx/5xx
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "port",
        type=port_number,
        help="TCP port to listen on (0-65535)",
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Address to bind to (default: 0.0.0.0, all interfaces)",
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Seconds a client has to send its request (default: 30)",
    )

    parser.add_argument(
        "--max-request-size",
        type=positive_int,
        default=None,
        help="Requests of this many bytes or more are refused (default: 8096)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=positive_int,
        default=None,
        help="Maximum worker threads (default: 16)",
    )

    parser.add_argument(
        "--error-responses",
        action="store_true",
        default=None,
        help="Answer failed requests with an error status instead of closing silently",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"hinfosvc {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then every flag the user actually passed."""
    overrides = {"port": args.port}

    if args.host is not None:
        overrides["host"] = args.host
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.max_request_size is not None:
        overrides["max_request_size"] = args.max_request_size
    if args.workers is not None:
        overrides["max_workers"] = args.workers
        overrides["min_workers"] = min(ServerConfig.min_workers, args.workers)
    if args.error_responses is not None:
        overrides["error_responses"] = args.error_responses
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if args.log_format is not None:
        overrides["log_format"] = args.log_format

    return ServerConfig.from_env(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    try:
        server = InfoServer(config)
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
