"""
=============================================================================
TASKSERVER CLI ENTRY POINT
=============================================================================

    python -m taskserver                  # port 8080, all interfaces
    python -m taskserver 9000             # custom port
    python -m taskserver 0                # any free port
    python -m taskserver --error-mode status
    taskserver -H 127.0.0.1 -l DEBUG 9000

Exit codes:
    0   stopped by SIGINT / SIGTERM
    1   could not start (port in use, permission denied, ...)
    2   bad command line (argparse)

=============================================================================
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import ServerConfig, ERROR_MODES


def port_number(value: str) -> int:
    """argparse type: an int in 0-65535."""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range (0-65535): {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskserver",
        description="Multithreaded HTTP server with /status and /task endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m taskserver                   # Listen on 0.0.0.0:8080
  python -m taskserver 3000              # Custom port
  python -m taskserver -H 127.0.0.1      # Localhost only
  python -m taskserver --error-mode status
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "port",
        nargs="?",
        type=port_number,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--error-mode",
        choices=ERROR_MODES,
        default=None,
        help="abort: close failed requests without a response (default); "
             "status: answer 400/405/500"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"taskserver {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Defaults from ServerConfig, overridden by whatever was given."""
    config = ServerConfig()

    if args.port is not None:
        config.port = args.port
    if args.host is not None:
        config.host = args.host
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.error_mode is not None:
        config.error_mode = args.error_mode

    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = create_app(build_config(args))
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
