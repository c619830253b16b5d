"""Command-line entrypoint for the backgammon engine.

    backgammon --version
    backgammon serve --host localhost --port 8002 --format 7
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from backgammon import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="backgammon",
        description="Backgammon rules engine",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"backgammon-engine {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the JSON web API")
    serve.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Host to bind to (default: localhost)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8002,
        help="Port to bind to (default: 8002)",
    )
    serve.add_argument(
        "--format",
        dest="match_format",
        type=int,
        default=7,
        help="Match format, an odd best-of-N (default: 7)",
    )
    serve.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write game and match results as JSONL to this directory",
    )
    serve.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the dice",
    )
    serve.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint used by the `backgammon` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "serve":
        parser.print_help()
        return 0

    if args.match_format < 1 or args.match_format % 2 == 0:
        parser.error(f"--format must be a positive odd number, got {args.match_format}")

    from backgammon.web.server import ServerConfig, serve

    serve(ServerConfig(
        host=args.host,
        port=args.port,
        match_format=args.match_format,
        debug=args.debug,
        log_dir=args.log_dir,
        seed=args.seed,
    ))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
