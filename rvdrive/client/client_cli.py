"""
Client CLI parsing and argument validation policies.

This module contains only argument parsing, log-level flag resolution and
display-size parsing for the rvdrive client runtime.
"""

from __future__ import annotations

import argparse

from rvdrive import __version__

__all__ = ["arguments_parse", "displaySize_parse", "logLevelOverride_get"]


def arguments_parse(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse client command-line arguments.

    Args:
        argv:
            Argument list; `sys.argv[1:]` when None.

    Returns:
        Parsed client CLI namespace.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="rvdrive",
        description="rvdrive - drive a remotely rendered browser session from a local viewport",
    )

    parser.add_argument("--version", action="version", version=f"rvdrive {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config file (default: search standard locations)",
    )
    parser.add_argument(
        "--backend-url",
        type=str,
        default=None,
        dest="backend_url",
        help="Backend URL including the API prefix (overrides config, e.g., https://host/api)",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="Page to open once the session is live",
    )
    parser.add_argument(
        "--events",
        type=str,
        default=None,
        help="JSON-lines event script to replay into the viewport ('-' reads stdin)",
    )
    parser.add_argument(
        "--frames-dir",
        type=str,
        default=None,
        dest="frames_dir",
        help="Directory receiving every displayed frame",
    )
    parser.add_argument(
        "--display-size",
        type=str,
        default=None,
        dest="display_size",
        metavar="WIDTHxHEIGHT",
        help="Local viewport size in pixels (overrides config, e.g., 640x360)",
    )
    parser.add_argument(
        "--poll-interval-ms",
        type=int,
        default=None,
        dest="poll_interval_ms",
        help="Frame polling interval while push delivery is down (overrides config)",
    )
    parser.add_argument(
        "--suggest",
        type=str,
        default=None,
        help="Print address-bar suggestions for a partial query and exit",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to keep the session open after the script (default: until Ctrl+C)",
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging (overrides config)")
    parser.add_argument("--info", action="store_true", help="Enable info logging (overrides config)")
    parser.add_argument(
        "--warning", action="store_true", help="Enable warning logging (overrides config)"
    )
    parser.add_argument("--error", action="store_true", help="Enable error logging (overrides config)")

    return parser.parse_args(argv)


def logLevelOverride_get(args: argparse.Namespace) -> str | None:
    """
    Resolve explicit log level override flags.

    The most restrictive flag wins when several are given.

    Args:
        args: Parsed CLI args.

    Returns:
        Selected log level or None.
    """
    if args.error:
        return "ERROR"
    if args.warning:
        return "WARNING"
    if args.info:
        return "INFO"
    if args.debug:
        return "DEBUG"
    return None


def displaySize_parse(value: str) -> tuple[int, int]:
    """
    Parse a `WIDTHxHEIGHT` display size.

    Args:
        value:
            Size string such as `640x360`.

    Returns:
        Tuple of `(width, height)`.

    Raises:
        ValueError:
            Raised when the format is invalid or a dimension is not positive.
    """
    if "x" not in value.lower():
        raise ValueError("Display size must be in format WIDTHxHEIGHT")

    width_str: str
    height_str: str
    width_str, height_str = value.lower().split("x", 1)
    try:
        width: int = int(width_str)
        height: int = int(height_str)
    except ValueError as exc:
        raise ValueError(f"Invalid display size: {value}") from exc
    if width <= 0 or height <= 0:
        raise ValueError(f"Display size must be positive: {value}")

    return width, height
