"""Client bootstrap helpers for config, logging, event scripts, and frame output."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

import yaml

from rvdrive.client.api import BackendUrlError, backendUrl_require
from rvdrive.common.config import Config, ConfigLoader
from rvdrive.common.settings import settings
from rvdrive.common.types import ViewportFrame
from rvdrive.protocol.event_script import ScriptedEvent, scriptLines_parse

logger = logging.getLogger(__name__)

_FRAME_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def configWithSettings_load(args: argparse.Namespace, display_size_parse_func) -> Config:
    """
    Load client config and initialize settings.

    Args:
        args: Parsed CLI args.
        display_size_parse_func: `WIDTHxHEIGHT` parsing callback.

    Returns:
        Loaded config.
    """
    config_path: Path | None = Path(args.config) if args.config else None
    display_width: int | None = None
    display_height: int | None = None
    try:
        if args.display_size:
            display_width, display_height = display_size_parse_func(args.display_size)
        config: Config = ConfigLoader.configWithOverrides_load(
            file_path=config_path,
            backend_url=args.backend_url,
            display_width=display_width,
            display_height=display_height,
            poll_interval_ms=args.poll_interval_ms,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Create a config.yml file or specify path with --config", file=sys.stderr)
        sys.exit(1)
    except (KeyError, TypeError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)
    settings.initialize(config)
    return config


def loggingWithConfig_setup(args: argparse.Namespace, config: Config, logging_setup_func) -> None:
    """
    Setup client logging from config and optional CLI override.

    Args:
        args: Parsed CLI args.
        config: Loaded config.
        logging_setup_func: Logging setup callback.
    """
    log_level: str = getattr(args, "log_level", None) or config.logging.level
    logging_setup_func(log_level, config.logging.format, config.logging.file)


def backendUrlWithConfig_require(config: Config) -> str:
    """
    Validate the configured backend URL before any request is made.

    Args:
        config: Loaded config.

    Returns:
        Normalized backend URL.
    """
    try:
        return backendUrl_require(config.backend.url)
    except BackendUrlError as e:
        logger.error(f"Invalid backend URL: {e}")
        sys.exit(1)


def eventScript_load(source: str, stdin: TextIO | None = None) -> list[ScriptedEvent]:
    """
    Read a whole event script before the session starts.

    Args:
        source: Script path, or `-` for standard input.
        stdin: Stream used for `-`; `sys.stdin` by default.

    Returns:
        Parsed events in script order.
    """
    try:
        if source == "-":
            return list(scriptLines_parse((stdin or sys.stdin).readlines()))
        with open(source, "r") as f:
            return list(scriptLines_parse(f.readlines()))
    except OSError as e:
        logger.error(f"Cannot read event script {source}: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


class FrameDirectoryWriter:
    """Writes each displayed frame as a numbered file plus `latest.<ext>`."""

    def __init__(self, directory: Path) -> None:
        self.directory: Path = directory
        self.directory.mkdir(parents=True, exist_ok=True)
        self.frame_count: int = 0

    def frame_write(self, frame: ViewportFrame) -> Path:
        """
        Persist one frame.

        Args:
            frame: Frame accepted for the active tab.

        Returns:
            Path of the numbered file.
        """
        extension: str = _FRAME_EXTENSIONS.get(frame.mimeType_get(), "bin")
        self.frame_count += 1
        path: Path = self.directory / f"frame_{self.frame_count:06d}.{extension}"
        path.write_bytes(frame.image)
        (self.directory / f"latest.{extension}").write_bytes(frame.image)
        logger.debug(f"Frame {self.frame_count} ({frame.source.value}) -> {path.name}")
        return path
