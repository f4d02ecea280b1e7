"""rvdrive client main entry point"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import aiohttp

from rvdrive.client.api import ApiError, BrowserApiClient
from rvdrive.client.bootstrap import (
    FrameDirectoryWriter,
    backendUrlWithConfig_require,
    configWithSettings_load,
    eventScript_load,
    loggingWithConfig_setup,
)
from rvdrive.client.client_cli import arguments_parse, displaySize_parse, logLevelOverride_get
from rvdrive.client.client_logging import logging_setup
from rvdrive.client.connection_manager import ConnectionStatus
from rvdrive.client.session import ViewportSession, sessionFromConfig_create
from rvdrive.client.suggestions import SuggestionLookup
from rvdrive.common.config import Config
from rvdrive.protocol.commands import Suppressed
from rvdrive.protocol.event_script import ScriptedEvent

logger = logging.getLogger(__name__)


async def eventScript_replay(session: ViewportSession, events: list[ScriptedEvent]) -> None:
    """
    Deliver scripted events to the viewport in order.

    Args:
        session: Started viewport session.
        events: Events with their relative delays.
    """
    for scripted in events:
        if scripted.delay_ms > 0:
            await asyncio.sleep(scripted.delay_ms / 1000.0)
        result = await session.event_handle(scripted.event)
        if isinstance(result, Suppressed):
            logger.debug(f"{scripted.event.event_type.value}: suppressed ({result.reason.value})")
    logger.info(
        f"Event script done: {session.dispatcher.sent_count} sent, "
        f"{session.dispatcher.failed_count} failed"
    )


def connectionStatus_log(status: ConnectionStatus) -> None:
    """Connection listener printing transitions for the operator."""
    if status.push_live:
        logger.info(f"Live frames for session {status.session_id}")
    elif status.session_id is not None:
        logger.warning("WebSocket disconnected - using polling")


async def viewport_run(
    config: Config,
    url: str | None,
    events: list[ScriptedEvent],
    frame_writer: FrameDirectoryWriter | None,
    duration: float | None,
) -> None:
    """
    Run one session: start, navigate, replay events, hold, tear down.

    Args:
        config: Loaded config.
        url: Optional page to open.
        events: Scripted input events.
        frame_writer: Optional frame output.
        duration: Seconds to hold after the script, or None for forever.
    """
    api: BrowserApiClient = BrowserApiClient(
        config.backend.url, timeout_seconds=config.backend.request_timeout_seconds
    )
    session: ViewportSession = sessionFromConfig_create(config, api)
    session.connection.listener_add(connectionStatus_log)
    if frame_writer is not None:
        session.renderer.listener_add(frame_writer.frame_write)

    try:
        await session.session_start()
        if url:
            if not await session.navigate(url):
                logger.error(f"Navigation to {url} failed: {session.renderer.navigation_error}")
        await eventScript_replay(session, events)
        logger.info("Client running. Press Ctrl+C to stop.")
        if duration is not None:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        await session.session_stop()
        await api.close()


async def suggestions_print(config: Config, query: str) -> list[Any]:
    """
    Look up suggestions once through the debounced lookup.

    Args:
        config: Loaded config.
        query: Partial address-bar input.

    Returns:
        Suggestions reported for the query.
    """
    api: BrowserApiClient = BrowserApiClient(
        config.backend.url, timeout_seconds=config.backend.request_timeout_seconds
    )
    done: asyncio.Event = asyncio.Event()
    found: list[Any] = []

    def results_store(_query: str, results: list[Any]) -> None:
        found.extend(results)
        done.set()

    lookup: SuggestionLookup = SuggestionLookup(
        api,
        results_store,
        debounce_seconds=config.suggestions.debounce_ms / 1000.0,
        limit=config.suggestions.limit,
        min_query_length=config.suggestions.min_query_length,
    )
    try:
        lookup.query_update(query)
        await done.wait()
    finally:
        await lookup.close()
        await api.close()
    for entry in found:
        print(json.dumps(entry) if not isinstance(entry, str) else entry)
    return found


def client_run(args: argparse.Namespace) -> None:
    """
    Run the client from parsed arguments.

    Args:
        args: Parsed CLI args.
    """
    config: Config = configWithSettings_load(args, displaySize_parse)
    loggingWithConfig_setup(args, config, logging_setup)
    config.backend.url = backendUrlWithConfig_require(config)

    if args.suggest is not None:
        asyncio.run(suggestions_print(config, args.suggest))
        return

    events: list[ScriptedEvent] = eventScript_load(args.events) if args.events else []
    frame_writer: FrameDirectoryWriter | None = (
        FrameDirectoryWriter(Path(args.frames_dir)) if args.frames_dir else None
    )
    logger.info(f"Backend: {config.backend.url}")
    asyncio.run(viewport_run(config, args.url, events, frame_writer, args.duration))


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the rvdrive command"""
    args: argparse.Namespace = arguments_parse(argv)
    log_level: str | None = logLevelOverride_get(args)
    if log_level is not None:
        setattr(args, "log_level", log_level)

    try:
        client_run(args)
        sys.exit(0)
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except (ApiError, aiohttp.ClientError, OSError) as e:
        logger.error(f"Backend error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
