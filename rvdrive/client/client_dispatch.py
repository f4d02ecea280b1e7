"""
Outbound command dispatch policy.

This module sends translated commands to the remote backend. A rejected or
failed command is logged and reported to an error sink for display; it is
never raised into the input path, so translation of later events continues.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

import aiohttp

from rvdrive.client.api import ApiError
from rvdrive.protocol.commands import Command, CommandType

logger = logging.getLogger(__name__)

__all__ = ["CommandDispatcher", "CommandSender"]

ErrorSink = Callable[[Command, str], None]


class CommandSender(Protocol):
    """Minimal backend contract for command dispatch."""

    async def command_send(self, session_id: str, command: Command) -> Any:
        """Send one command for a session."""
        ...


class CommandDispatcher:
    """Sends commands for the current session and absorbs rejections."""

    def __init__(
        self,
        sender: CommandSender,
        session_id_get: Callable[[], str | None],
        error_sink: ErrorSink | None = None,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            sender:
                Backend client.
            session_id_get:
                Returns the current session id, or None without a session.
            error_sink:
                Receives the failed command and an error message.
        """
        self._sender: CommandSender = sender
        self._session_id_get: Callable[[], str | None] = session_id_get
        self._error_sink: ErrorSink | None = error_sink
        self.sent_count: int = 0
        self.failed_count: int = 0

    async def command_dispatch(self, command: Command) -> bool:
        """
        Send one command.

        Args:
            command:
                Translated outbound command.

        Returns:
            `True` when the backend accepted the command.
        """
        session_id: str | None = self._session_id_get()
        if session_id is None:
            logger.debug("No session; dropping %s", command.command_type.value)
            return False

        try:
            await self._sender.command_send(session_id, command)
        except ApiError as exc:
            self.commandFailure_report(command, str(exc))
            return False
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            self.commandFailure_report(command, f"Backend unreachable: {exc}")
            return False

        self.sent_count += 1
        if command.command_type == CommandType.MOVE:
            logger.debug("Sent %s", command)
        else:
            logger.info("Sent %s", command)
        return True

    def commandFailure_report(self, command: Command, message: str) -> None:
        """
        Log and report a failed command.

        Args:
            command:
                Command that failed.
            message:
                Failure description.
        """
        self.failed_count += 1
        logger.warning("%s command rejected: %s", command.command_type.value, message)
        if self._error_sink is not None:
            self._error_sink(command, message)
