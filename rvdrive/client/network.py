"""
Websocket push transport for rvdrive.

This module owns the push channel's open/receive/close lifecycle and decodes
inbound messages. It never decides what to do on failure: every transport
problem surfaces as `PushChannelError` for the connection manager to absorb.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from rvdrive.common.settings import settings
from rvdrive.common.types import FrameSource, ViewportFrame
from rvdrive.protocol.message import Message, MessageParser, MessageType

logger = logging.getLogger(__name__)

__all__ = [
    "PushChannel",
    "PushChannelError",
    "PushChannelFactory",
    "PushEvent",
    "WebSocketPushChannel",
]


class PushChannelError(ConnectionError):
    """Push channel could not be opened, or was lost."""


class PushEvent:
    """One decoded push delivery: a frame, or a viability signal."""

    __slots__ = ("frame", "push_viable", "error")

    def __init__(
        self,
        frame: ViewportFrame | None = None,
        push_viable: bool = True,
        error: str | None = None,
    ) -> None:
        """
        Initialize push event.

        Args:
            frame:
                Decoded frame, for frame messages.
            push_viable:
                Backend's view of push viability, for status messages.
            error:
                Backend-reported error text, for error messages.
        """
        self.frame: ViewportFrame | None = frame
        self.push_viable: bool = push_viable
        self.error: str | None = error


class PushChannel(Protocol):
    """Contract the connection manager needs from a push transport."""

    async def open(self) -> None:
        """Open the channel or raise PushChannelError."""
        ...

    def events_receive(self) -> AsyncIterator[PushEvent]:
        """Iterate deliveries until the channel ends; raises PushChannelError on loss."""
        ...

    async def close(self) -> None:
        """Close the channel. Idempotent."""
        ...


PushChannelFactory = Callable[[str], PushChannel]


class WebSocketPushChannel:
    """Push channel over `{ws_base}/browser/ws/{session_id}`."""

    def __init__(
        self,
        ws_base_url: str,
        session_id: str,
        active_tab: Callable[[], str | None] | None = None,
    ) -> None:
        """
        Initialize websocket channel configuration.

        Args:
            ws_base_url:
                `ws://` or `wss://` base including the API path.
            session_id:
                Remote session whose frames are streamed.
            active_tab:
                Callable giving the tab binary frames belong to.
        """
        self.url: str = f"{ws_base_url.rstrip('/')}/browser/ws/{session_id}"
        self.session_id: str = session_id
        self._active_tab: Callable[[], str | None] = active_tab or (lambda: None)
        self._connection = None

    async def open(self) -> None:
        """
        Open the websocket.

        Raises:
            PushChannelError:
                Raised when the handshake fails.
        """
        try:
            self._connection = await websockets.connect(
                self.url,
                max_size=settings.PUSH_MAX_MESSAGE_BYTES,
                ping_interval=20,
                ping_timeout=20,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            self._connection = None
            raise PushChannelError(f"Push channel to {self.url} failed to open: {exc}") from exc
        logger.info("Push channel open: %s", self.url)

    async def events_receive(self) -> AsyncIterator[PushEvent]:
        """
        Yield decoded deliveries until the socket ends.

        Undecodable messages are logged and skipped; they never end the stream.

        Raises:
            PushChannelError:
                Raised when the socket closes or errors.
        """
        if self._connection is None:
            raise PushChannelError("Push channel is not open")
        try:
            async for raw in self._connection:
                event: PushEvent | None = self.message_decode(raw)
                if event is not None:
                    yield event
        except ConnectionClosed as exc:
            raise PushChannelError(f"Push channel closed: {exc}") from exc
        except (OSError, WebSocketException) as exc:
            raise PushChannelError(f"Push channel error: {exc}") from exc
        raise PushChannelError("Push channel ended")

    def message_decode(self, raw: str | bytes) -> PushEvent | None:
        """
        Decode one raw websocket message.

        Args:
            raw:
                Text (JSON) or binary (encoded image) message.

        Returns:
            Push event, or None for unknown or malformed messages.
        """
        if isinstance(raw, bytes):
            return PushEvent(
                frame=ViewportFrame(
                    image=raw,
                    session_id=self.session_id,
                    tab_id=self._active_tab(),
                    source=FrameSource.PUSH,
                )
            )
        try:
            message: Message = Message.json_deserialize(raw)
            if message.msg_type == MessageType.FRAME:
                return PushEvent(frame=MessageParser.frame_parse(message, self.session_id))
            if message.msg_type == MessageType.STATUS:
                return PushEvent(push_viable=MessageParser.pushViable_parse(message))
            if message.msg_type == MessageType.ERROR:
                return PushEvent(error=str(message.payload.get("message", "unknown error")))
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to parse push message: %s", exc)
            return None
        logger.debug("Ignoring push message: %s", message.payload.get("type"))
        return None

    async def close(self) -> None:
        """Close the websocket. Idempotent."""
        connection = self._connection
        self._connection = None
        if connection is None:
            return
        try:
            await connection.close()
        except (OSError, WebSocketException) as exc:
            logger.debug("Error closing push channel: %s", exc)
        logger.info("Push channel closed")
