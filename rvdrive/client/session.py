"""
Viewport session orchestration.

A `ViewportSession` wires one viewport's components together: it creates the
remote session, attaches the connection manager, translates and dispatches
local events, and drives the renderer's navigation state. All mutable state
belongs to the session instance.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

import aiohttp

from rvdrive.client.api import ApiError, BrowserApiClient, wsBaseUrl_get
from rvdrive.client.client_dispatch import CommandDispatcher
from rvdrive.client.connection_manager import ConnectionManager, ConnectionStatus
from rvdrive.client.network import PushChannel, PushChannelFactory, WebSocketPushChannel
from rvdrive.client.renderer import FrameRenderer
from rvdrive.common.config import Config
from rvdrive.common.types import FrameSource, Screen, ViewportEvent, ViewportFrame
from rvdrive.protocol.commands import Command, NavigateCommand, Suppressed
from rvdrive.protocol.message import MessageParser
from rvdrive.viewport.input_translator import InputEventTranslator, TranslationResult
from rvdrive.viewport.state import ViewportState

logger = logging.getLogger(__name__)

__all__ = ["ViewportSession", "sessionFromConfig_create"]

_BACKEND_ERRORS = (ApiError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class ViewportSession:
    """One remote browser session driven through one local viewport."""

    def __init__(
        self,
        api: BrowserApiClient,
        channel_factory: PushChannelFactory | None = None,
        display_size: Screen | None = None,
        poll_interval: float = 1.0,
        reconnect_enabled: bool = True,
        reconnect_delay: float = 1.0,
        reconnect_max_delay: float = 15.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Build the viewport's components.

        Args:
            api:
                Backend REST client.
            channel_factory:
                Push channel builder; websocket channel on the API host by default.
            display_size:
                Initial local display size, if already measured.
            poll_interval:
                Seconds between frame pulls while degraded.
            reconnect_enabled:
                Whether the push channel is retried.
            reconnect_delay:
                First reconnect delay in seconds.
            reconnect_max_delay:
                Reconnect delay ceiling in seconds.
            clock:
                Optional monotonic clock for click classification.
        """
        self.api: BrowserApiClient = api
        self.session_id: str | None = None

        self.state: ViewportState = ViewportState(display_size=display_size)
        self.translator: InputEventTranslator = InputEventTranslator(
            self.state, clock=clock or time.monotonic
        )

        self.connection: ConnectionManager = ConnectionManager(
            channel_factory=channel_factory or self._websocketChannel_create,
            frame_fetcher=api,
            frame_handler=self.frame_handle,
            poll_interval=poll_interval,
            reconnect_enabled=reconnect_enabled,
            reconnect_delay=reconnect_delay,
            reconnect_max_delay=reconnect_max_delay,
        )
        self.renderer: FrameRenderer = FrameRenderer(
            viewport_state=self.state,
            connection_status_get=self.connection.connectionStatus_get,
        )
        self.dispatcher: CommandDispatcher = CommandDispatcher(
            sender=api,
            session_id_get=lambda: self.session_id,
            error_sink=self._commandError_record,
        )

    def _websocketChannel_create(self, session_id: str) -> PushChannel:
        """Default push channel: websocket on the backend host."""
        return WebSocketPushChannel(
            ws_base_url=wsBaseUrl_get(self.api.base_url),
            session_id=session_id,
            active_tab=lambda: self.renderer.active_tab,
        )

    # Lifecycle

    async def session_start(self) -> str:
        """
        Create the remote session and start frame acquisition.

        A session this viewport already holds is stopped first.

        Returns:
            Remote session id.

        Raises:
            ApiError:
                Raised when the backend refuses to create a session.
        """
        if self.session_id is not None:
            await self.session_stop()
        reply: dict[str, Any] = await self.api.session_create()
        session_id = reply.get("session_id") or reply.get("id")
        if not session_id:
            raise ApiError("Session reply has no session_id")
        self.session_id = str(session_id)
        tab_id = reply.get("tab_id") or reply.get("active_tab_id")
        self.renderer.activeTab_set(tab_id)
        await self.connection.session_attach(self.session_id, tab_id=tab_id)
        logger.info("Session %s started", self.session_id)
        return self.session_id

    async def session_stop(self) -> None:
        """
        Tear the session down: stop acquisition, then close it remotely.

        Remote close failures are logged; teardown always completes locally.
        """
        await self.connection.session_detach()
        session_id: str | None = self.session_id
        self.session_id = None
        self.state.reset()
        if session_id is None:
            return
        try:
            await self.api.session_close(session_id)
            logger.info("Session %s closed", session_id)
        except _BACKEND_ERRORS as exc:
            logger.warning("Failed to close session %s: %s", session_id, exc)

    def connectionStatus_get(self) -> ConnectionStatus:
        """Current connectivity for display."""
        return self.connection.connectionStatus_get()

    # Input

    def displaySize_update(self, width: float, height: float) -> None:
        """Replace the local display size after a resize."""
        self.state.displaySize_update(width, height)

    async def event_handle(self, event: ViewportEvent) -> TranslationResult:
        """
        Translate one local event and dispatch its command.

        Args:
            event:
                Raw local event.

        Returns:
            Translation result; the host cancels its default handling when
            `defaultPrevented_check(result)` is true.
        """
        result: TranslationResult = self.translator.event_translate(event)
        if not isinstance(result, Suppressed):
            if await self.dispatcher.command_dispatch(result):
                self.renderer.interactionError_set(None)
        return result

    def _commandError_record(self, command: Command, message: str) -> None:
        """Show a rejected command as an interaction error."""
        self.renderer.interactionError_set(f"{command.command_type.value} failed: {message}")

    # Frames

    def frame_handle(self, frame: ViewportFrame) -> None:
        """Connection manager callback for every acquired frame."""
        self.renderer.frame_accept(frame)

    # Navigation and tabs

    async def navigate(self, url: str) -> bool:
        """
        Navigate the active tab.

        Args:
            url:
                Target URL.

        Returns:
            `True` when the backend accepted the navigation.
        """
        command = NavigateCommand(url=url, tab_id=self.renderer.active_tab)
        return await self._pageAction_run(url, self.api.command_send, command)

    async def back(self) -> bool:
        """Go back in the active tab."""
        return await self._pageAction_run(None, self.api.back, self.renderer.active_tab)

    async def forward(self) -> bool:
        """Go forward in the active tab."""
        return await self._pageAction_run(None, self.api.forward, self.renderer.active_tab)

    async def refresh(self) -> bool:
        """Reload the active tab."""
        return await self._pageAction_run(None, self.api.refresh, self.renderer.active_tab)

    async def _pageAction_run(self, url: str | None, call, argument) -> bool:
        """Run a page-level call with loading/error bookkeeping."""
        if self.session_id is None:
            self.renderer.loading_end(error="No browser session")
            return False
        self.renderer.loading_begin(url)
        try:
            reply = await call(self.session_id, argument)
        except _BACKEND_ERRORS as exc:
            logger.warning("Page action failed: %s", exc)
            self.renderer.loading_end(error=str(exc))
            return False
        self.renderer.loading_end()
        if isinstance(reply, dict):
            self._pageReply_apply(reply)
        return True

    def _pageReply_apply(self, reply: dict[str, Any]) -> None:
        """Take the final URL and any inline screenshot from a page reply."""
        if reply.get("url"):
            self.renderer.url = str(reply["url"])
        data = reply.get("screenshot")
        if not data or self.session_id is None:
            return
        try:
            image: bytes = MessageParser.imageData_decode(data)
        except ValueError as exc:
            logger.debug("Ignoring inline screenshot: %s", exc)
            return
        self.renderer.frame_accept(
            ViewportFrame(
                image=image,
                session_id=self.session_id,
                tab_id=reply.get("tab_id", self.renderer.active_tab),
                url=reply.get("url"),
                source=FrameSource.POLL,
            )
        )

    async def tab_create(self, url: str | None = None) -> str | None:
        """
        Open a tab and make it active.

        Returns:
            New tab id, or None on failure.
        """
        if self.session_id is None:
            return None
        try:
            reply = await self.api.tab_create(self.session_id, url=url, make_active=True)
        except _BACKEND_ERRORS as exc:
            logger.warning("Failed to create tab: %s", exc)
            self.renderer.interactionError_set(str(exc))
            return None
        tab_id = reply.get("tab_id") or reply.get("id")
        if tab_id:
            self._activeTab_switch(str(tab_id))
            self.renderer.url = url
        return tab_id

    async def tab_activate(self, tab_id: str) -> bool:
        """Switch rendering and polling to another tab."""
        if self.session_id is None:
            return False
        try:
            await self.api.tab_activate(self.session_id, tab_id)
        except _BACKEND_ERRORS as exc:
            logger.warning("Failed to activate tab %s: %s", tab_id, exc)
            self.renderer.interactionError_set(str(exc))
            return False
        self._activeTab_switch(tab_id)
        return True

    async def tab_close(self, tab_id: str) -> bool:
        """Close a tab and forget its frame."""
        if self.session_id is None:
            return False
        try:
            reply = await self.api.tab_close(self.session_id, tab_id)
        except _BACKEND_ERRORS as exc:
            logger.warning("Failed to close tab %s: %s", tab_id, exc)
            self.renderer.interactionError_set(str(exc))
            return False
        self.renderer.tab_forget(tab_id)
        if tab_id == self.renderer.active_tab:
            next_tab = reply.get("active_tab_id") if isinstance(reply, dict) else None
            self._activeTab_switch(next_tab)
        return True

    def _activeTab_switch(self, tab_id: str | None) -> None:
        """Point renderer and poller at a tab."""
        self.renderer.activeTab_set(tab_id)
        self.connection.activeTab_set(tab_id)


def sessionFromConfig_create(config: Config, api: BrowserApiClient) -> ViewportSession:
    """
    Build a session from loaded configuration.

    Args:
        config:
            Loaded configuration.
        api:
            Backend REST client.

    Returns:
        Unstarted viewport session.
    """
    return ViewportSession(
        api=api,
        display_size=Screen(
            width=config.viewport.display_width,
            height=config.viewport.display_height,
        ),
        poll_interval=config.connection.poll_interval_ms / 1000.0,
        reconnect_enabled=config.connection.reconnect.enabled,
        reconnect_delay=config.connection.reconnect.delay_seconds,
        reconnect_max_delay=config.connection.reconnect.max_delay_seconds,
    )
