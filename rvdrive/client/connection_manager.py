"""
Frame acquisition lifecycle: live push with polling fallback.

The manager owns the ConnectionState of one viewport. While a session is
attached there is always one acquisition strategy running: frames arrive over
the push channel in LIVE_PUSH, or a polling task pulls them in
DEGRADED_POLLING while a supervisor task retries the push channel with
exponential backoff. Detaching cancels and awaits every task it started.

State transitions:
    DISCONNECTED      -> LIVE_PUSH          push channel opened after attach
    DISCONNECTED      -> DEGRADED_POLLING   push channel failed to open
    LIVE_PUSH         -> DEGRADED_POLLING   channel closed/errored, or backend
                                            reported push not viable
    DEGRADED_POLLING  -> LIVE_PUSH          reconnect succeeded
    any               -> DISCONNECTED       explicit detach
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

import aiohttp

from rvdrive.client.api import ApiError
from rvdrive.client.network import PushChannel, PushChannelError, PushChannelFactory, PushEvent
from rvdrive.common.settings import settings
from rvdrive.common.types import ConnectionState, ViewportFrame

logger = logging.getLogger(__name__)

__all__ = ["ConnectionManager", "ConnectionStatus", "FrameFetcher"]

FrameHandler = Callable[[ViewportFrame], None]
StateListener = Callable[["ConnectionStatus"], None]


class FrameFetcher(Protocol):
    """Pull source used while push delivery is degraded."""

    async def screenshot_get(self, session_id: str, tab_id: str | None = None) -> ViewportFrame:
        """Fetch the latest frame of a tab."""
        ...


@dataclass(frozen=True)
class ConnectionStatus:
    """Read-only snapshot of the manager's state for the UI."""

    state: ConnectionState
    session_id: str | None = None
    last_error: str | None = None

    @property
    def push_live(self) -> bool:
        """True while frames arrive over the push channel."""
        return self.state == ConnectionState.LIVE_PUSH


class ConnectionManager:
    """Owns push/poll frame acquisition for one viewport."""

    def __init__(
        self,
        channel_factory: PushChannelFactory,
        frame_fetcher: FrameFetcher,
        frame_handler: FrameHandler,
        poll_interval: float = 1.0,
        reconnect_enabled: bool = True,
        reconnect_delay: float = 1.0,
        reconnect_max_delay: float = 15.0,
        backoff_factor: float = settings.RECONNECT_BACKOFF_FACTOR,
    ) -> None:
        """
        Initialize manager in DISCONNECTED state.

        Args:
            channel_factory:
                Builds a push channel for a session id.
            frame_fetcher:
                Pull source for degraded mode.
            frame_handler:
                Receives every frame, pushed or polled.
            poll_interval:
                Seconds between pulls while degraded.
            reconnect_enabled:
                Whether the push channel is retried after loss.
            reconnect_delay:
                First retry delay in seconds.
            reconnect_max_delay:
                Retry delay ceiling in seconds.
            backoff_factor:
                Delay multiplier after each failed attempt.
        """
        if poll_interval <= 0 or reconnect_delay <= 0:
            raise ValueError("poll_interval and reconnect_delay must be positive")
        self._channel_factory: PushChannelFactory = channel_factory
        self._frame_fetcher: FrameFetcher = frame_fetcher
        self._frame_handler: FrameHandler = frame_handler
        self.poll_interval: float = poll_interval
        self.reconnect_enabled: bool = reconnect_enabled
        self.reconnect_delay: float = reconnect_delay
        self.reconnect_max_delay: float = max(reconnect_max_delay, reconnect_delay)
        self.backoff_factor: float = backoff_factor

        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self.session_id: str | None = None
        self.tab_id: str | None = None
        self.last_error: str | None = None

        self._listeners: list[StateListener] = []
        self._channel: PushChannel | None = None
        self._supervisor_task: asyncio.Task | None = None
        self._poll_task: asyncio.Task | None = None

    # Public surface

    def listener_add(self, listener: StateListener) -> None:
        """
        Subscribe to state changes.

        Args:
            listener:
                Called with a status snapshot after each transition.
        """
        self._listeners.append(listener)

    def connectionStatus_get(self) -> ConnectionStatus:
        """
        Snapshot current connection status.

        Returns:
            Immutable status for display.
        """
        return ConnectionStatus(
            state=self.state,
            session_id=self.session_id,
            last_error=self.last_error,
        )

    def activeTab_set(self, tab_id: str | None) -> None:
        """
        Select the tab polled while degraded.

        Args:
            tab_id:
                Active tab, or None for the backend's active tab.
        """
        self.tab_id = tab_id

    async def session_attach(self, session_id: str, tab_id: str | None = None) -> None:
        """
        Start frame acquisition for a session.

        Any previously attached session is detached first.

        Args:
            session_id:
                Remote session id.
            tab_id:
                Initially active tab.
        """
        if self.session_id is not None:
            await self.session_detach()
        self.session_id = session_id
        self.tab_id = tab_id
        self.last_error = None
        logger.info("Attaching frame channel for session %s", session_id)
        self._supervisor_task = asyncio.create_task(
            self._supervisor_run(session_id), name=f"rvdrive-push-{session_id}"
        )

    async def session_detach(self) -> None:
        """
        Stop all acquisition for the current session.

        Cancels and awaits reconnect and polling tasks, closes the channel and
        moves to DISCONNECTED. Idempotent.
        """
        tasks: list[asyncio.Task] = [
            task for task in (self._supervisor_task, self._poll_task) if task is not None
        ]
        self._supervisor_task = None
        self._poll_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        channel: PushChannel | None = self._channel
        self._channel = None
        if channel is not None:
            await channel.close()

        previous_session: str | None = self.session_id
        self.session_id = None
        self.tab_id = None
        self._state_set(ConnectionState.DISCONNECTED)
        if previous_session is not None:
            logger.info("Frame channel detached for session %s", previous_session)

    # Push supervision

    async def _supervisor_run(self, session_id: str) -> None:
        """Open the push channel, consume it, and retry with backoff after loss."""
        delay: float = self.reconnect_delay
        while True:
            channel: PushChannel = self._channel_factory(session_id)
            opened: bool = False
            try:
                await channel.open()
                opened = True
            except PushChannelError as exc:
                logger.warning("Push channel unavailable: %s", exc)
            except Exception:
                logger.exception("Push channel failed to open")
            if not opened:
                await channel.close()
                self._degrade()
                if not self.reconnect_enabled:
                    logger.warning("Reconnect disabled; staying on polling")
                    return
                logger.info("Retrying push channel in %.1fs", delay)
                await asyncio.sleep(delay)
                delay = min(delay * self.backoff_factor, self.reconnect_max_delay)
                continue

            self._channel = channel
            await self._poll_stop()
            self._state_set(ConnectionState.LIVE_PUSH)
            delay = self.reconnect_delay
            try:
                await self._push_consume(channel)
            except PushChannelError as exc:
                logger.warning("Push delivery lost: %s", exc)
            except Exception:
                logger.exception("Push delivery failed")
            finally:
                self._channel = None
                await channel.close()

            self._degrade()
            if not self.reconnect_enabled:
                logger.warning("Reconnect disabled; staying on polling")
                return
            logger.info("Reconnecting push channel in %.1fs", delay)
            await asyncio.sleep(delay)

    async def _push_consume(self, channel: PushChannel) -> None:
        """
        Deliver pushed frames until the channel ends.

        Raises:
            PushChannelError:
                Raised on loss, or when the backend reports push not viable.
        """
        async for event in channel.events_receive():
            self._pushEvent_handle(event)

    def _pushEvent_handle(self, event: PushEvent) -> None:
        """Route one push delivery."""
        if event.frame is not None:
            self._frame_deliver(event.frame)
            return
        if event.error is not None:
            logger.warning("Backend reported: %s", event.error)
            self.last_error = event.error
            return
        if not event.push_viable:
            raise PushChannelError("Backend reported push delivery not viable")

    # Polling

    def _degrade(self) -> None:
        """Enter DEGRADED_POLLING and make sure the poll task runs."""
        if self.session_id is None:
            return
        self._state_set(ConnectionState.DEGRADED_POLLING)
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(
                self._poll_run(self.session_id), name=f"rvdrive-poll-{self.session_id}"
            )

    async def _poll_stop(self) -> None:
        """Cancel and await the poll task, if any."""
        task: asyncio.Task | None = self._poll_task
        self._poll_task = None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _poll_run(self, session_id: str) -> None:
        """Pull a frame now and then every poll interval."""
        logger.info("Polling frames every %.2fs", self.poll_interval)
        while True:
            try:
                frame: ViewportFrame = await self._frame_fetcher.screenshot_get(
                    session_id, self.tab_id
                )
            except (ApiError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                logger.warning("Frame poll failed: %s", exc)
            except Exception:
                logger.exception("Frame poll failed")
            else:
                self._frame_deliver(frame)
            await asyncio.sleep(self.poll_interval)

    # Helpers

    def _frame_deliver(self, frame: ViewportFrame) -> None:
        """Hand a frame of the attached session to the frame handler."""
        if frame.session_id != self.session_id:
            logger.debug("Dropping frame of stale session %s", frame.session_id)
            return
        try:
            self._frame_handler(frame)
        except Exception:
            logger.exception("Frame handler failed")

    def _state_set(self, state: ConnectionState) -> None:
        """Record a transition and notify listeners."""
        if state == self.state:
            return
        logger.info("[CONNECTION] %s -> %s", self.state.value, state.value)
        self.state = state
        status: ConnectionStatus = self.connectionStatus_get()
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Connection listener failed")
