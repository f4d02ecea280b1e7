"""
Frame presentation model.

The renderer never decodes or draws pixels. It keeps the newest frame of each
tab, reads the connection status and viewport state, and composes a
`RenderView` describing what a host UI should show: the frame or a page
placeholder, plus cursor, loading, error and connectivity overlays.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from rvdrive.client.connection_manager import ConnectionStatus
from rvdrive.common.types import ConnectionState, Position, ViewportFrame
from rvdrive.viewport.state import ViewportState

logger = logging.getLogger(__name__)

__all__ = ["FrameRenderer", "Overlay", "OverlayKind", "PageKind", "RenderView"]

NEW_TAB_URL = "chrome://newtab"
_SESSION_LABEL_CHARS = 8


class PageKind(Enum):
    """Main content of the viewport"""

    NEW_TAB = "new_tab"
    ERROR = "error"
    LOADING = "loading"
    WAITING = "waiting"
    FRAME = "frame"


class OverlayKind(Enum):
    """Decorations drawn over the main content"""

    CURSOR = "cursor"
    LOADING = "loading"
    SESSION = "session"
    CONNECTIVITY = "connectivity"
    RECONNECT = "reconnect"
    INTERACTION_ERROR = "interaction_error"


@dataclass(frozen=True)
class Overlay:
    """One overlay with its label and optional anchor"""

    kind: OverlayKind
    label: str = ""
    position: Position | None = None


@dataclass(frozen=True)
class RenderView:
    """Everything a host UI needs to paint the viewport once"""

    page: PageKind
    frame: ViewportFrame | None = None
    url: str | None = None
    message: str | None = None
    overlays: tuple[Overlay, ...] = field(default_factory=tuple)

    def overlay_find(self, kind: OverlayKind) -> Overlay | None:
        """Return the first overlay of a kind, if present"""
        for overlay in self.overlays:
            if overlay.kind == kind:
                return overlay
        return None


class FrameRenderer:
    """Consumes frames and state; composes render views."""

    def __init__(
        self,
        viewport_state: ViewportState,
        connection_status_get: Callable[[], ConnectionStatus],
    ) -> None:
        """
        Initialize renderer.

        Args:
            viewport_state:
                Interaction state of the same viewport.
            connection_status_get:
                Reader for the connection manager's status.
        """
        self.viewport_state: ViewportState = viewport_state
        self._connection_status_get: Callable[[], ConnectionStatus] = connection_status_get
        self._frames: dict[str | None, ViewportFrame] = {}
        self._listeners: list[Callable[[ViewportFrame], None]] = []

        self.active_tab: str | None = None
        self.url: str | None = None
        self.is_loading: bool = False
        self.navigation_error: str | None = None
        self.interaction_error: str | None = None

    def listener_add(self, listener: Callable[[ViewportFrame], None]) -> None:
        """Subscribe to frames of the active tab as they are accepted"""
        self._listeners.append(listener)

    def frame_accept(self, frame: ViewportFrame) -> None:
        """
        Store a frame, replacing the previous frame of its tab.

        Args:
            frame: Newly acquired frame.
        """
        self._frames[frame.tab_id] = frame
        if frame.url and frame.tab_id == self.active_tab:
            self.url = frame.url
        if self._frameVisible_check(frame):
            for listener in list(self._listeners):
                listener(frame)

    def _frameVisible_check(self, frame: ViewportFrame) -> bool:
        """A frame without tab id belongs to whatever tab is active"""
        return frame.tab_id is None or frame.tab_id == self.active_tab

    def currentFrame_get(self) -> ViewportFrame | None:
        """
        Newest frame for the active tab.

        Returns:
            Frame, or None when nothing arrived yet.
        """
        frame = self._frames.get(self.active_tab)
        if frame is None and self.active_tab is not None:
            frame = self._frames.get(None)
        return frame

    def activeTab_set(self, tab_id: str | None) -> None:
        """Switch the displayed tab"""
        self.active_tab = tab_id

    def tab_forget(self, tab_id: str) -> None:
        """Drop the stored frame of a closed tab"""
        self._frames.pop(tab_id, None)

    def loading_begin(self, url: str | None) -> None:
        """Mark a navigation in flight"""
        self.is_loading = True
        self.navigation_error = None
        if url is not None:
            self.url = url

    def loading_end(self, error: str | None = None) -> None:
        """Mark navigation finished, optionally failed"""
        self.is_loading = False
        self.navigation_error = error

    def interactionError_set(self, message: str | None) -> None:
        """Record (or clear) a rejected input command"""
        self.interaction_error = message

    def view_compose(self) -> RenderView:
        """
        Compose the current view.

        Returns:
            Page kind, frame and overlays for this instant.
        """
        status: ConnectionStatus = self._connection_status_get()
        frame: ViewportFrame | None = self.currentFrame_get()

        if not self.url or self.url == NEW_TAB_URL:
            return RenderView(
                page=PageKind.NEW_TAB,
                url=self.url,
                overlays=self._sessionStatus_overlays(status, new_tab=True),
            )
        if self.navigation_error:
            return RenderView(page=PageKind.ERROR, url=self.url, message=self.navigation_error)
        if self.is_loading and frame is None:
            return RenderView(page=PageKind.LOADING, url=self.url, message=f"Loading {self.url}...")

        overlays: list[Overlay] = []
        if frame is None and status.session_id is not None and not status.push_live:
            overlays.append(Overlay(kind=OverlayKind.RECONNECT, label="Reconnect"))
        if self.is_loading:
            overlays.append(Overlay(kind=OverlayKind.LOADING, label="Loading..."))
        if self.viewport_state.is_interacting and self.viewport_state.cursor_position is not None:
            overlays.append(
                Overlay(kind=OverlayKind.CURSOR, position=self.viewport_state.cursor_position)
            )
        if self.interaction_error:
            overlays.append(Overlay(kind=OverlayKind.INTERACTION_ERROR, label=self.interaction_error))
        overlays.extend(self._sessionStatus_overlays(status, new_tab=False))

        return RenderView(
            page=PageKind.FRAME if frame is not None else PageKind.WAITING,
            frame=frame,
            url=self.url,
            message=None if frame is not None else "Waiting for page to render...",
            overlays=tuple(overlays),
        )

    def _sessionStatus_overlays(self, status: ConnectionStatus, new_tab: bool) -> list[Overlay]:
        """Connectivity indicator and session badge for the current status"""
        if status.session_id is None or status.state == ConnectionState.DISCONNECTED:
            if new_tab:
                return [Overlay(kind=OverlayKind.SESSION, label="Initialize Browser")]
            return []
        if new_tab:
            label = "Connected" if status.push_live else "Reconnecting..."
            return [Overlay(kind=OverlayKind.CONNECTIVITY, label=label)]

        overlays: list[Overlay] = []
        if status.push_live:
            short_id = status.session_id[:_SESSION_LABEL_CHARS]
            overlays.append(Overlay(kind=OverlayKind.SESSION, label=f"Live: {short_id}..."))
        else:
            overlays.append(Overlay(kind=OverlayKind.SESSION, label="Connecting..."))
            overlays.append(
                Overlay(
                    kind=OverlayKind.CONNECTIVITY,
                    label="WebSocket disconnected - using polling",
                )
            )
        return overlays
