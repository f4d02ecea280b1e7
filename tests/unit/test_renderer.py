"""Unit tests for render view composition"""

from rvdrive.client.connection_manager import ConnectionStatus
from rvdrive.client.renderer import NEW_TAB_URL, FrameRenderer, OverlayKind, PageKind
from rvdrive.common.types import ConnectionState, Position, Screen, ViewportFrame
from rvdrive.viewport.state import ViewportState


class StatusHolder:
    """Mutable connection status source"""

    def __init__(self, state=ConnectionState.DISCONNECTED, session_id=None) -> None:
        self.status = ConnectionStatus(state=state, session_id=session_id)

    def __call__(self) -> ConnectionStatus:
        return self.status


def renderer_make(state=ConnectionState.LIVE_PUSH, session_id="0123456789abcdef"):
    holder = StatusHolder(state, session_id)
    viewport = ViewportState(display_size=Screen(width=640, height=360))
    return FrameRenderer(viewport, holder), holder


def frame(tab_id="t1", image=b"img", url=None) -> ViewportFrame:
    return ViewportFrame(image=image, session_id="0123456789abcdef", tab_id=tab_id, url=url)


class TestFrameStore:
    """Test per-tab frame replacement"""

    def test_newest_frame_wins(self):
        """Test each frame supersedes the previous one of its tab"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.frame_accept(frame(image=b"one"))
        renderer.frame_accept(frame(image=b"two"))
        assert renderer.currentFrame_get().image == b"two"

    def test_other_tab_not_shown(self):
        """Test background tab frames are stored but not displayed"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        shown = []
        renderer.listener_add(shown.append)
        renderer.frame_accept(frame(tab_id="t2"))
        assert renderer.currentFrame_get() is None
        assert shown == []

        renderer.activeTab_set("t2")
        assert renderer.currentFrame_get().tab_id == "t2"

    def test_untagged_frame_shown_for_active_tab(self):
        """Test frames without tab id are used for the active tab"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.frame_accept(frame(tab_id=None))
        assert renderer.currentFrame_get() is not None

    def test_frame_url_updates_address(self):
        """Test the active tab's frame URL becomes the displayed URL"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.frame_accept(frame(url="https://e.com/after-redirect"))
        assert renderer.url == "https://e.com/after-redirect"

    def test_tab_forget(self):
        """Test closed tabs drop their frame"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.frame_accept(frame())
        renderer.tab_forget("t1")
        assert renderer.currentFrame_get() is None


class TestViewCompose:
    """Test page selection and overlays"""

    def test_new_tab_without_session(self):
        """Test the new-tab page offers to initialize a browser"""
        renderer, _ = renderer_make(ConnectionState.DISCONNECTED, None)
        view = renderer.view_compose()
        assert view.page == PageKind.NEW_TAB
        assert view.overlay_find(OverlayKind.SESSION).label == "Initialize Browser"

    def test_new_tab_url(self):
        """Test the internal new-tab URL shows the new-tab page"""
        renderer, _ = renderer_make()
        renderer.url = NEW_TAB_URL
        view = renderer.view_compose()
        assert view.page == PageKind.NEW_TAB
        assert view.overlay_find(OverlayKind.CONNECTIVITY).label == "Connected"

    def test_live_frame(self):
        """Test live push shows the frame with a short session badge"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.url = "https://e.com"
        renderer.frame_accept(frame())
        view = renderer.view_compose()
        assert view.page == PageKind.FRAME
        assert view.frame.image == b"img"
        assert view.overlay_find(OverlayKind.SESSION).label == "Live: 01234567..."
        assert view.overlay_find(OverlayKind.CONNECTIVITY) is None

    def test_degraded_indicator(self):
        """Test polling mode shows the websocket-disconnected notice"""
        renderer, _ = renderer_make(ConnectionState.DEGRADED_POLLING)
        renderer.activeTab_set("t1")
        renderer.url = "https://e.com"
        renderer.frame_accept(frame())
        view = renderer.view_compose()
        assert view.page == PageKind.FRAME
        assert view.overlay_find(OverlayKind.CONNECTIVITY).label == "WebSocket disconnected - using polling"
        assert view.overlay_find(OverlayKind.SESSION).label == "Connecting..."

    def test_waiting_offers_reconnect(self):
        """Test a degraded viewport without frames offers reconnect"""
        renderer, _ = renderer_make(ConnectionState.DEGRADED_POLLING)
        renderer.url = "https://e.com"
        view = renderer.view_compose()
        assert view.page == PageKind.WAITING
        assert view.overlay_find(OverlayKind.RECONNECT) is not None

    def test_loading_and_error(self):
        """Test loading placeholder then navigation error page"""
        renderer, _ = renderer_make()
        renderer.loading_begin("https://slow.example")
        assert renderer.view_compose().page == PageKind.LOADING

        renderer.loading_end(error="Navigation failed")
        view = renderer.view_compose()
        assert view.page == PageKind.ERROR
        assert view.message == "Navigation failed"

    def test_cursor_overlay_while_interacting(self):
        """Test the cursor marker follows the pointer only while interacting"""
        renderer, _ = renderer_make()
        renderer.activeTab_set("t1")
        renderer.url = "https://e.com"
        renderer.frame_accept(frame())
        renderer.viewport_state.cursor_position = Position(x=10, y=20)
        assert renderer.view_compose().overlay_find(OverlayKind.CURSOR) is None

        renderer.viewport_state.interaction_begin()
        cursor = renderer.view_compose().overlay_find(OverlayKind.CURSOR)
        assert cursor.position == Position(x=10, y=20)

    def test_interaction_error_overlay(self):
        """Test rejected commands are shown until cleared"""
        renderer, _ = renderer_make()
        renderer.url = "https://e.com"
        renderer.interactionError_set("click failed: Element not interactable")
        overlay = renderer.view_compose().overlay_find(OverlayKind.INTERACTION_ERROR)
        assert overlay.label == "click failed: Element not interactable"

        renderer.interactionError_set(None)
        assert renderer.view_compose().overlay_find(OverlayKind.INTERACTION_ERROR) is None
