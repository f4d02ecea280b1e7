"""Unit tests for viewport session orchestration"""

from __future__ import annotations

import asyncio
import base64

import pytest

from rvdrive.client.api import ApiError
from rvdrive.client.network import PushChannelError
from rvdrive.client.renderer import PageKind
from rvdrive.client.session import ViewportSession, sessionFromConfig_create
from rvdrive.common.types import (
    ConnectionState,
    EventType,
    FocusEvent,
    FrameSource,
    PointerEvent,
    Position,
    Screen,
    ViewportFrame,
)
from rvdrive.protocol.commands import ClickCommand, NavigateCommand, Suppressed


class FakeApi:
    """In-memory backend"""

    base_url = "http://backend.test/api"

    def __init__(self) -> None:
        self.commands = []
        self.closed_sessions = []
        self.reject_commands: str | None = None
        self.fail_close = False
        self.tabs_activated = []
        self.created = 0

    async def session_create(self):
        self.created += 1
        return {"session_id": f"sess-{self.created}", "tab_id": "t1"}

    async def session_close(self, session_id):
        if self.fail_close:
            raise ApiError("already gone", status=404)
        self.closed_sessions.append(session_id)
        return {"success": True}

    async def command_send(self, session_id, command):
        if self.reject_commands:
            raise ApiError(self.reject_commands, status=400)
        self.commands.append((session_id, command))
        if isinstance(command, NavigateCommand):
            return {
                "url": command.url + "/",
                "screenshot": base64.b64encode(b"\x89PNGnav").decode(),
            }
        return {"success": True}

    async def back(self, session_id, tab_id=None):
        raise ApiError("No history", status=400)

    async def forward(self, session_id, tab_id=None):
        return {"url": "https://e.com/next"}

    async def refresh(self, session_id, tab_id=None):
        return {}

    async def screenshot_get(self, session_id, tab_id=None):
        return ViewportFrame(image=b"poll", session_id=session_id, tab_id=tab_id, source=FrameSource.POLL)

    async def tab_create(self, session_id, url=None, make_active=True):
        return {"tab_id": "t2"}

    async def tab_activate(self, session_id, tab_id):
        self.tabs_activated.append(tab_id)
        return {"success": True}

    async def tab_close(self, session_id, tab_id):
        return {"active_tab_id": "t1"}


class RefusingChannel:
    """Push channel that never opens"""

    async def open(self):
        raise PushChannelError("refused")

    async def events_receive(self):
        if False:
            yield None

    async def close(self):
        return None


def session_make(api: FakeApi) -> ViewportSession:
    return ViewportSession(
        api,
        channel_factory=lambda session_id: RefusingChannel(),
        display_size=Screen(width=640, height=360),
        poll_interval=0.01,
        reconnect_enabled=False,
        clock=lambda: 10.0,
    )


class TestSessionLifecycle:
    """Test start and stop"""

    @pytest.mark.asyncio
    async def test_start_polls_when_push_refused(self):
        """Test a session whose push channel fails is fed by polling"""
        api = FakeApi()
        session = session_make(api)
        assert await session.session_start() == "sess-1"
        assert session.renderer.active_tab == "t1"

        for _ in range(100):
            if session.renderer.currentFrame_get() is not None:
                break
            await asyncio.sleep(0.01)
        assert session.connectionStatus_get().state == ConnectionState.DEGRADED_POLLING
        assert session.renderer.currentFrame_get().source == FrameSource.POLL

        await session.session_stop()
        assert api.closed_sessions == ["sess-1"]
        assert session.connectionStatus_get().state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_stop_survives_close_failure(self):
        """Test remote close errors do not break local teardown"""
        api = FakeApi()
        api.fail_close = True
        session = session_make(api)
        await session.session_start()
        await session.session_stop()
        assert session.session_id is None
        assert session.state.is_interacting is False

    @pytest.mark.asyncio
    async def test_restart_closes_previous_session(self):
        """Test starting again closes the session already held"""
        api = FakeApi()
        session = session_make(api)
        assert await session.session_start() == "sess-1"
        assert await session.session_start() == "sess-2"
        assert api.closed_sessions == ["sess-1"]
        assert session.connection.session_id == "sess-2"

        await session.session_stop()
        assert api.closed_sessions == ["sess-1", "sess-2"]


class TestEventHandling:
    """Test translate-then-dispatch"""

    @pytest.mark.asyncio
    async def test_double_click_dispatched(self):
        """Test two clicks on the same spot reach the backend as 1 then 2"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()
        await session.event_handle(FocusEvent(event_type=EventType.POINTER_ENTER))
        for _ in range(2):
            await session.event_handle(
                PointerEvent(event_type=EventType.CLICK, position=Position(x=320, y=180))
            )
        clicks = [command for _, command in api.commands if isinstance(command, ClickCommand)]
        assert [(c.x, c.y, c.click_count) for c in clicks] == [(640, 360, 1), (640, 360, 2)]
        await session.session_stop()

    @pytest.mark.asyncio
    async def test_rejected_command_shows_error(self):
        """Test a backend rejection becomes an interaction error"""
        api = FakeApi()
        api.reject_commands = "Element not interactable"
        session = session_make(api)
        await session.session_start()
        await session.event_handle(
            PointerEvent(event_type=EventType.CLICK, position=Position(x=5, y=5))
        )
        assert session.renderer.interaction_error == "click failed: Element not interactable"

        api.reject_commands = None
        await session.event_handle(
            PointerEvent(event_type=EventType.CLICK, position=Position(x=5, y=5))
        )
        assert session.renderer.interaction_error is None
        await session.session_stop()

    @pytest.mark.asyncio
    async def test_suppressed_not_dispatched(self):
        """Test state-only events never reach the backend"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()
        result = await session.event_handle(FocusEvent(event_type=EventType.POINTER_ENTER))
        assert isinstance(result, Suppressed)
        assert api.commands == []
        await session.session_stop()


class TestNavigation:
    """Test page actions"""

    @pytest.mark.asyncio
    async def test_navigate_applies_reply(self):
        """Test the final URL and inline screenshot are shown"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()
        assert await session.navigate("https://e.com") is True
        assert session.renderer.url == "https://e.com/"
        assert session.renderer.is_loading is False
        assert session.renderer.currentFrame_get().image == b"\x89PNGnav"
        assert session.renderer.view_compose().page == PageKind.FRAME
        await session.session_stop()

    @pytest.mark.asyncio
    async def test_failed_action_shows_error(self):
        """Test backend errors surface on the error page"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()
        session.renderer.url = "https://e.com"
        assert await session.back() is False
        assert session.renderer.navigation_error == "No history"
        assert session.renderer.view_compose().page == PageKind.ERROR
        await session.session_stop()

    @pytest.mark.asyncio
    async def test_action_without_session(self):
        """Test page actions need a session"""
        session = session_make(FakeApi())
        assert await session.refresh() is False
        assert session.renderer.navigation_error == "No browser session"


class TestTabs:
    """Test tab switching"""

    @pytest.mark.asyncio
    async def test_tab_create_and_close(self):
        """Test a new tab becomes active and closing it returns to the previous one"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()

        assert await session.tab_create("https://e.com") == "t2"
        assert session.renderer.active_tab == "t2"
        assert session.connection.tab_id == "t2"

        assert await session.tab_close("t2") is True
        assert session.renderer.active_tab == "t1"
        assert session.connection.tab_id == "t1"
        await session.session_stop()

    @pytest.mark.asyncio
    async def test_tab_activate(self):
        """Test activating a tab redirects rendering"""
        api = FakeApi()
        session = session_make(api)
        await session.session_start()
        assert await session.tab_activate("t3") is True
        assert api.tabs_activated == ["t3"]
        assert session.renderer.active_tab == "t3"
        await session.session_stop()


class TestSessionFromConfig:
    """Test config wiring"""

    def test_timings_from_config(self, sample_config):
        """Test poll interval and display size come from config"""
        session = sessionFromConfig_create(sample_config, FakeApi())
        assert session.connection.poll_interval == sample_config.connection.poll_interval_ms / 1000.0
        assert session.state.display_size == Screen(
            width=sample_config.viewport.display_width,
            height=sample_config.viewport.display_height,
        )
