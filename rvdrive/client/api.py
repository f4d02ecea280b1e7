"""
REST client for the remote automation backend.

This module owns backend URL validation, URL joining, JSON decoding with
useful failure messages, and the mapping of outbound commands onto their
endpoints. Every call is a plain request/response; streaming lives in
`rvdrive.client.network`.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote, urlsplit, urlunsplit

import aiohttp

from rvdrive.common.settings import settings
from rvdrive.common.types import FrameSource, ViewportFrame
from rvdrive.protocol.commands import Command, CommandBuilder, CommandType
from rvdrive.protocol.message import MessageParser

logger = logging.getLogger(__name__)

__all__ = [
    "ApiError",
    "BackendUrlError",
    "BrowserApiClient",
    "backendUrl_require",
    "url_join",
    "wsBaseUrl_get",
]

_COMMAND_PATHS: dict[CommandType, str] = {
    CommandType.MOVE: "move",
    CommandType.CLICK: "click",
    CommandType.TYPE: "type",
    CommandType.KEYPRESS: "keypress",
    CommandType.SCROLL: "scroll",
    CommandType.NAVIGATE: "navigate",
}


class BackendUrlError(ValueError):
    """Backend URL is missing or not an absolute http(s) URL."""


class ApiError(Exception):
    """Backend rejected a call or answered with something that is not JSON."""

    def __init__(self, message: str, status: int | None = None, detail: str | None = None) -> None:
        """
        Initialize API error.

        Args:
            message:
                Human-readable summary.
            status:
                HTTP status when a response was received.
            detail:
                Backend-provided `detail` field, if any.
        """
        super().__init__(message)
        self.status: int | None = status
        self.detail: str | None = detail


def backendUrl_require(url: str | None) -> str:
    """
    Validate the configured backend URL.

    The URL must include the API prefix (e.g. `https://host.example/api`).
    Relative URLs are rejected because there is no page origin to resolve
    them against.

    Args:
        url:
            Configured backend URL.

    Returns:
        The URL without trailing slashes.

    Raises:
        BackendUrlError:
            Raised for a missing or relative URL.
    """
    if not url:
        raise BackendUrlError(
            "Missing backend URL. Set backend.url in config.yml or RVDRIVE_BACKEND_URL "
            "(it must include the '/api' prefix)."
        )
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise BackendUrlError(
            f"Backend URL {url!r} must be an absolute http(s) URL including the '/api' "
            "prefix (e.g. https://host.example/api)."
        )
    return url.rstrip("/")


def url_join(base: str, path: str) -> str:
    """
    Append a path to the base URL, keeping the base path.

    Args:
        base:
            Backend URL, e.g. `https://host/api`.
        path:
            Endpoint path, with or without leading slash.

    Returns:
        Joined URL.
    """
    parts = urlsplit(base)
    base_path: str = parts.path.rstrip("/")
    add_path: str = path.lstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, f"{base_path}/{add_path}", "", ""))


def wsBaseUrl_get(base: str) -> str:
    """
    Derive the websocket base URL, keeping host and base path.

    Args:
        base:
            Backend URL.

    Returns:
        `ws://` or `wss://` URL with the same host and path.
    """
    parts = urlsplit(base)
    ws_scheme: str = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit((ws_scheme, parts.netloc, parts.path.rstrip("/"), "", ""))


def json_decode(text: str, status: int) -> Any:
    """
    Decode a response body, reporting HTML bodies clearly.

    Args:
        text:
            Raw response body.
        status:
            HTTP status of the response.

    Returns:
        Decoded JSON value.

    Raises:
        ApiError:
            Raised when the body is not JSON.
    """
    try:
        return json.loads(text)
    except ValueError as exc:
        preview: str = text[: settings.ERROR_BODY_PREVIEW_CHARS]
        raise ApiError(
            f"Backend returned a non-JSON response (status {status}). This usually means "
            f"the backend URL points at a web frontend instead of the API. "
            f"First {settings.ERROR_BODY_PREVIEW_CHARS} chars: {preview}",
            status=status,
        ) from exc


class BrowserApiClient:
    """Async client for session, page, tab, command and suggestion calls."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize API client.

        Args:
            base_url:
                Backend URL including the API prefix.
            timeout_seconds:
                Total timeout per request.
            session:
                Optional shared aiohttp session; created lazily otherwise.
        """
        self.base_url: str = backendUrl_require(base_url)
        self.timeout: aiohttp.ClientTimeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

    def _session_get(self) -> aiohttp.ClientSession:
        """Return the HTTP session, creating it on first use."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the owned HTTP session. Idempotent."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request_send(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str | None] | None = None,
        failure: str = "Request failed",
    ) -> Any:
        """
        Send one request and decode its JSON reply.

        Args:
            method:
                HTTP method.
            path:
                Endpoint path below the backend URL.
            body:
                Optional JSON body.
            params:
                Optional query parameters; `None` values are dropped.
            failure:
                Message used when the backend gives no `detail`.

        Returns:
            Decoded JSON reply.

        Raises:
            ApiError:
                Raised for non-2xx responses and non-JSON bodies.
            aiohttp.ClientError:
                Raised for transport failures.
        """
        url: str = url_join(self.base_url, path)
        query: dict[str, str] | None = None
        if params:
            query = {key: value for key, value in params.items() if value is not None}
        async with self._session_get().request(method, url, json=body, params=query) as response:
            text: str = await response.text()
            status: int = response.status

        if status >= 400:
            detail: str | None = None
            try:
                error_body = json.loads(text)
                if isinstance(error_body, dict) and error_body.get("detail"):
                    detail = str(error_body["detail"])
            except ValueError:
                pass
            raise ApiError(detail or failure, status=status, detail=detail)
        return json_decode(text, status)

    # Sessions

    async def session_create(self) -> dict[str, Any]:
        """Create a remote browser session; the reply carries `session_id`."""
        return await self.request_send("POST", "/browser/session", failure="Failed to create session")

    async def session_close(self, session_id: str) -> dict[str, Any]:
        """Close a remote browser session."""
        return await self.request_send(
            "DELETE", f"/browser/session/{quote(session_id, safe='')}", failure="Failed to close session"
        )

    async def sessionStatus_get(self, session_id: str) -> dict[str, Any]:
        """Get remote session status."""
        return await self.request_send(
            "GET",
            f"/browser/session/{quote(session_id, safe='')}/status",
            failure="Failed to get session status",
        )

    # Page navigation

    async def navigate(self, session_id: str, url: str, tab_id: str | None = None) -> dict[str, Any]:
        """Navigate a tab (the active one when `tab_id` is None)."""
        return await self.request_send(
            "POST",
            f"/browser/{quote(session_id, safe='')}/navigate",
            body={"url": url, "tab_id": tab_id},
            failure="Navigation failed",
        )

    async def back(self, session_id: str, tab_id: str | None = None) -> dict[str, Any]:
        """Go back in tab history."""
        return await self.request_send(
            "POST", f"/browser/{quote(session_id, safe='')}/back", params={"tab_id": tab_id}
        )

    async def forward(self, session_id: str, tab_id: str | None = None) -> dict[str, Any]:
        """Go forward in tab history."""
        return await self.request_send(
            "POST", f"/browser/{quote(session_id, safe='')}/forward", params={"tab_id": tab_id}
        )

    async def refresh(self, session_id: str, tab_id: str | None = None) -> dict[str, Any]:
        """Reload the tab."""
        return await self.request_send(
            "POST", f"/browser/{quote(session_id, safe='')}/refresh", params={"tab_id": tab_id}
        )

    async def screenshot_get(self, session_id: str, tab_id: str | None = None) -> ViewportFrame:
        """
        Pull the latest frame of a tab.

        Args:
            session_id:
                Remote session.
            tab_id:
                Tab to capture, or the active tab.

        Returns:
            Polled ViewportFrame.

        Raises:
            ApiError:
                Raised when the reply carries no decodable image.
        """
        reply = await self.request_send(
            "GET",
            f"/browser/{quote(session_id, safe='')}/screenshot",
            params={"tab_id": tab_id},
            failure="Failed to get screenshot",
        )
        data: str | None = None
        if isinstance(reply, dict):
            data = reply.get("screenshot") or reply.get("data") or reply.get("image")
        if not data:
            raise ApiError("Screenshot reply has no image data")
        try:
            image: bytes = MessageParser.imageData_decode(data)
        except (ValueError, TypeError) as exc:
            raise ApiError(str(exc)) from exc
        return ViewportFrame(
            image=image,
            session_id=session_id,
            tab_id=reply.get("tab_id", tab_id),
            url=reply.get("url"),
            source=FrameSource.POLL,
        )

    # Tabs

    async def tabs_list(self, session_id: str) -> dict[str, Any]:
        """List the session's tabs."""
        return await self.request_send(
            "GET", f"/browser/session/{quote(session_id, safe='')}/tabs", failure="Failed to list tabs"
        )

    async def tab_create(
        self, session_id: str, url: str | None = None, make_active: bool = True
    ) -> dict[str, Any]:
        """Open a new tab."""
        return await self.request_send(
            "POST",
            f"/browser/session/{quote(session_id, safe='')}/tabs",
            body={"url": url, "make_active": make_active},
            failure="Failed to create tab",
        )

    async def tab_activate(self, session_id: str, tab_id: str) -> dict[str, Any]:
        """Make a tab the active one."""
        return await self.request_send(
            "POST",
            f"/browser/session/{quote(session_id, safe='')}/tabs/{quote(tab_id, safe='')}/activate",
            failure="Failed to activate tab",
        )

    async def tab_close(self, session_id: str, tab_id: str) -> dict[str, Any]:
        """Close a tab."""
        return await self.request_send(
            "DELETE",
            f"/browser/session/{quote(session_id, safe='')}/tabs/{quote(tab_id, safe='')}",
            failure="Failed to close tab",
        )

    # Input commands

    async def command_send(self, session_id: str, command: Command) -> Any:
        """
        Send one outbound command to its endpoint.

        Args:
            session_id:
                Remote session.
            command:
                Translated command.

        Returns:
            Decoded reply.
        """
        endpoint: str = _COMMAND_PATHS[command.command_type]
        return await self.request_send(
            "POST",
            f"/browser/{quote(session_id, safe='')}/{endpoint}",
            body=CommandBuilder.payload_build(command),
            failure=f"{command.command_type.value} command failed",
        )

    # Suggestions

    async def suggestions_get(self, query: str, limit: int = 5) -> list[Any]:
        """
        Fetch address-bar suggestions.

        Args:
            query:
                Partial user input.
            limit:
                Maximum number of suggestions.

        Returns:
            Suggestion entries as returned by the backend.
        """
        reply = await self.request_send(
            "GET",
            "/search/suggestions",
            params={"q": query, "limit": str(limit)},
            failure="Failed to get suggestions",
        )
        if isinstance(reply, dict):
            return list(reply.get("suggestions", []))
        return []
