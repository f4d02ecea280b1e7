"""Debounced address-bar suggestion lookup"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

import aiohttp

from rvdrive.client.api import ApiError

logger = logging.getLogger(__name__)

__all__ = ["SuggestionLookup", "SuggestionSource"]


class SuggestionSource(Protocol):
    """Backend contract for suggestion retrieval."""

    async def suggestions_get(self, query: str, limit: int = 5) -> list[Any]:
        """Return suggestions for a partial query."""
        ...


class SuggestionLookup:
    """
    Debounced lookup keyed by partial text.

    Each `query_update` cancels the pending lookup and schedules a new one
    after the debounce delay; only the latest query ever reports results.
    """

    def __init__(
        self,
        source: SuggestionSource,
        on_results: Callable[[str, list[Any]], None],
        debounce_seconds: float = 0.3,
        limit: int = 5,
        min_query_length: int = 2,
    ) -> None:
        self._source: SuggestionSource = source
        self._on_results: Callable[[str, list[Any]], None] = on_results
        self.debounce_seconds: float = debounce_seconds
        self.limit: int = limit
        self.min_query_length: int = min_query_length
        self._pending: asyncio.Task | None = None

    def query_update(self, query: str) -> None:
        """
        Schedule a lookup for the newest input.

        Short queries report an empty list at once without a backend call.

        Args:
            query: Current address-bar text.
        """
        self.pending_cancel()
        if len(query.strip()) < self.min_query_length:
            self._on_results(query, [])
            return
        self._pending = asyncio.create_task(self._lookup_run(query))

    def pending_cancel(self) -> None:
        """Cancel the scheduled lookup, if any"""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def close(self) -> None:
        """Cancel and await the scheduled lookup"""
        task = self._pending
        self.pending_cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _lookup_run(self, query: str) -> None:
        """Wait out the debounce window, then fetch and report"""
        await asyncio.sleep(self.debounce_seconds)
        try:
            results: list[Any] = await self._source.suggestions_get(query, limit=self.limit)
        except (ApiError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.warning("Suggestion lookup failed for %r: %s", query, exc)
            results = []
        self._on_results(query, results)
