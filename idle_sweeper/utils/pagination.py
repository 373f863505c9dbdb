"""Lazy, restartable pagination over remote list endpoints.

Platform list endpoints return results in bounded pages. ``Paginated`` wraps a
page-fetching coroutine so callers can iterate results without knowing how
many pages exist::

    events = Paginated(fetch_events_page, per_page=100, convert=parse_event)
    async for event in events:
        ...
    everything = await events.collect()

Every ``async for`` starts again from page 1, so the same object can be
iterated more than once.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")

PageFetcher = Callable[[int, int], Awaitable[list[Any]]]
"""Coroutine taking ``(page, per_page)`` (pages are 1-based) and returning that raw page."""


class Paginated(Generic[T]):
    """Async iterable over all pages produced by a page fetcher.

    Iteration stops at the first empty page or the first raw page shorter
    than ``per_page``. ``convert`` maps raw records to results; records it
    maps to None are dropped without affecting where pagination ends.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        per_page: int = 100,
        convert: Callable[[Any], T | None] | None = None,
    ) -> None:
        if per_page < 1:
            raise ValueError("per_page must be at least 1")
        self._fetch_page = fetch_page
        self._convert = convert
        self.per_page = per_page

    async def _iterate(self) -> AsyncIterator[T]:
        page = 1
        while True:
            raw = await self._fetch_page(page, self.per_page)
            for record in raw:
                item = self._convert(record) if self._convert else record
                if item is not None:
                    yield item
            if len(raw) < self.per_page:
                return
            page += 1

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def collect(self) -> list[T]:
        """Fetch every page and return the concatenated results."""
        return [item async for item in self]

    @classmethod
    def from_list(cls, items: list[T]) -> "Paginated[T]":
        """Wrap an in-memory list, mostly useful for tests and fakes."""

        async def fetch(page: int, per_page: int) -> list[T]:
            start = (page - 1) * per_page
            return items[start : start + per_page]

        return cls(fetch)
