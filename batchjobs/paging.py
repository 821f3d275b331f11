"""
Lazy paging over Batch service listings.

PagedCursor walks the service's continuation links one page at a time.
BoundedPager turns a cursor into a single-pass iterator of projected items
and stops, without fetching further pages, once an optional ceiling is hit.
"""

from collections import deque
from typing import Callable, Deque, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")

PageFetcher = Callable[[Optional[str]], Tuple[List[T], Optional[str]]]


class PagedCursor(Generic[T]):
    """
    Continuation-bearing cursor over a listing.

    `fetch` is called with None for the first page and with the previous
    page's continuation link afterwards. It returns (items, next_link).
    Nothing is fetched until `next_page` is first called.
    """

    def __init__(self, fetch: PageFetcher):
        self._fetch = fetch
        self._next_link: Optional[str] = None
        self._started = False

    @property
    def exhausted(self) -> bool:
        return self._started and self._next_link is None

    def next_page(self) -> List[T]:
        if self.exhausted:
            return []
        items, self._next_link = self._fetch(self._next_link)
        self._started = True
        return list(items)

    def __iter__(self) -> Iterator[T]:
        while not self.exhausted:
            yield from self.next_page()


class BoundedPager(Generic[T, R]):
    """
    Single-pass iterator mapping cursor items and capping how many are yielded.

    When `max_count` items have been yielded and more are known or may be
    available, `on_max_count` is called once and iteration ends. Reaching the
    ceiling never triggers another page fetch.
    """

    def __init__(
        self,
        cursor: PagedCursor[T],
        mapper: Callable[[T], R],
        max_count: Optional[int] = None,
        on_max_count: Optional[Callable[[], None]] = None,
    ):
        if max_count is not None and max_count < 0:
            raise ValueError("max_count must be >= 0")
        self.cursor = cursor
        self.mapper = mapper
        self.max_count = max_count
        self.on_max_count = on_max_count
        self.count = 0
        self._buffer: Deque[T] = deque()
        self._done = False

    def __iter__(self) -> "BoundedPager[T, R]":
        return self

    def __next__(self) -> R:
        if self._done:
            raise StopIteration

        if self.max_count is not None and self.count >= self.max_count:
            self._done = True
            if self._buffer or not self.cursor.exhausted:
                if self.on_max_count:
                    self.on_max_count()
            raise StopIteration

        while not self._buffer:
            if self.cursor.exhausted:
                self._done = True
                raise StopIteration
            self._buffer.extend(self.cursor.next_page())

        self.count += 1
        return self.mapper(self._buffer.popleft())
