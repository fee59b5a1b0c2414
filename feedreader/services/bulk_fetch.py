"""
Bulk Fetch Coordinator

Holds the selection of a bulk fetch (feeds, date range, page size) and merges
successive pages into one accumulated article list.

State machine:
- idle:    nothing submitted yet
- loading: one page request is in flight
- ready:   the last response has been merged
- error:   the last submit/load_more failed (``error`` holds the cause)

Only one request is in flight at a time: ``load_more`` is a no-op while
loading. ``submit`` always starts over; it bumps an epoch counter so that a
response belonging to an older query is dropped when it finally arrives.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from feedreader.api.errors import FeedReaderError, SelectionError
from feedreader.api.schemas import Article, BulkFetchRequest, BulkFetchResponse, FeedSummary
from feedreader.config.settings import DEFAULT_PAGE_SIZE
from feedreader.utils.logging_config import get_logger

logger = get_logger(__name__)

FetchPage = Callable[[BulkFetchRequest], Awaitable[BulkFetchResponse]]


class FetchState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class BulkFetchQuery:
    """Selection shared by every page of one logical query."""

    feed_ids: tuple[str, ...]
    start_date: Optional[str]
    end_date: Optional[str]
    page_size: int

    def page(self, offset: int) -> BulkFetchRequest:
        return BulkFetchRequest(
            feed_ids=list(self.feed_ids),
            start_date=self.start_date,
            end_date=self.end_date,
            limit=self.page_size,
            offset=offset,
        )


@dataclass(frozen=True)
class _Accumulated:
    articles: list[Article]
    offset: int
    total_count: int
    feed_summaries: list[FeedSummary]


class BulkFetchCoordinator:
    """Paginated, accumulating bulk fetch over a ``fetch_page`` callable."""

    def __init__(self, fetch_page: FetchPage) -> None:
        self._fetch_page = fetch_page
        self._epoch = 0
        self.state = FetchState.IDLE
        self.query: Optional[BulkFetchQuery] = None
        self.articles: list[Article] = []
        self.offset = 0
        self.total_count = 0
        self.feed_summaries: list[FeedSummary] = []
        self.error: Optional[Exception] = None

    @property
    def has_more(self) -> bool:
        # Trusts the latest total_count; no reconciliation if it moved
        return len(self.articles) < self.total_count

    @property
    def remaining(self) -> int:
        return max(self.total_count - len(self.articles), 0)

    def _snapshot(self) -> _Accumulated:
        return _Accumulated(
            articles=self.articles,
            offset=self.offset,
            total_count=self.total_count,
            feed_summaries=self.feed_summaries,
        )

    def _restore(self, snapshot: _Accumulated) -> None:
        self.articles = snapshot.articles
        self.offset = snapshot.offset
        self.total_count = snapshot.total_count
        self.feed_summaries = snapshot.feed_summaries

    async def submit(
        self,
        feed_ids: Sequence[str],
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Start a fresh query and load its first page."""
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")

        if not feed_ids:
            # Leaves any query in flight alone; only a real submit supersedes it
            self.state = FetchState.ERROR
            self.error = SelectionError("Please select at least one feed")
            return

        self._epoch += 1
        epoch = self._epoch

        previous = self._snapshot()
        query = self.query = BulkFetchQuery(
            feed_ids=tuple(feed_ids),
            start_date=start_date or None,
            end_date=end_date or None,
            page_size=page_size,
        )
        self.articles = []
        self.offset = 0
        self.error = None
        self.state = FetchState.LOADING
        logger.info(
            "Bulk fetch submitted",
            feeds=len(feed_ids),
            start_date=start_date,
            end_date=end_date,
            page_size=page_size,
        )

        await self._load_page(query, epoch, offset=0, append=False, fallback=previous)

    async def load_more(self) -> bool:
        """Load the next page. Returns False when nothing was requested."""
        query = self.query
        if query is None or self.state is not FetchState.READY or not self.has_more:
            logger.debug("load_more ignored", state=self.state.value, has_more=self.has_more)
            return False

        self.state = FetchState.LOADING
        await self._load_page(query, self._epoch, offset=self.offset, append=True, fallback=None)
        return True

    async def _load_page(
        self,
        query: BulkFetchQuery,
        epoch: int,
        offset: int,
        append: bool,
        fallback: Optional[_Accumulated],
    ) -> None:
        try:
            response = await self._fetch_page(query.page(offset))
        except Exception as e:
            if epoch != self._epoch:
                logger.debug("Dropping failure of a superseded bulk fetch", offset=offset)
                if isinstance(e, FeedReaderError):
                    return
                raise
            if fallback is not None:
                self._restore(fallback)
            self.state = FetchState.ERROR
            self.error = e
            logger.warning("Bulk fetch page failed", offset=offset, error=str(e))
            if not isinstance(e, FeedReaderError):
                raise
            return

        if epoch != self._epoch:
            logger.debug("Dropping response of a superseded bulk fetch", offset=offset)
            return

        if append:
            self.articles = self.articles + list(response.articles)
        else:
            self.articles = list(response.articles)
        self.offset = offset + query.page_size
        self.total_count = response.total_count
        # The breakdown covers the whole matched set, so it replaces
        self.feed_summaries = list(response.feed_summaries)
        self.state = FetchState.READY
        logger.debug(
            "Bulk fetch page merged",
            offset=offset,
            received=len(response.articles),
            accumulated=len(self.articles),
            total_count=self.total_count,
        )
