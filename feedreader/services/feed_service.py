"""Cached reads and invalidating writes on top of FeedReaderClient."""

from typing import Optional

from feedreader.api.client import FeedReaderClient
from feedreader.api.errors import NotFoundError
from feedreader.api.schemas import Article, Feed, FeedAggregation, RefreshResult, Summary
from feedreader.services.query_cache import QueryCache
from feedreader.utils.logging_config import get_logger

logger = get_logger(__name__)

FEEDS_KEY = ("feeds",)
ALL_ARTICLES = "*"


class FeedService:
    """Screen-facing operations.

    Reads go through the query cache. Each mutation invalidates the keys it
    makes stale, and only after the backend confirmed it.
    """

    def __init__(self, client: FeedReaderClient, cache: Optional[QueryCache] = None) -> None:
        self.client = client
        self.cache = cache if cache is not None else QueryCache()

    # Reads

    async def list_feeds(self, force_refresh: bool = False) -> list[Feed]:
        return await self.cache.fetch(FEEDS_KEY, self.client.list_feeds, force_refresh)

    async def find_feed(self, feed_id: str) -> Feed:
        """Look a feed up in the loaded feed list."""
        for feed in await self.list_feeds():
            if feed.id == feed_id:
                return feed
        raise NotFoundError(f"Feed {feed_id} not found")

    async def list_articles(
        self,
        feed_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Article]:
        key: tuple[str, ...] = ("articles", feed_id or ALL_ARTICLES)
        if limit is not None or offset is not None:
            key += (f"limit={limit}", f"offset={offset}")
        return await self.cache.fetch(
            key,
            lambda: self.client.list_articles(feed_id=feed_id, limit=limit, offset=offset),
        )

    async def get_article(self, article_id: str) -> Article:
        return await self.cache.fetch(
            ("article", article_id),
            lambda: self.client.get_article(article_id),
        )

    async def get_summary(self, article_id: str) -> Optional[Summary]:
        return await self.cache.fetch(
            ("summary", article_id),
            lambda: self.client.get_summary(article_id),
        )

    async def aggregate_summary(
        self,
        feed_ids: list[str],
        hours_back: Optional[int] = None,
    ) -> FeedAggregation:
        # Generated on every call, never cached
        return await self.client.aggregate_summary(feed_ids, hours_back=hours_back)

    # Writes

    async def create_feed(self, title: str, url: str) -> Feed:
        feed = await self.client.create_feed(title, url)
        logger.info("Feed created", feed_id=feed.id, url=feed.url)
        self.cache.invalidate(*FEEDS_KEY)
        return feed

    async def update_feed(
        self,
        feed_id: str,
        title: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Feed:
        feed = await self.client.update_feed(feed_id, title=title, url=url)
        self.cache.invalidate(*FEEDS_KEY)
        return feed

    async def delete_feed(self, feed_id: str) -> None:
        await self.client.delete_feed(feed_id)
        logger.info("Feed deleted", feed_id=feed_id)
        self.cache.invalidate(*FEEDS_KEY)
        self.cache.invalidate("articles")

    async def refresh_feed(self, feed_id: str) -> RefreshResult:
        result = await self.client.refresh_feed(feed_id)
        logger.info("Feed refreshed", feed_id=feed_id, articles_added=result.articles_added)
        # last_fetched moved and new articles may show up in any list
        self.cache.invalidate(*FEEDS_KEY)
        self.cache.invalidate("articles")
        return result

    async def generate_summary(self, article_id: str) -> Summary:
        summary = await self.client.generate_summary(article_id)
        self.cache.invalidate("summary", article_id)
        return summary
