"""Tests for FeedService caching and post-mutation invalidation."""

from unittest.mock import AsyncMock

import pytest

from feedreader.api.errors import NotFoundError, TransportError
from feedreader.api.schemas import decode
from feedreader.api.transform import Entity
from feedreader.services.feed_service import FEEDS_KEY, FeedService
from feedreader.services.query_cache import QueryCache
from payloads import wire_article, wire_feed, wire_summary


def _feed(feed_id: str = "f1", title: str = "Feed A"):
    return decode(Entity.FEED, wire_feed(feed_id, title))


def _article(article_id: str = "a1", feed_id: str = "f1"):
    return decode(Entity.ARTICLE, wire_article(article_id, feed_id))


@pytest.fixture
def client() -> AsyncMock:
    client = AsyncMock()
    client.list_feeds.return_value = [_feed("f1"), _feed("f2", "Feed B")]
    client.list_articles.return_value = [_article()]
    client.get_article.return_value = _article()
    client.get_summary.return_value = None
    client.generate_summary.return_value = decode(Entity.SUMMARY, wire_summary())
    client.create_feed.return_value = _feed("f3", "Feed C")
    client.update_feed.return_value = _feed("f1", "Renamed")
    client.refresh_feed.return_value = decode(
        Entity.REFRESH_RESULT, {"success": True, "feed_id": "f1", "articles_added": 2}
    )
    return client


@pytest.fixture
def service(client) -> FeedService:
    return FeedService(client, QueryCache())


async def test_list_feeds_is_cached(service, client):
    await service.list_feeds()
    await service.list_feeds()

    client.list_feeds.assert_awaited_once()


async def test_list_feeds_force_refresh(service, client):
    await service.list_feeds()
    await service.list_feeds(force_refresh=True)

    assert client.list_feeds.await_count == 2


async def test_find_feed_uses_loaded_list(service, client):
    feed = await service.find_feed("f2")

    assert feed.title == "Feed B"
    client.get_feed.assert_not_called()


async def test_find_feed_missing_raises_not_found(service):
    with pytest.raises(NotFoundError, match="zz"):
        await service.find_feed("zz")


async def test_articles_are_cached_per_feed(service, client):
    await service.list_articles("f1")
    await service.list_articles("f1")
    await service.list_articles()

    assert client.list_articles.await_count == 2
    assert ("articles", "f1") in service.cache
    assert ("articles", "*") in service.cache


async def test_missing_summary_is_cached_as_none(service, client):
    assert await service.get_summary("a1") is None
    assert await service.get_summary("a1") is None
    # None is a real value, not a miss
    client.get_summary.assert_awaited_once()


async def test_create_feed_invalidates_feed_list(service, client):
    await service.list_feeds()

    await service.create_feed("Feed C", "https://c.example.com/rss")
    await service.list_feeds()

    client.create_feed.assert_awaited_once_with("Feed C", "https://c.example.com/rss")
    assert client.list_feeds.await_count == 2


async def test_update_feed_invalidates_feed_list(service, client):
    await service.list_feeds()

    await service.update_feed("f1", title="Renamed")

    client.update_feed.assert_awaited_once_with("f1", title="Renamed", url=None)
    assert FEEDS_KEY not in service.cache


async def test_delete_feed_invalidates_feeds_and_articles(service, client):
    await service.list_feeds()
    await service.list_articles("f1")
    await service.list_articles()
    await service.get_article("a1")

    await service.delete_feed("f1")

    assert FEEDS_KEY not in service.cache
    assert ("articles", "f1") not in service.cache
    assert ("articles", "*") not in service.cache
    assert ("article", "a1") in service.cache


async def test_refresh_feed_invalidates_feeds_and_articles(service, client):
    await service.list_feeds()
    await service.list_articles("f2")

    result = await service.refresh_feed("f1")

    assert result.articles_added == 2
    assert FEEDS_KEY not in service.cache
    assert ("articles", "f2") not in service.cache


async def test_generate_summary_replaces_cached_summary(service, client):
    assert await service.get_summary("a1") is None
    await service.get_summary("a2")

    summary = await service.generate_summary("a1")
    client.get_summary.return_value = summary

    assert await service.get_summary("a1") == summary
    assert ("summary", "a2") in service.cache


async def test_failed_mutation_keeps_cache(service, client):
    await service.list_feeds()
    client.delete_feed.side_effect = TransportError("DELETE /feeds/f1 failed: HTTP 500", status_code=500)

    with pytest.raises(TransportError):
        await service.delete_feed("f1")

    assert FEEDS_KEY in service.cache
    client.list_feeds.assert_awaited_once()


async def test_aggregate_summary_is_never_cached(service, client):
    await service.aggregate_summary(["f1"], hours_back=6)
    await service.aggregate_summary(["f1"], hours_back=6)

    assert client.aggregate_summary.await_count == 2
    client.aggregate_summary.assert_awaited_with(["f1"], hours_back=6)
