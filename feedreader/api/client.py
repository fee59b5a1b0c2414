"""
Feed Reader API Client

Async REST client for the feed-reading backend. Every payload passes through
the transform layer, so the rest of the package only sees internal models.

Failures are mapped onto ``feedreader.api.errors``:
- HTTP 404 -> NotFoundError
- any other failed request -> TransportError (no automatic retry)
- a body that does not match its entity -> TransformError
"""

import time
from typing import Any, Optional
from urllib.parse import quote

import httpx

from feedreader.api.errors import NotFoundError, TransportError
from feedreader.api.schemas import (
    AggregationRequest,
    Article,
    BulkFetchRequest,
    BulkFetchResponse,
    Feed,
    FeedAggregation,
    FeedUpdate,
    NewFeed,
    RefreshResult,
    Summary,
    decode,
    decode_list,
    encode,
)
from feedreader.api.transform import Entity
from feedreader.config.settings import APISettings
from feedreader.utils.logging_config import get_logger

logger = get_logger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _error_message(response: httpx.Response) -> Optional[str]:
    """Extract ``error.message`` from a backend error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return None


class FeedReaderClient:
    """Thin async wrapper over ``httpx.AsyncClient``, one method per endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_settings(
        cls,
        settings: APISettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "FeedReaderClient":
        return cls(base_url=settings.base_url, timeout=settings.timeout, transport=transport)

    async def __aenter__(self) -> "FeedReaderClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        start_time = time.perf_counter()
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning("Request timed out", method=method, path=path)
            raise TransportError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            logger.warning("Request failed", method=method, path=path, error=str(e))
            raise TransportError(f"{method} {path} failed: {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_method = logger.debug if response.status_code < 400 else logger.warning
        log_method(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        if response.status_code == 404:
            raise NotFoundError(_error_message(response) or f"{path} not found")
        if response.is_error:
            message = _error_message(response) or f"HTTP {response.status_code}"
            raise TransportError(
                f"{method} {path} failed: {message}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned an invalid JSON body",
                status_code=response.status_code,
            ) from e

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    async def list_feeds(self) -> list[Feed]:
        return decode_list(Entity.FEED, await self._request("GET", "/feeds"))

    async def get_feed(self, feed_id: str) -> Feed:
        data = await self._request("GET", f"/feeds/{_segment(feed_id)}")
        return decode(Entity.FEED, data)

    async def create_feed(self, title: str, url: str) -> Feed:
        body = encode(Entity.NEW_FEED, NewFeed(title=title, url=url))
        return decode(Entity.FEED, await self._request("POST", "/feeds", json=body))

    async def update_feed(
        self,
        feed_id: str,
        title: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Feed:
        body = encode(Entity.FEED_UPDATE, FeedUpdate(title=title, url=url))
        data = await self._request("PUT", f"/feeds/{_segment(feed_id)}", json=body)
        return decode(Entity.FEED, data)

    async def delete_feed(self, feed_id: str) -> None:
        await self._request("DELETE", f"/feeds/{_segment(feed_id)}")

    async def refresh_feed(self, feed_id: str) -> RefreshResult:
        data = await self._request("POST", f"/feeds/{_segment(feed_id)}/refresh")
        return decode(Entity.REFRESH_RESULT, data)

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    async def list_articles(
        self,
        feed_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[Article]:
        path = f"/feeds/{_segment(feed_id)}/articles" if feed_id else "/articles"
        params = {k: v for k, v in (("limit", limit), ("offset", offset)) if v is not None}
        data = await self._request("GET", path, params=params or None)
        return decode_list(Entity.ARTICLE, data)

    async def get_article(self, article_id: str) -> Article:
        data = await self._request("GET", f"/articles/{_segment(article_id)}")
        return decode(Entity.ARTICLE, data)

    async def bulk_fetch(self, request: BulkFetchRequest) -> BulkFetchResponse:
        body = encode(Entity.BULK_FETCH_REQUEST, request)
        data = await self._request("POST", "/articles/bulk-fetch", json=body)
        return decode(Entity.BULK_FETCH_RESPONSE, data)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def get_summary(self, article_id: str) -> Optional[Summary]:
        """Return the latest summary, or None if none was generated yet.

        Raises NotFoundError when the article itself does not exist.
        """
        data = await self._request("GET", f"/articles/{_segment(article_id)}/summary")
        if not data:
            return None
        return decode(Entity.SUMMARY, data)

    async def generate_summary(self, article_id: str) -> Summary:
        data = await self._request("POST", f"/articles/{_segment(article_id)}/summary")
        return decode(Entity.SUMMARY, data)

    async def aggregate_summary(
        self,
        feed_ids: list[str],
        hours_back: Optional[int] = None,
    ) -> FeedAggregation:
        body = encode(
            Entity.AGGREGATION_REQUEST,
            AggregationRequest(feed_ids=feed_ids, hours_back=hours_back),
        )
        data = await self._request("POST", "/feeds/aggregate-summary", json=body)
        return decode(Entity.AGGREGATION, data)
