"""Wire payload factories and an in-memory stub backend for the tests."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, FastAPI
from fastapi.responses import JSONResponse

# ---------------------------------------------------------------------------
# Wire payload factories (snake_case, as the backend sends them)
# ---------------------------------------------------------------------------


STAMP = "2025-06-01T08:00:00Z"


def wire_feed(feed_id: str = "f1", title: str = "Feed A", **extra: Any) -> dict:
    feed = {
        "id": feed_id,
        "title": title,
        "url": f"https://{feed_id}.example.com/rss",
        "active": True,
        "last_fetched": None,
        "created_at": STAMP,
        "updated_at": STAMP,
    }
    feed.update(extra)
    return feed


def wire_article(
    article_id: str = "a1",
    feed_id: str = "f1",
    published_at: Optional[str] = "2025-06-15T10:00:00Z",
) -> dict:
    article = {
        "id": article_id,
        "title": f"Article {article_id}",
        "url": f"https://{feed_id}.example.com/{article_id}",
        "feed_id": feed_id,
        "content": f"<p>Body of <b>{article_id}</b></p>",
        "created_at": STAMP,
        "updated_at": STAMP,
    }
    if published_at is not None:
        article["published_at"] = published_at
    return article


def wire_summary(article_id: str = "a1") -> dict:
    return {
        "id": f"s-{article_id}",
        "article_id": article_id,
        "content": f"Summary of {article_id}",
        "model": "gpt-4o-mini",
        "created_at": "2025-06-15T12:00:00Z",
        "updated_at": "2025-06-15T12:00:00Z",
    }


def wire_bulk_response(
    articles: list[dict],
    total_count: int,
    feed_summaries: Optional[list[dict]] = None,
) -> dict:
    return {
        "articles": articles,
        "total_count": total_count,
        "feed_summaries": feed_summaries or [],
    }


def _error(status_code: int, message: str, kind: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message, "type": kind}},
    )


# ---------------------------------------------------------------------------
# Stub backend
# ---------------------------------------------------------------------------


class StubBackend:
    """In-memory stand-in for the feed backend, mounted under /api."""

    def __init__(self) -> None:
        self.feeds: dict[str, dict] = {}
        self.articles: dict[str, dict] = {}
        self.summaries: dict[str, dict] = {}
        self.bulk_requests: list[dict] = []
        self.fail_bulk_from_offset: Optional[int] = None
        # Reported total_count regardless of what matches, as when rows vanish mid-paging
        self.bulk_total_override: Optional[int] = None
        self._next_id = 1
        self.app = FastAPI()
        self.app.include_router(self._router(), prefix="/api")

    def add_feed(self, feed_id: str, title: str) -> dict:
        self.feeds[feed_id] = wire_feed(feed_id, title)
        return self.feeds[feed_id]

    def add_article(self, article_id: str, feed_id: str, published_at: Optional[str]) -> dict:
        self.articles[article_id] = wire_article(article_id, feed_id, published_at)
        return self.articles[article_id]

    def _router(self) -> APIRouter:
        router = APIRouter()

        @router.get("/feeds")
        async def list_feeds():
            return list(self.feeds.values())

        @router.post("/feeds", status_code=201)
        async def create_feed(payload: dict = Body(...)):
            feed_id = f"new-{self._next_id}"
            self._next_id += 1
            self.feeds[feed_id] = wire_feed(feed_id, payload["title"], url=payload["url"])
            return self.feeds[feed_id]

        @router.post("/feeds/aggregate-summary")
        async def aggregate(payload: dict = Body(...)):
            feeds = []
            for feed_id in payload["feed_ids"]:
                matched = [a for a in self.articles.values() if a["feed_id"] == feed_id]
                feeds.append({
                    "feed_id": feed_id,
                    "feed_title": self.feeds[feed_id]["title"],
                    "article_count": len(matched),
                    "articles": [
                        {
                            "id": a["id"],
                            "title": a["title"],
                            "url": a["url"],
                            "published_at": a.get("published_at", ""),
                        }
                        for a in matched
                    ],
                })
            return {
                "summary": "Quiet day.",
                "feeds": feeds,
                "total_articles": sum(f["article_count"] for f in feeds),
                "time_range_hours": payload.get("hours_back", 24),
            }

        @router.get("/feeds/{feed_id}")
        async def get_feed(feed_id: str):
            if feed_id not in self.feeds:
                return _error(404, f"Feed with ID {feed_id} not found", "NotFound")
            return self.feeds[feed_id]

        @router.put("/feeds/{feed_id}")
        async def update_feed(feed_id: str, payload: dict = Body(...)):
            if feed_id not in self.feeds:
                return _error(404, f"Feed with ID {feed_id} not found", "NotFound")
            self.feeds[feed_id].update(payload)
            return self.feeds[feed_id]

        @router.post("/feeds/{feed_id}/refresh")
        async def refresh_feed(feed_id: str):
            if feed_id not in self.feeds:
                return _error(404, f"Feed with ID {feed_id} not found", "NotFound")
            self.feeds[feed_id]["last_fetched"] = "2025-06-15T12:00:00Z"
            return {"success": True, "feed_id": feed_id, "articles_added": 0}

        @router.delete("/feeds/{feed_id}")
        async def delete_feed(feed_id: str):
            if self.feeds.pop(feed_id, None) is None:
                return _error(404, f"Feed with ID {feed_id} not found", "NotFound")
            return {"success": True}

        @router.get("/feeds/{feed_id}/articles")
        async def feed_articles(feed_id: str, limit: Optional[int] = None, offset: int = 0):
            if feed_id not in self.feeds:
                return _error(404, f"Feed with ID {feed_id} not found", "NotFound")
            matched = [a for a in self.articles.values() if a["feed_id"] == feed_id]
            return matched[offset:offset + limit if limit is not None else None]

        @router.get("/articles")
        async def list_articles(limit: Optional[int] = None, offset: int = 0):
            matched = list(self.articles.values())
            return matched[offset:offset + limit if limit is not None else None]

        @router.post("/articles/bulk-fetch")
        async def bulk_fetch(payload: dict = Body(...)):
            self.bulk_requests.append(payload)
            offset = payload.get("offset", 0)
            limit = payload.get("limit", 100)
            if self.fail_bulk_from_offset is not None and offset >= self.fail_bulk_from_offset:
                return _error(500, "database unavailable", "DatabaseError")

            matched = [
                a for a in self.articles.values()
                if a["feed_id"] in payload["feed_ids"]
                and ("start_date" not in payload or a.get("published_at", "") >= payload["start_date"])
                and ("end_date" not in payload or a.get("published_at", "") <= payload["end_date"])
            ]
            matched.sort(key=lambda a: a.get("published_at", ""), reverse=True)
            summaries = []
            for feed_id in payload["feed_ids"]:
                count = sum(1 for a in matched if a["feed_id"] == feed_id)
                if count:
                    summaries.append({
                        "feed_id": feed_id,
                        "feed_title": self.feeds[feed_id]["title"],
                        "article_count": count,
                    })
            total = len(matched) if self.bulk_total_override is None else self.bulk_total_override
            return wire_bulk_response(matched[offset:offset + limit], total, summaries)

        @router.get("/articles/{article_id}")
        async def get_article(article_id: str):
            if article_id not in self.articles:
                return _error(404, f"Article with ID {article_id} not found", "NotFound")
            return self.articles[article_id]

        @router.get("/articles/{article_id}/summary")
        async def get_summary(article_id: str):
            if article_id not in self.articles:
                return _error(404, f"Article with ID {article_id} not found", "NotFound")
            return self.summaries.get(article_id)

        @router.post("/articles/{article_id}/summary")
        async def create_summary(article_id: str):
            if article_id not in self.articles:
                return _error(404, f"Article with ID {article_id} not found", "NotFound")
            self.summaries[article_id] = wire_summary(article_id)
            return self.summaries[article_id]

        return router
