"""
Wire <-> internal field mapping.

The backend speaks snake_case (``last_fetched``, ``feed_id``); everything on
the client side uses compact camelCase (``lastFetched``, ``feedId``). This
module is the only place where wire field names appear. Each entity has a
fixed table; conversion renames keys through the table, maps nested
collections element-wise and leaves values untouched.

Both directions are strict: a key missing from the table raises
TransformError, as does a required field that is absent. Optional fields
that are absent stay absent, so ``to_wire(e, to_internal(e, x)) == x``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from feedreader.api.errors import TransformError


class Entity(str, Enum):
    """Payload shapes exchanged with the backend."""

    FEED = "feed"
    NEW_FEED = "new_feed"
    FEED_UPDATE = "feed_update"
    REFRESH_RESULT = "refresh_result"
    ARTICLE = "article"
    SUMMARY = "summary"
    FEED_SUMMARY = "feed_summary"
    BULK_FETCH_REQUEST = "bulk_fetch_request"
    BULK_FETCH_RESPONSE = "bulk_fetch_response"
    AGGREGATION_REQUEST = "aggregation_request"
    ARTICLE_SUMMARY_INFO = "article_summary_info"
    FEED_SUMMARY_INFO = "feed_summary_info"
    AGGREGATION = "aggregation"


@dataclass(frozen=True)
class Field:
    wire: str
    internal: str
    optional: bool = False
    # Entity of each element when the value is a list of nested payloads
    items: Optional[Entity] = None


FIELD_TABLES: dict[Entity, tuple[Field, ...]] = {
    Entity.FEED: (
        Field("id", "id"),
        Field("title", "title"),
        Field("url", "url"),
        Field("last_fetched", "lastFetched", optional=True),
        Field("active", "active", optional=True),
        Field("created_at", "createdAt", optional=True),
        Field("updated_at", "updatedAt", optional=True),
    ),
    Entity.NEW_FEED: (
        Field("title", "title"),
        Field("url", "url"),
    ),
    Entity.FEED_UPDATE: (
        Field("title", "title", optional=True),
        Field("url", "url", optional=True),
    ),
    Entity.REFRESH_RESULT: (
        Field("success", "success"),
        Field("feed_id", "feedId"),
        Field("articles_added", "articlesAdded"),
    ),
    Entity.ARTICLE: (
        Field("id", "id"),
        Field("title", "title"),
        Field("url", "url"),
        Field("feed_id", "feedId"),
        Field("content", "content"),
        Field("published_at", "publishedAt", optional=True),
        Field("created_at", "createdAt", optional=True),
        Field("updated_at", "updatedAt", optional=True),
    ),
    Entity.SUMMARY: (
        Field("id", "id"),
        Field("article_id", "articleId"),
        Field("content", "content"),
        Field("created_at", "createdAt"),
        Field("model", "model"),
        Field("updated_at", "updatedAt", optional=True),
    ),
    Entity.FEED_SUMMARY: (
        Field("feed_id", "feedId"),
        Field("feed_title", "feedTitle"),
        Field("article_count", "articleCount"),
    ),
    Entity.BULK_FETCH_REQUEST: (
        Field("feed_ids", "feedIds"),
        Field("start_date", "startDate", optional=True),
        Field("end_date", "endDate", optional=True),
        Field("limit", "limit", optional=True),
        Field("offset", "offset", optional=True),
    ),
    Entity.BULK_FETCH_RESPONSE: (
        Field("articles", "articles", items=Entity.ARTICLE),
        Field("total_count", "totalCount"),
        Field("feed_summaries", "feedSummaries", items=Entity.FEED_SUMMARY),
    ),
    Entity.AGGREGATION_REQUEST: (
        Field("feed_ids", "feedIds"),
        Field("hours_back", "hoursBack", optional=True),
    ),
    Entity.ARTICLE_SUMMARY_INFO: (
        Field("id", "id"),
        Field("title", "title"),
        Field("url", "url"),
        Field("published_at", "publishedAt"),
        Field("summary", "summary", optional=True),
    ),
    Entity.FEED_SUMMARY_INFO: (
        Field("feed_id", "feedId"),
        Field("feed_title", "feedTitle"),
        Field("article_count", "articleCount"),
        Field("articles", "articles", items=Entity.ARTICLE_SUMMARY_INFO),
    ),
    Entity.AGGREGATION: (
        Field("summary", "summary"),
        Field("feeds", "feeds", items=Entity.FEED_SUMMARY_INFO),
        Field("total_articles", "totalArticles"),
        Field("time_range_hours", "timeRangeHours"),
    ),
}


def _convert(entity: Entity, payload: Any, *, outbound: bool) -> dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise TransformError(
            f"{entity.value}: expected an object, got {type(payload).__name__}"
        )

    fields = FIELD_TABLES[entity]
    source = (lambda f: f.internal) if outbound else (lambda f: f.wire)
    target = (lambda f: f.wire) if outbound else (lambda f: f.internal)

    unknown = set(payload) - {source(f) for f in fields}
    if unknown:
        raise TransformError(
            f"{entity.value}: unexpected field(s) {', '.join(sorted(map(str, unknown)))}"
        )

    result: dict[str, Any] = {}
    for field in fields:
        key = source(field)
        if key not in payload:
            if field.optional:
                continue
            raise TransformError(f"{entity.value}: missing required field '{key}'")

        value = payload[key]
        if field.items is not None:
            if not isinstance(value, list):
                raise TransformError(f"{entity.value}: field '{key}' must be a list")
            value = [_convert(field.items, item, outbound=outbound) for item in value]
        result[target(field)] = value

    return result


def to_internal(entity: Entity, wire: Mapping[str, Any]) -> dict[str, Any]:
    """Rename a wire payload's fields to their internal camelCase names."""
    return _convert(entity, wire, outbound=False)


def to_wire(entity: Entity, internal: Mapping[str, Any]) -> dict[str, Any]:
    """Rename an internal payload's fields back to their wire names."""
    return _convert(entity, internal, outbound=True)


def internal_fields(entity: Entity) -> frozenset[str]:
    return frozenset(f.internal for f in FIELD_TABLES[entity])
