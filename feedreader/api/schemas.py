"""Pydantic models for backend payloads.

Models are validated from the internal (camelCase) dicts produced by
``feedreader.api.transform`` and dumped back through the same aliases.
Timestamps stay ISO 8601 strings; the client never parses them.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from feedreader.api.errors import TransformError
from feedreader.api.transform import Entity, to_internal, to_wire


class _InternalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class Feed(_InternalModel):
    """A subscribed RSS/Atom source."""

    id: str
    title: str
    url: str
    last_fetched: Optional[str] = None  # ISO 8601
    active: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class NewFeed(_InternalModel):
    """Body of a feed creation request (a Feed minus its identifier)."""

    title: str
    url: str


class FeedUpdate(_InternalModel):
    title: Optional[str] = None
    url: Optional[str] = None


class RefreshResult(_InternalModel):
    success: bool
    feed_id: str
    articles_added: int


class Article(_InternalModel):
    """A single article; ``content`` is an HTML string."""

    id: str
    title: str
    url: str
    feed_id: str
    content: str
    published_at: Optional[str] = None  # None means no date available
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Summary(_InternalModel):
    """AI-generated summary of an article."""

    id: str
    article_id: str
    content: str
    created_at: str
    model: str
    updated_at: Optional[str] = None


class FeedSummary(_InternalModel):
    """Per-feed count over the whole matched set of a bulk fetch."""

    feed_id: str
    feed_title: str
    article_count: int


class BulkFetchRequest(_InternalModel):
    feed_ids: list[str]
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class BulkFetchResponse(_InternalModel):
    articles: list[Article]
    total_count: int
    feed_summaries: list[FeedSummary]


class AggregationRequest(_InternalModel):
    feed_ids: list[str]
    hours_back: Optional[int] = None  # backend defaults to 24


class ArticleSummaryInfo(_InternalModel):
    id: str
    title: str
    url: str
    published_at: str
    summary: Optional[str] = None


class FeedSummaryInfo(_InternalModel):
    feed_id: str
    feed_title: str
    article_count: int
    articles: list[ArticleSummaryInfo]


class FeedAggregation(_InternalModel):
    """Combined summary over recent articles of several feeds."""

    summary: str
    feeds: list[FeedSummaryInfo]
    total_articles: int
    time_range_hours: int


ENTITY_MODELS: dict[Entity, type[_InternalModel]] = {
    Entity.FEED: Feed,
    Entity.NEW_FEED: NewFeed,
    Entity.FEED_UPDATE: FeedUpdate,
    Entity.REFRESH_RESULT: RefreshResult,
    Entity.ARTICLE: Article,
    Entity.SUMMARY: Summary,
    Entity.FEED_SUMMARY: FeedSummary,
    Entity.BULK_FETCH_REQUEST: BulkFetchRequest,
    Entity.BULK_FETCH_RESPONSE: BulkFetchResponse,
    Entity.AGGREGATION_REQUEST: AggregationRequest,
    Entity.ARTICLE_SUMMARY_INFO: ArticleSummaryInfo,
    Entity.FEED_SUMMARY_INFO: FeedSummaryInfo,
    Entity.AGGREGATION: FeedAggregation,
}


def decode(entity: Entity, payload: Any) -> Any:
    """Build the model for *entity* from a wire payload."""
    model = ENTITY_MODELS[entity]
    try:
        return model.model_validate(to_internal(entity, payload))
    except ValidationError as e:
        raise TransformError(f"{entity.value}: {e.error_count()} invalid value(s)") from e


def decode_list(entity: Entity, payload: Any) -> list:
    if not isinstance(payload, list):
        raise TransformError(f"{entity.value}: expected a list, got {type(payload).__name__}")
    return [decode(entity, item) for item in payload]


def encode(entity: Entity, model: _InternalModel) -> dict[str, Any]:
    """Dump *model* to a wire payload, leaving out unset optional fields."""
    return to_wire(entity, model.model_dump(by_alias=True, exclude_none=True))
