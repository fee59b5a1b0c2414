"""Services used by the screens."""

from feedreader.services.bulk_fetch import BulkFetchCoordinator, FetchState
from feedreader.services.feed_service import FeedService
from feedreader.services.query_cache import QueryCache

__all__ = [
    "BulkFetchCoordinator",
    "FeedService",
    "FetchState",
    "QueryCache",
]
