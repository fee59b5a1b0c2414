"""Backend API access: client, payload models and field mapping."""

from feedreader.api.client import FeedReaderClient
from feedreader.api.errors import (
    FeedReaderError,
    NotFoundError,
    SelectionError,
    TransformError,
    TransportError,
)
from feedreader.api.transform import Entity, to_internal, to_wire

__all__ = [
    "Entity",
    "FeedReaderClient",
    "FeedReaderError",
    "NotFoundError",
    "SelectionError",
    "TransformError",
    "TransportError",
    "to_internal",
    "to_wire",
]
