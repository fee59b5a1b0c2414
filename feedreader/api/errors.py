"""Exception hierarchy for the feed reader client."""

from typing import Optional


class FeedReaderError(Exception):
    """Base class for every error raised by the client."""


class SelectionError(FeedReaderError):
    """A bulk fetch was submitted without any feed selected."""


class TransformError(FeedReaderError):
    """A payload does not match the field table of its entity."""


class TransportError(FeedReaderError):
    """A request failed: connection, timeout, bad status or bad body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TransportError):
    """The backend answered 404 for the requested resource."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)
