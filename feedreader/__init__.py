"""Async client and terminal front end for a feed-reading backend."""

__version__ = "0.1.0"
