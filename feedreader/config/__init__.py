"""Configuration module for the feed reader client."""

from feedreader.config.settings import (
    PAGE_SIZE_CHOICES,
    AppSettings,
    get_app_settings,
    resolve_api_settings,
)

__all__ = [
    "AppSettings",
    "PAGE_SIZE_CHOICES",
    "get_app_settings",
    "resolve_api_settings",
]
