"""Shared fixtures."""

import pytest

from payloads import StubBackend


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    """Keep developer env vars and .env files out of the tests."""
    for name in (
        "FEEDREADER_API_BASE_URL",
        "FEEDREADER_API_TIMEOUT",
        "FEEDREADER_PAGE_SIZE",
        "FEEDREADER_CACHE_TTL",
        "LOG_LEVEL",
        "ENV",
        "LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("feedreader.main.load_dotenv", lambda: None)
