"""
Screen Rendering

Turns models into plain-text screens for the terminal. Every function returns
a string; printing is left to the caller.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, Optional

from feedreader.api.schemas import Article, Feed, FeedAggregation, RefreshResult, Summary
from feedreader.services.bulk_fetch import BulkFetchCoordinator

RULE = "=" * 60
THIN_RULE = "-" * 60

NO_FEEDS = "No feeds yet. Add one with: feedreader add-feed TITLE URL"
NO_ARTICLES = "No articles yet"
NO_DATE = "No date available"
NO_PREVIEW = "No preview available"
NO_SUMMARY = "No summary available for this article yet."

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_html(raw: str, max_len: int = 200) -> Optional[str]:
    """Strip HTML tags, collapse whitespace and truncate to *max_len*."""
    text = _WHITESPACE_RE.sub(" ", _HTML_TAG_RE.sub(" ", raw)).strip()
    if not text:
        return None
    return text[:max_len] + ("..." if len(text) > max_len else "")


def format_date(value: Optional[str]) -> str:
    if not value:
        return NO_DATE
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%b %d, %Y, %I:%M %p")


def _panel(title: str, message: str) -> str:
    return f"{RULE}\n{title}\n{THIN_RULE}\n{message}\n{RULE}"


def render_error(message: str) -> str:
    return _panel("Error", message)


def render_not_found(message: str) -> str:
    return _panel("Not found", message)


def render_feeds(feeds: list[Feed]) -> str:
    if not feeds:
        return NO_FEEDS

    lines = [f"Your Feeds ({len(feeds)})", THIN_RULE]
    for feed in feeds:
        status = "  (inactive)" if feed.active is False else ""
        lines.append(f"{feed.title}  [{feed.id}]{status}")
        lines.append(f"  {feed.url}")
        lines.append(f"  Last fetched: {format_date(feed.last_fetched) if feed.last_fetched else 'never'}")
    return "\n".join(lines)


def render_feed(feed: Feed, heading: str = "Feed") -> str:
    return f"{heading}: {feed.title} [{feed.id}]\n  {feed.url}"


def render_refresh(result: RefreshResult) -> str:
    return f"Refreshed feed {result.feed_id}: {result.articles_added} new article(s)"


def _article_lines(article: Article) -> list[str]:
    preview = strip_html(article.content) or NO_PREVIEW
    return [
        f"{article.title}  [{article.id}]",
        f"  {article.url}",
        f"  Published: {format_date(article.published_at)}",
        f"  {preview}",
    ]


def render_articles(articles: Iterable[Article], feed: Optional[Feed] = None) -> str:
    articles = list(articles)
    heading = f"{feed.title} ({feed.url})" if feed else "Latest Articles"
    if not articles:
        return f"{heading}\n{THIN_RULE}\n{NO_ARTICLES}"

    lines = [heading, THIN_RULE]
    for article in articles:
        lines.extend(_article_lines(article))
        lines.append("")
    return "\n".join(lines).rstrip()


def render_article(article: Article, summary: Optional[Summary]) -> str:
    lines = [
        RULE,
        article.title,
        f"Published: {format_date(article.published_at)}",
        article.url,
        THIN_RULE,
        "AI Summary",
    ]
    if summary is None:
        lines.append(NO_SUMMARY)
    else:
        lines.append(summary.content)
        lines.append(f"Generated by {summary.model} on {format_date(summary.created_at)}")
    lines.append(THIN_RULE)
    lines.append(strip_html(article.content, max_len=4000) or NO_PREVIEW)
    lines.append(RULE)
    return "\n".join(lines)


def render_bulk_results(coordinator: BulkFetchCoordinator) -> str:
    """Render the accumulated result set of a bulk fetch."""
    lines = [
        "Fetch Results",
        f"Found {coordinator.total_count} total articles. "
        f"Showing {len(coordinator.articles)} articles.",
    ]
    if coordinator.feed_summaries:
        lines.append("Articles per Feed:")
        for item in coordinator.feed_summaries:
            lines.append(f"  {item.feed_title}: {item.article_count} articles")

    lines.append(THIN_RULE)
    lines.append(f"Articles ({len(coordinator.articles)})")
    for article in coordinator.articles:
        lines.extend(_article_lines(article))
        lines.append("")

    if coordinator.has_more:
        lines.append(f"Load More ({coordinator.remaining} remaining)")
    return "\n".join(lines).rstrip()


def render_aggregation(aggregation: FeedAggregation) -> str:
    lines = [
        RULE,
        f"Digest of {aggregation.total_articles} articles "
        f"from the last {aggregation.time_range_hours} hours",
        THIN_RULE,
        aggregation.summary,
        THIN_RULE,
    ]
    for feed in aggregation.feeds:
        lines.append(f"{feed.feed_title}: {feed.article_count} articles")
        for article in feed.articles:
            lines.append(f"  - {article.title} ({format_date(article.published_at)})")
    lines.append(RULE)
    return "\n".join(lines)
