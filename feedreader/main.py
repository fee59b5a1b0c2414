"""
Feed Reader Main Entry Point

Terminal front end for the feed-reading backend. Each subcommand is one
screen: it loads what it needs through FeedService, renders it and prints
it. Failures never escape a screen; they are shown as an inline panel and
turned into a non-zero exit code.
"""

import argparse
import asyncio
import sys
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
from dotenv import load_dotenv

from feedreader.api.client import FeedReaderClient
from feedreader.api.errors import FeedReaderError, NotFoundError, SelectionError
from feedreader.config.settings import PAGE_SIZE_CHOICES, AppSettings, get_app_settings
from feedreader.services.bulk_fetch import BulkFetchCoordinator, FetchState
from feedreader.services.feed_service import FeedService
from feedreader.services.query_cache import QueryCache
from feedreader.utils import display
from feedreader.utils.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)

logger = get_logger(__name__)

Handler = Callable[[FeedService, argparse.Namespace, AppSettings], Awaitable[int]]


@dataclass(frozen=True)
class Screen:
    handler: Handler
    error_message: str
    not_found_message: str = "The requested item was not found."


def _emit(text: str) -> None:
    print(text)


async def _feeds_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    _emit(display.render_feeds(await service.list_feeds()))
    return 0


async def _add_feed_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    feed = await service.create_feed(args.title, args.url)
    _emit(display.render_feed(feed, heading="Added feed"))
    return 0


async def _update_feed_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    if args.title is None and args.url is None:
        _emit(display.render_error("Nothing to update: pass --title and/or --url"))
        return 2
    feed = await service.update_feed(args.feed_id, title=args.title, url=args.url)
    _emit(display.render_feed(feed, heading="Updated feed"))
    return 0


async def _delete_feed_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    await service.delete_feed(args.feed_id)
    _emit(f"Deleted feed {args.feed_id}")
    return 0


async def _refresh_feed_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    _emit(display.render_refresh(await service.refresh_feed(args.feed_id)))
    return 0


async def _articles_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    feed = None
    if args.feed:
        feed = await service.find_feed(args.feed)
        articles = await service.list_articles(feed.id, limit=args.limit, offset=args.offset)
    else:
        articles = await service.list_articles(limit=args.limit, offset=args.offset)
    _emit(display.render_articles(articles, feed=feed))
    return 0


async def _article_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    article = await service.get_article(args.article_id)
    if args.summarize:
        summary = await service.generate_summary(article.id)
    else:
        summary = await service.get_summary(article.id)
    _emit(display.render_article(article, summary))
    return 0


async def _bulk_fetch_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    feed_ids = list(args.feed_ids)
    if args.all_feeds:
        feed_ids = [feed.id for feed in await service.list_feeds()]

    coordinator = BulkFetchCoordinator(service.client.bulk_fetch)
    await coordinator.submit(
        feed_ids,
        start_date=args.start,
        end_date=args.end,
        page_size=settings.bulk_fetch.page_size,
    )
    if coordinator.state is FetchState.ERROR:
        raise coordinator.error

    pages = 1
    while coordinator.has_more and (args.all_pages or pages < args.pages):
        before = len(coordinator.articles)
        await coordinator.load_more()
        pages += 1
        if coordinator.state is FetchState.ERROR:
            break
        if len(coordinator.articles) == before:
            # total_count still promises more but the backend has run dry
            logger.info("Bulk fetch page came back empty", offset=coordinator.offset)
            break

    _emit(display.render_bulk_results(coordinator))
    if coordinator.state is FetchState.ERROR:
        logger.warning("Load more failed", error=str(coordinator.error))
        _emit(display.render_error("Failed to load more articles"))
        return 1
    return 0


async def _digest_screen(service: FeedService, args: argparse.Namespace, settings: AppSettings) -> int:
    aggregation = await service.aggregate_summary(args.feed_ids, hours_back=args.hours_back)
    _emit(display.render_aggregation(aggregation))
    return 0


SCREENS: dict[str, Screen] = {
    "feeds": Screen(_feeds_screen, "Failed to load feeds"),
    "add-feed": Screen(_add_feed_screen, "Failed to add feed"),
    "update-feed": Screen(_update_feed_screen, "Failed to update feed", "Feed not found"),
    "delete-feed": Screen(_delete_feed_screen, "Failed to delete feed", "Feed not found"),
    "refresh-feed": Screen(_refresh_feed_screen, "Failed to refresh feed", "Feed not found"),
    "articles": Screen(_articles_screen, "Error loading articles", "Feed not found"),
    "article": Screen(
        _article_screen,
        "Error loading article",
        "Error loading article. It may have been removed or is unavailable.",
    ),
    "bulk-fetch": Screen(_bulk_fetch_screen, "Failed to fetch articles", "Feed not found"),
    "digest": Screen(_digest_screen, "Failed to generate digest", "Feed not found"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedreader",
        description="Feed Reader - browse feeds, articles and AI summaries",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Backend API base URL (default: FEEDREADER_API_BASE_URL or http://localhost:3000/api)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every request to stderr",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write JSON log lines to this file (default: LOG_FILE)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("feeds", help="List feeds")

    add = sub.add_parser("add-feed", help="Subscribe to a feed")
    add.add_argument("title")
    add.add_argument("url")

    update = sub.add_parser("update-feed", help="Rename a feed or change its URL")
    update.add_argument("feed_id")
    update.add_argument("--title", default=None)
    update.add_argument("--url", default=None)

    delete = sub.add_parser("delete-feed", help="Unsubscribe from a feed")
    delete.add_argument("feed_id")

    refresh = sub.add_parser("refresh-feed", help="Ask the backend to re-fetch a feed")
    refresh.add_argument("feed_id")

    articles = sub.add_parser("articles", help="List latest articles")
    articles.add_argument("--feed", default=None, help="Only articles of this feed")
    articles.add_argument("--limit", type=int, default=None, help="Maximum number of articles")
    articles.add_argument("--offset", type=int, default=None, help="Articles to skip")

    article = sub.add_parser("article", help="Show an article and its summary")
    article.add_argument("article_id")
    article.add_argument(
        "--summarize",
        action="store_true",
        help="Generate a new AI summary before showing the article",
    )

    bulk = sub.add_parser("bulk-fetch", help="Fetch articles across feeds")
    bulk.add_argument("feed_ids", nargs="*", help="Feeds to include")
    bulk.add_argument("--all-feeds", action="store_true", help="Select every feed")
    bulk.add_argument("--start", default=None, help="Earliest publication time (ISO 8601)")
    bulk.add_argument("--end", default=None, help="Latest publication time (ISO 8601)")
    bulk.add_argument(
        "--page-size",
        type=int,
        default=None,
        choices=PAGE_SIZE_CHOICES,
        help="Articles per page (default: FEEDREADER_PAGE_SIZE or 50)",
    )
    bulk.add_argument("--pages", type=int, default=1, help="Number of pages to load (default: 1)")
    bulk.add_argument("--all-pages", action="store_true", help="Keep loading until exhausted")

    digest = sub.add_parser("digest", help="AI digest of recent articles across feeds")
    digest.add_argument("feed_ids", nargs="+")
    digest.add_argument("--hours-back", type=int, default=None, help="Time window (default: 24)")

    return parser


async def main(
    argv: Optional[list[str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Run one screen and return the process exit code.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
        transport: Optional httpx transport, used to point the client at a
            stub backend.
    """
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        settings = get_app_settings(
            base_url_override=args.base_url,
            page_size_override=getattr(args, "page_size", None),
        )
    except ValueError as e:
        _emit(display.render_error(str(e)))
        return 2

    screen = SCREENS[args.command]
    bind_context(request_id=str(uuid.uuid4())[:8], command=args.command)
    try:
        async with FeedReaderClient.from_settings(settings.api, transport=transport) as client:
            service = FeedService(client, QueryCache(ttl_seconds=settings.cache.ttl_seconds))
            return await screen.handler(service, args, settings)
    except SelectionError as e:
        _emit(display.render_error(str(e)))
        return 2
    except NotFoundError as e:
        logger.info("Not found", command=args.command, error=str(e))
        _emit(display.render_not_found(screen.not_found_message))
        return 1
    except FeedReaderError as e:
        logger.warning("Screen failed", command=args.command, error=str(e))
        _emit(display.render_error(screen.error_message))
        return 1
    finally:
        clear_context()


def run_cli() -> None:
    """CLI entry point for the feed reader."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run_cli()
