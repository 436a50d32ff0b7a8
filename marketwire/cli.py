"""
Command-line interface for Marketwire.
"""
import os
import sys
import json
import argparse
import logging
import asyncio
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv

from marketwire.config import CONFIG_PATH_ENV, Config
from marketwire.core.aggregator import build_aggregator
from marketwire.core.article import Article
from marketwire.core.errors import StorageError
from marketwire.core.views import breaking_ticker, filter_by_category, paginate, search

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Marketwire - Financial News Aggregator")
    parser.add_argument("--config", help="Path to a YAML or JSON config file")
    parser.add_argument("--archive", help="Path to the archive database")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    def add_view_options(sub):
        sub.add_argument("--category", default="All", help="Only show this category")
        sub.add_argument("--search", help="Only show articles matching this text")
        sub.add_argument("--breaking", action="store_true", help="Only show the breaking-news ticker")
        sub.add_argument("--limit", type=int, default=20, help="Number of articles to show")
        sub.add_argument("--json", action="store_true", help="Print articles as JSON")

    fetch = subparsers.add_parser("fetch", help="Fetch feeds once and print the merged news")
    add_view_options(fetch)

    watch = subparsers.add_parser("watch", help="Refresh the news on an interval")
    add_view_options(watch)
    watch.add_argument("--interval", type=float, help="Seconds between refreshes")
    watch.add_argument("--iterations", type=int, help="Stop after this many refreshes")

    archive = subparsers.add_parser("archive", help="Inspect the stored archive")
    archive.add_argument("--clear", action="store_true", help="Delete the stored archive")

    parser.set_defaults(command="fetch", category="All", search=None, breaking=False, limit=20, json=False)
    return parser.parse_args(argv)


def select(articles: List[Article], args: argparse.Namespace) -> List[Article]:
    """Apply the view options to an article list."""
    selected = filter_by_category(articles, args.category)
    if args.search:
        selected = search(selected, args.search)
    if args.breaking:
        return breaking_ticker(selected, limit=args.limit)
    return paginate(selected, args.limit).articles


def render(articles: List[Article], as_json: bool = False) -> str:
    if as_json:
        return json.dumps([a.to_dict() for a in articles], indent=2)
    lines = []
    for article in articles:
        flag = "!" if article.is_breaking else " "
        lines.append(
            f"{flag} {article.timestamp:>6}  {article.sentiment.value:<7}  "
            f"[{article.category}] {article.headline} ({article.author})"
        )
    return "\n".join(lines)


async def run_fetch(cfg: Config, args: argparse.Namespace) -> int:
    async with build_aggregator(cfg, show_progress=not args.json) as aggregator:
        articles = await aggregator.fetch_market_news()
    print(render(select(articles, args), as_json=args.json))
    return 0


async def run_watch(cfg: Config, args: argparse.Namespace) -> int:
    interval = args.interval or cfg.get('refresh.interval_seconds', 60)

    def show(articles: List[Article]) -> None:
        print(render(select(articles, args), as_json=args.json), flush=True)

    async with build_aggregator(cfg) as aggregator:
        await aggregator.watch(show, interval=interval, iterations=args.iterations)
    return 0


def _format_millis(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000).strftime('%Y-%m-%d %H:%M')


def run_archive(cfg: Config, args: argparse.Namespace) -> int:
    aggregator = build_aggregator(cfg)
    if args.clear:
        try:
            aggregator.archive.clear()
        except StorageError as e:
            logger.error(f"Could not clear archive: {e}")
            return 1
        logger.info("Archive cleared")
        return 0
    articles = aggregator.archive.load()
    if not articles:
        print("Archive is empty")
        return 0
    newest, oldest = articles[0], articles[-1]
    print(
        f"{len(articles)} archived articles "
        f"({_format_millis(oldest.published_at)} to {_format_millis(newest.published_at)})"
    )
    return 0


async def async_main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    cfg = Config(args.config or os.getenv(CONFIG_PATH_ENV))
    if args.archive:
        cfg.config.setdefault('archive', {})['path'] = args.archive

    if args.command == "watch":
        return await run_watch(cfg, args)
    if args.command == "archive":
        return run_archive(cfg, args)
    return await run_fetch(cfg, args)


def main():
    """
    Entry point for the command-line script.
    """
    load_dotenv(override=True)
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
