"""Shared fixtures for Marketwire tests."""

import asyncio
import time
from typing import Dict, List

import pytest

from marketwire.core.archive import ArchiveStore, MemoryStorage
from marketwire.core.article import Article, RawFeedItem, Sentiment
from marketwire.core.errors import FeedError
from marketwire.fetchers.sources import FeedSource

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def make_article(article_id: str, published_at: int, **overrides) -> Article:
    fields = dict(
        id=article_id,
        headline=f"Headline {article_id}",
        summary=f"Summary {article_id}",
        category="Markets",
        author="Tester",
        image_url="https://img.example.com/a.jpg",
        published_at=published_at,
        timestamp="10:00",
        url=f"https://example.com/{article_id}",
        full_content=None,
        is_breaking=False,
        sentiment=Sentiment.NEUTRAL,
    )
    fields.update(overrides)
    return Article(**fields)


def iso_hours_ago(hours: float) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time() - hours * 3600))


class FakeFetcher:
    """
    Stands in for Rss2JsonFetcher.

    behaviours maps a source name to a list of item payloads, an exception
    to raise, or an awaitable factory to await.
    """
    def __init__(self, behaviours: Dict[str, object]):
        self.behaviours = behaviours
        self.calls: List[str] = []
        self.closed = False

    async def fetch_items(self, source: FeedSource) -> List[RawFeedItem]:
        self.calls.append(source.source_name)
        behaviour = self.behaviours.get(source.source_name, [])
        if isinstance(behaviour, BaseException):
            raise behaviour
        if callable(behaviour):
            behaviour = await behaviour()
        return [RawFeedItem.from_payload(item) for item in behaviour]

    async def close_session(self):
        self.closed = True


async def hang():
    await asyncio.sleep(30)
    return []


@pytest.fixture
def sources():
    return [
        FeedSource(url="https://one.example.com/feed", category="Sentiment", source_name="One", priority=1),
        FeedSource(url="https://two.example.com/feed", category="Squawk", source_name="Two", priority=2),
        FeedSource(url="https://three.example.com/feed", category="Markets", source_name="Three", priority=3),
        FeedSource(url="https://four.example.com/feed", category="Crypto", source_name="Four", priority=4),
    ]


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def archive(storage):
    return ArchiveStore(storage)


@pytest.fixture
def malformed_json():
    return FeedError("Three: malformed JSON: Expecting value: line 1 column 1 (char 0)")
