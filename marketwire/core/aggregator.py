"""
News aggregation for Marketwire.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

import aiohttp
import async_timeout
from tqdm import tqdm

from marketwire.config import Config, config as default_config
from marketwire.core.archive import (
    ARCHIVE_KEY,
    ArchiveStore,
    MemoryStorage,
    SaveOutcome,
    SaveStatus,
    SQLiteStorage,
)
from marketwire.core.article import Article, RawFeedItem
from marketwire.core.classifier import SignalClassifier
from marketwire.core.errors import FeedError, StorageError
from marketwire.core.normalizer import ContentNormalizer
from marketwire.core.result import Failure, Result, Success
from marketwire.fetchers.rss2json import DEFAULT_ENDPOINT, Rss2JsonFetcher
from marketwire.fetchers.sources import FeedSource, load_sources
from marketwire.utils.http import MAX_CONCURRENT_REQUESTS, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """
    Counters for one aggregation cycle.
    """
    cycle: int
    sources_ok: int = 0
    sources_failed: int = 0
    items_normalized: int = 0
    items_dropped: int = 0
    archived: int = 0
    returned: int = 0
    save: Optional[SaveOutcome] = None

    def summary(self) -> str:
        save = self.save.status.value if self.save else "not attempted"
        return (
            f"Cycle {self.cycle}: {self.sources_ok} sources ok, {self.sources_failed} failed, "
            f"{self.items_normalized} items normalized, {self.items_dropped} dropped, "
            f"{self.archived} archived, {self.returned} returned, archive {save}"
        )


class NewsAggregator:
    """
    Fetches every feed source in parallel and merges the results into the archive.

    fetch_market_news never raises: failing sources contribute nothing,
    failing items are dropped, and if the whole cycle blows up the last
    archived articles are returned instead.
    """
    def __init__(
        self,
        archive: ArchiveStore,
        sources: Optional[Sequence[FeedSource]] = None,
        fetcher=None,
        normalizer: Optional[ContentNormalizer] = None,
        classifier: Optional[SignalClassifier] = None,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
        source_timeout: float = REQUEST_TIMEOUT,
        show_progress: bool = False,
    ):
        """
        Initialize the NewsAggregator.

        Args:
            archive: Store the fresh articles are merged into
            sources: Feeds to fetch, defaults to the built-in registry
            fetcher: Object with an async fetch_items(source) method
            normalizer: Raw item to Article converter
            classifier: Sentiment and breaking-news tagger
            max_concurrent: Cap on in-flight source requests
            source_timeout: Seconds before a source counts as failed
            show_progress: Show a progress bar while fetching
        """
        self.archive = archive
        self.sources = list(sources) if sources is not None else load_sources()
        self.fetcher = fetcher or Rss2JsonFetcher()
        self.normalizer = normalizer or ContentNormalizer()
        self.classifier = classifier or SignalClassifier()
        self.max_concurrent = max_concurrent
        self.source_timeout = source_timeout
        self.show_progress = show_progress

        self._semaphore: Optional[asyncio.Semaphore] = None
        self._save_lock: Optional[asyncio.Lock] = None
        self._cycle = 0
        self._last_saved_cycle = 0
        self.last_report: Optional[CycleReport] = None
        self.last_save_outcome: Optional[SaveOutcome] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        close_session = getattr(self.fetcher, 'close_session', None)
        if close_session is not None:
            await close_session()

    @property
    def semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
        return self._semaphore

    @property
    def save_lock(self) -> asyncio.Lock:
        if self._save_lock is None:
            self._save_lock = asyncio.Lock()
        return self._save_lock

    async def fetch_market_news(self) -> List[Article]:
        """
        Run one aggregation cycle.

        Returns:
            Merged, retention-filtered articles, newest first. Falls back to
            the archived articles, or an empty list, if the cycle fails.
        """
        self._cycle += 1
        cycle = self._cycle
        try:
            return await self._aggregate(cycle)
        except Exception:
            logger.exception("Failed to update news feed, serving archived articles")
            return self._last_known_good()

    def _last_known_good(self) -> List[Article]:
        try:
            return self.archive.load()
        except Exception:
            logger.exception("Failed to read news archive")
            return []

    async def _aggregate(self, cycle: int) -> List[Article]:
        now = datetime.now(timezone.utc)
        report = CycleReport(cycle=cycle)

        fresh: List[Article] = []
        for source, result in await self._fetch_all():
            if not result.ok:
                report.sources_failed += 1
                logger.warning(f"Skipping {source.source_name}: {result.reason}")
                continue
            report.sources_ok += 1
            for raw in result.value:
                built = self._build_article(raw, source, now)
                if built.ok:
                    fresh.append(built.value)
                    report.items_normalized += 1
                else:
                    report.items_dropped += 1
                    logger.debug(f"Dropped item from {source.source_name}: {built.reason}")

        loop = asyncio.get_running_loop()
        archived = await loop.run_in_executor(None, self.archive.load)
        merged = self.archive.merge(archived, fresh, now)

        report.archived = len(archived)
        report.returned = len(merged)
        report.save = await self._persist(cycle, merged)
        self.last_report = report
        logger.info(report.summary())
        return merged

    async def _fetch_all(self) -> List[Tuple[FeedSource, Result[List[RawFeedItem]]]]:
        """
        Fetch every source concurrently.

        Every source yields a result, so one failure never cancels the others.
        Results come back in registry order regardless of completion order.
        """
        async def fetch_indexed(index: int, source: FeedSource):
            return index, source, await self._fetch_source(source)

        tasks = [fetch_indexed(i, source) for i, source in enumerate(self.sources)]
        results = []
        for task in tqdm(
            asyncio.as_completed(tasks),
            total=len(tasks),
            desc="Fetching feeds",
            disable=not self.show_progress,
        ):
            results.append(await task)

        results.sort(key=lambda r: r[0])
        return [(source, result) for _, source, result in results]

    async def _fetch_source(self, source: FeedSource) -> Result[List[RawFeedItem]]:
        async with self.semaphore:
            try:
                async with async_timeout.timeout(self.source_timeout):
                    items = await self.fetcher.fetch_items(source)
            except asyncio.TimeoutError as e:
                return Failure(f"timed out after {self.source_timeout}s", e)
            except (FeedError, aiohttp.ClientError, ValueError) as e:
                return Failure(str(e), e)
            except Exception as e:
                logger.exception(f"Unexpected error fetching {source.source_name}")
                return Failure(f"unexpected error: {e}", e)
        return Success(list(items))

    def _build_article(self, raw: RawFeedItem, source: FeedSource, now: datetime) -> Result[Article]:
        try:
            result = self.normalizer.normalize(raw, source, now)
            if not result.ok:
                return result
            article = result.value
            signals = self.classifier.classify(f"{article.headline} {article.summary}")
        except Exception as e:
            logger.warning(f"Failed to normalize item from {source.source_name}: {e}")
            return Failure(f"normalization error: {e}", e)
        return Success(replace(article, sentiment=signals.sentiment, is_breaking=signals.is_breaking))

    async def _persist(self, cycle: int, articles: List[Article]) -> SaveOutcome:
        """
        Save the merged articles, one writer at a time.

        A cycle that finishes after a newer cycle has already saved does not
        overwrite the newer archive.
        """
        async with self.save_lock:
            if cycle < self._last_saved_cycle:
                logger.info(f"Cycle {cycle} finished after cycle {self._last_saved_cycle} saved, not saving")
                outcome = SaveOutcome(SaveStatus.SKIPPED_STALE, stored=0)
            else:
                loop = asyncio.get_running_loop()
                outcome = await loop.run_in_executor(None, self.archive.save, articles)
                if outcome.ok:
                    self._last_saved_cycle = cycle
        self.last_save_outcome = outcome
        return outcome

    async def watch(
        self,
        on_update: Callable[[List[Article]], Optional[Awaitable[None]]],
        interval: float,
        iterations: Optional[int] = None,
    ) -> None:
        """
        Refresh on a fixed interval and hand every result to on_update.

        Args:
            on_update: Called with each cycle's articles, may be async
            interval: Seconds between the start of one cycle and the next
            iterations: Stop after this many cycles, None to run forever
        """
        count = 0
        while iterations is None or count < iterations:
            articles = await self.fetch_market_news()
            outcome = on_update(articles)
            if asyncio.iscoroutine(outcome):
                await outcome
            count += 1
            if iterations is None or count < iterations:
                await asyncio.sleep(interval)


def build_aggregator(cfg: Optional[Config] = None, show_progress: bool = False) -> NewsAggregator:
    """
    Build a NewsAggregator wired from configuration.

    Args:
        cfg: Configuration, defaults to the global one
        show_progress: Show a progress bar while fetching

    Returns:
        The configured NewsAggregator
    """
    cfg = cfg or default_config
    try:
        storage = SQLiteStorage(
            cfg.get('archive.path', 'cache/marketwire.db'),
            max_bytes=cfg.get('archive.max_bytes'),
        )
    except StorageError as e:
        logger.error(f"{e}; keeping the archive in memory for this run")
        storage = MemoryStorage(max_bytes=cfg.get('archive.max_bytes'))
    archive = ArchiveStore(
        storage,
        key=cfg.get('archive.key', ARCHIVE_KEY),
        retention=timedelta(days=cfg.get('archive.retention_days', 7)),
        overflow_limit=cfg.get('archive.overflow_limit', 200),
    )
    classifier = SignalClassifier(
        bullish=cfg.get('signals.bullish'),
        bearish=cfg.get('signals.bearish'),
        breaking=cfg.get('signals.breaking'),
    )
    return NewsAggregator(
        archive=archive,
        sources=load_sources(cfg.get('sources')),
        fetcher=Rss2JsonFetcher(endpoint=cfg.get('proxy.endpoint', DEFAULT_ENDPOINT)),
        normalizer=ContentNormalizer(summary_max_length=cfg.get('summary.max_length', 250)),
        classifier=classifier,
        max_concurrent=cfg.get('fetch.max_concurrent', MAX_CONCURRENT_REQUESTS),
        source_timeout=cfg.get('fetch.timeout_seconds', REQUEST_TIMEOUT),
        show_progress=show_progress,
    )


def fetch_market_news(cfg: Optional[Config] = None) -> List[Article]:
    """
    Run one aggregation cycle from synchronous code.

    Returns:
        Articles newest first; never raises for feed or storage failures
    """
    async def run_once() -> List[Article]:
        async with build_aggregator(cfg) as aggregator:
            return await aggregator.fetch_market_news()

    return asyncio.run(run_once())
