"""
Feed source registry for Marketwire.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedSource:
    """
    A configured RSS feed.

    priority documents the preferred order of sources; it does not affect
    the ordering of aggregated articles.
    """
    url: str
    category: str
    source_name: str
    priority: int = 0


FEED_SOURCES = (
    FeedSource(
        url='https://www.forexlive.com/feed',
        category='Sentiment',
        source_name='ForexLive',
        priority=1,
    ),
    FeedSource(
        url='https://www.fxstreet.com/rss/news',
        category='Squawk',
        source_name='FXStreet',
        priority=2,
    ),
    FeedSource(
        url='https://feeds.finance.yahoo.com/rss/2.0/headline?s=EURUSD=X,GBPUSD=X,JPY=X,BTC-USD,GC=F',
        category='Markets',
        source_name='Yahoo Finance',
        priority=3,
    ),
    FeedSource(
        url='https://cointelegraph.com/rss',
        category='Crypto',
        source_name='CoinTelegraph',
        priority=4,
    ),
)


def load_sources(entries: Optional[Iterable[Dict[str, Any]]] = None) -> List[FeedSource]:
    """
    Build the source list, either from config entries or the built-in registry.

    Args:
        entries: Dicts with url, category, source_name and optional priority

    Returns:
        Sources sorted by priority
    """
    if entries is None:
        return sorted(FEED_SOURCES, key=lambda s: s.priority)

    sources = []
    for entry in entries:
        try:
            sources.append(FeedSource(
                url=entry['url'],
                category=entry['category'],
                source_name=entry['source_name'],
                priority=int(entry.get('priority', 0)),
            ))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed feed source {entry!r}: {e}")
    return sorted(sources, key=lambda s: s.priority)


def categories(sources: Iterable[FeedSource]) -> List[str]:
    """Distinct source categories in registry order."""
    seen = []
    for source in sources:
        if source.category not in seen:
            seen.append(source.category)
    return seen
