"""
Read-side helpers over an aggregated article list.
"""
from typing import List, NamedTuple, Optional, Sequence

from marketwire.core.article import Article
from marketwire.fetchers.sources import FeedSource, categories

ALL_CATEGORIES = 'All'
TICKER_SIZE = 5
PAGE_SIZE = 20


def category_tabs(sources: Sequence[FeedSource]) -> List[str]:
    """Filter choices: All, then each source category in registry order."""
    return [ALL_CATEGORIES] + categories(sources)


class Page(NamedTuple):
    articles: List[Article]
    has_more: bool


def filter_by_category(articles: Sequence[Article], category: str = ALL_CATEGORIES) -> List[Article]:
    if not category or category == ALL_CATEGORIES:
        return list(articles)
    return [a for a in articles if a.category == category]


def breaking_ticker(articles: Sequence[Article], limit: int = TICKER_SIZE) -> List[Article]:
    """The first limit breaking articles, in feed order."""
    return [a for a in articles if a.is_breaking][:limit]


def lead_story(articles: Sequence[Article]) -> Optional[Article]:
    """
    The story to feature at the top of the feed.

    Returns:
        The first breaking article, else the first article, else None
    """
    for article in articles:
        if article.is_breaking:
            return article
    return articles[0] if articles else None


def search(articles: Sequence[Article], query: str) -> List[Article]:
    """Case-insensitive match on headline or summary."""
    needle = (query or '').strip().lower()
    if not needle:
        return list(articles)
    return [
        a for a in articles
        if needle in a.headline.lower() or needle in a.summary.lower()
    ]


def paginate(articles: Sequence[Article], count: int = PAGE_SIZE) -> Page:
    visible = list(articles[:max(count, 0)])
    return Page(articles=visible, has_more=len(visible) < len(articles))
