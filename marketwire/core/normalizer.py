"""
Normalization of raw feed items into Articles.
"""
from datetime import datetime, timezone, tzinfo
from typing import Optional, Sequence
from urllib.parse import urlparse

from dateutil import parser as date_parser

from marketwire.core.article import Article, RawFeedItem
from marketwire.core.result import Failure, Result, Success
from marketwire.fetchers.sources import FeedSource
from marketwire.utils.text import first_image_src, stable_hash, strip_markup, truncate

SUMMARY_MAX_LENGTH = 250

FALLBACK_IMAGES = (
    'https://images.unsplash.com/photo-1611974765270-ca1258634369?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1590283603385-17ffb3a7f29f?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1642543492481-44e81e3914a7?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1621504450168-38f647319680?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1614028674026-a65e31bfd27c?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1565514020176-dbf22384914e?auto=format&fit=crop&q=80&w=1000',
    'https://images.unsplash.com/photo-1526304640152-d4619684e484?auto=format&fit=crop&q=80&w=1000',
)

# Tracking pixels and ad-network images are replaced with a placeholder
TRACKING_MARKERS = ('feedburner',)
AD_HOST_LABELS = ('ads', 'doubleclick')


def is_low_quality_image(url: str) -> bool:
    """
    Check for feed tracking pixels and ad-network images.

    Ad networks are matched on host labels, so "/wp-content/uploads/" paths
    are not mistaken for ads.
    """
    lowered = url.lower()
    if any(marker in lowered for marker in TRACKING_MARKERS):
        return True
    host = urlparse(lowered).netloc
    return any(label.startswith(AD_HOST_LABELS) for label in host.split('.'))


def fallback_image(seed: str, palette: Sequence[str] = FALLBACK_IMAGES) -> str:
    """Pick a placeholder image deterministically from seed."""
    return palette[abs(stable_hash(seed)) % len(palette)]


def parse_published(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a feed date into an aware datetime.

    Naive dates are taken as UTC, which is what the proxy emits.

    Returns:
        The datetime, or None if the value is missing or unparseable
    """
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(published: datetime, now: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    Render a short display time relative to now.

    Same local calendar day gives "14:05", anything else "Mar 12".
    """
    local = published.astimezone(tz)
    local_now = now.astimezone(tz)
    if local.date() == local_now.date():
        return local.strftime('%H:%M')
    return f"{local.strftime('%b')} {local.day}"


class ContentNormalizer:
    """
    Turns one RawFeedItem plus its FeedSource into an Article.

    Signals (sentiment, breaking) are left at their defaults; the
    SignalClassifier fills them in.
    """
    def __init__(
        self,
        summary_max_length: int = SUMMARY_MAX_LENGTH,
        palette: Sequence[str] = FALLBACK_IMAGES,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the ContentNormalizer.

        Args:
            summary_max_length: Character budget for summaries
            palette: Placeholder images used when an item has no usable image
            tz: Time zone for display timestamps, None for the system zone
        """
        self.summary_max_length = summary_max_length
        self.palette = tuple(palette)
        self.tz = tz

    def normalize(self, raw: RawFeedItem, source: FeedSource, now: Optional[datetime] = None) -> Result[Article]:
        """
        Normalize a single feed item.

        Args:
            raw: The item as returned by the proxy
            source: The feed the item came from
            now: Reference time for the display timestamp

        Returns:
            Success with the Article, or Failure if the item is unusable
        """
        published = parse_published(raw.pub_date)
        if published is None:
            return Failure(f"invalid or missing publish date {raw.pub_date!r}")

        try:
            published_at = int(published.timestamp() * 1000)
        except (OverflowError, OSError, ValueError) as e:
            return Failure(f"publish date out of range {raw.pub_date!r}", e)

        article_id = self.derive_id(raw, source)
        if article_id is None:
            return Failure("item has no guid, link or title")

        headline = (raw.title or "").strip()
        summary = self.clean_summary(raw.description)
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        return Success(Article(
            id=article_id,
            headline=headline,
            summary=summary,
            category=source.category,
            author=raw.author or source.source_name,
            image_url=self.resolve_image(raw, seed=headline or article_id),
            url=raw.link,
            full_content=raw.content or raw.description,
            published_at=published_at,
            timestamp=format_timestamp(published, now, self.tz),
        ))

    @staticmethod
    def derive_id(raw: RawFeedItem, source: FeedSource) -> Optional[str]:
        """guid, then link, then "<source>-<title>"."""
        if raw.guid:
            return raw.guid
        if raw.link:
            return raw.link
        if raw.title:
            return f"{source.source_name}-{raw.title}"
        return None

    def clean_summary(self, description: Optional[str]) -> str:
        if not description:
            return ""
        return truncate(strip_markup(description), self.summary_max_length)

    def resolve_image(self, raw: RawFeedItem, seed: str) -> str:
        """
        Pick the article image.

        Order: thumbnail, enclosure link, first src in content, first src in
        description. Missing or low-quality images fall back to a placeholder
        chosen from seed.
        """
        image_url = (
            raw.thumbnail
            or raw.enclosure_link
            or first_image_src(raw.content)
            or first_image_src(raw.description)
        )
        if not image_url or is_low_quality_image(image_url):
            return fallback_image(seed, self.palette)
        return image_url
