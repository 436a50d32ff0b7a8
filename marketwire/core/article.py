"""
Article data model for Marketwire.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Sentiment(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


@dataclass
class Article:
    """
    Represents a normalized market news article.

    published_at is epoch milliseconds and is the only field used for
    ordering and retention; timestamp is for display.
    """
    id: str
    headline: str
    summary: str
    category: str
    author: str
    image_url: str
    published_at: int
    timestamp: str
    url: Optional[str] = None
    full_content: Optional[str] = None
    is_breaking: bool = False
    sentiment: Sentiment = Sentiment.NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the archive record format.

        Returns:
            JSON-compatible dict with camelCase keys
        """
        return {
            "id": self.id,
            "headline": self.headline,
            "summary": self.summary,
            "category": self.category,
            "author": self.author,
            "imageUrl": self.image_url,
            "url": self.url,
            "fullContent": self.full_content,
            "publishedAt": self.published_at,
            "timestamp": self.timestamp,
            "isBreaking": self.is_breaking,
            "sentiment": self.sentiment.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        """
        Build an Article from an archive record.

        Args:
            data: Record produced by to_dict

        Returns:
            The Article

        Raises:
            KeyError, TypeError or ValueError if the record is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Archive record must be an object, got {type(data).__name__}")

        published_at = data["publishedAt"]
        if isinstance(published_at, bool) or not isinstance(published_at, (int, float)):
            raise TypeError(f"publishedAt must be a number, got {published_at!r}")
        if not math.isfinite(published_at):
            raise ValueError(f"publishedAt must be finite, got {published_at!r}")

        article_id = data["id"]
        if not isinstance(article_id, str) or not article_id:
            raise ValueError("Archive record has no id")

        return cls(
            id=article_id,
            headline=data.get("headline") or "",
            summary=data.get("summary") or "",
            category=data.get("category") or "",
            author=data.get("author") or "",
            image_url=data.get("imageUrl") or "",
            url=data.get("url"),
            full_content=data.get("fullContent"),
            published_at=int(published_at),
            timestamp=data.get("timestamp") or "",
            is_breaking=bool(data.get("isBreaking", False)),
            sentiment=Sentiment(data.get("sentiment") or Sentiment.NEUTRAL.value),
        )


def _text(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class RawFeedItem:
    """
    One item as returned by the feed proxy. Every field is optional.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    pub_date: Optional[str] = None
    link: Optional[str] = None
    guid: Optional[str] = None
    thumbnail: Optional[str] = None
    enclosure_link: Optional[str] = None
    author: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RawFeedItem":
        """
        Build a RawFeedItem from an untyped proxy item.

        Missing keys, non-string values and non-dict payloads become absent
        fields rather than errors.
        """
        if not isinstance(payload, dict):
            return cls()

        enclosure = payload.get("enclosure")
        enclosure_link = _text(enclosure, "link") if isinstance(enclosure, dict) else None

        return cls(
            title=_text(payload, "title"),
            description=_text(payload, "description"),
            content=_text(payload, "content"),
            pub_date=_text(payload, "pubDate"),
            link=_text(payload, "link"),
            guid=_text(payload, "guid"),
            thumbnail=_text(payload, "thumbnail"),
            enclosure_link=enclosure_link,
            author=_text(payload, "author"),
        )
