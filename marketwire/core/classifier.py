"""
Keyword signals for Marketwire articles.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from marketwire.config import DEFAULT_CONFIG
from marketwire.core.article import Sentiment

BULLISH_KEYWORDS = tuple(DEFAULT_CONFIG['signals']['bullish'])
BEARISH_KEYWORDS = tuple(DEFAULT_CONFIG['signals']['bearish'])
BREAKING_KEYWORDS = tuple(DEFAULT_CONFIG['signals']['breaking'])


@dataclass(frozen=True)
class Signals:
    sentiment: Sentiment
    is_breaking: bool


class SignalClassifier:
    """
    Rule-based sentiment and breaking-news tagging.

    Matching is plain case-insensitive substring search, so fragments count:
    "resistance" is bearish wherever it appears and "cut" matches "shortcut".
    When both keyword lists match, bullish wins.
    """
    def __init__(
        self,
        bullish: Optional[Iterable[str]] = None,
        bearish: Optional[Iterable[str]] = None,
        breaking: Optional[Iterable[str]] = None,
    ):
        self.bullish = self._keywords(bullish, BULLISH_KEYWORDS)
        self.bearish = self._keywords(bearish, BEARISH_KEYWORDS)
        self.breaking = self._keywords(breaking, BREAKING_KEYWORDS)

    @staticmethod
    def _keywords(words: Optional[Iterable[str]], default: Tuple[str, ...]) -> Tuple[str, ...]:
        if words is None:
            return default
        return tuple(w.lower() for w in words if w)

    def sentiment(self, text: str) -> Sentiment:
        """
        Classify text as Bullish, Bearish or Neutral.

        Args:
            text: Headline and cleaned summary

        Returns:
            The sentiment label
        """
        text_lower = (text or "").lower()
        if any(word in text_lower for word in self.bullish):
            return Sentiment.BULLISH
        if any(word in text_lower for word in self.bearish):
            return Sentiment.BEARISH
        return Sentiment.NEUTRAL

    def is_breaking(self, text: str) -> bool:
        """Check whether text mentions a high-impact term."""
        text_lower = (text or "").lower()
        return any(term in text_lower for term in self.breaking)

    def classify(self, text: str) -> Signals:
        return Signals(sentiment=self.sentiment(text), is_breaking=self.is_breaking(text))
