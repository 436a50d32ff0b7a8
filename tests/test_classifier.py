"""Tests for keyword signals."""

from marketwire.core.article import Sentiment
from marketwire.core.classifier import SignalClassifier


classifier = SignalClassifier()


def test_bullish_keywords():
    assert classifier.sentiment("Gold SOARS to record high") == Sentiment.BULLISH


def test_bearish_keywords():
    assert classifier.sentiment("Oil plunges after OPEC meeting") == Sentiment.BEARISH


def test_neutral_when_nothing_matches():
    assert classifier.sentiment("Markets await the weekend") == Sentiment.NEUTRAL


def test_bullish_wins_when_both_lists_match():
    assert classifier.sentiment("Nasdaq gains as oil falls") == Sentiment.BULLISH


def test_substring_fragments_still_count():
    # "resistance" flags bearish even outside a trading context
    assert classifier.sentiment("Antibiotic resistance study published") == Sentiment.BEARISH


def test_breaking_terms():
    assert classifier.is_breaking("FOMC minutes released")
    assert classifier.is_breaking("Powell speaks at Jackson Hole")
    assert classifier.is_breaking("the fed said on Tuesday")
    assert not classifier.is_breaking("Quiet session in Asia")


def test_fed_needs_trailing_space():
    assert not classifier.is_breaking("Shares of FedEx climb")


def test_classify_combines_both():
    signals = classifier.classify("EUR/USD soars on hawkish Fed Markets rallied today")
    assert signals.sentiment == Sentiment.BULLISH
    assert signals.is_breaking


def test_custom_keyword_lists():
    custom = SignalClassifier(bullish=["Moon"], bearish=["rekt"], breaking=["halving"])
    assert custom.sentiment("to the moon") == Sentiment.BULLISH
    assert custom.sentiment("got rekt") == Sentiment.BEARISH
    assert custom.is_breaking("Bitcoin halving tonight")
    assert not custom.is_breaking("fed cuts rates")
