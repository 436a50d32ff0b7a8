"""Tests for feed view helpers."""

from marketwire.core.views import (
    breaking_ticker,
    category_tabs,
    filter_by_category,
    lead_story,
    paginate,
    search,
)
from marketwire.fetchers.sources import FEED_SOURCES

from tests.conftest import make_article

ARTICLES = [
    make_article("1", 600, category="Crypto", headline="Bitcoin halving nears"),
    make_article("2", 500, category="Markets", is_breaking=True, headline="Fed holds rates"),
    make_article("3", 400, category="Crypto", summary="ETF flows turn positive"),
    make_article("4", 300, category="Squawk", is_breaking=True),
]


def test_filter_by_category():
    assert [a.id for a in filter_by_category(ARTICLES, "Crypto")] == ["1", "3"]
    assert len(filter_by_category(ARTICLES, "All")) == 4
    assert filter_by_category(ARTICLES, "Bonds") == []


def test_breaking_ticker():
    assert [a.id for a in breaking_ticker(ARTICLES)] == ["2", "4"]
    assert [a.id for a in breaking_ticker(ARTICLES, limit=1)] == ["2"]


def test_lead_story_prefers_breaking():
    assert lead_story(ARTICLES).id == "2"
    assert lead_story(ARTICLES[:1]).id == "1"
    assert lead_story([]) is None


def test_search_headline_and_summary():
    assert [a.id for a in search(ARTICLES, "HALVING")] == ["1"]
    assert [a.id for a in search(ARTICLES, "etf flows")] == ["3"]
    assert len(search(ARTICLES, "  ")) == 4


def test_paginate():
    page = paginate(ARTICLES, 3)
    assert [a.id for a in page.articles] == ["1", "2", "3"]
    assert page.has_more
    assert not paginate(ARTICLES, 10).has_more


def test_category_tabs():
    assert category_tabs(FEED_SOURCES) == ["All", "Sentiment", "Squawk", "Markets", "Crypto"]
