"""Tests for the rss2json fetcher using a fake aiohttp session."""

import asyncio
import json
from unittest import mock
from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest

from marketwire.core.errors import FeedError
from marketwire.fetchers.rss2json import Rss2JsonFetcher
from marketwire.fetchers.sources import FeedSource
from marketwire.utils.http import MAX_TRIES

SOURCE = FeedSource(url="https://www.fxstreet.com/rss/news", category="Squawk", source_name="FXStreet", priority=2)


class FakeResponse:
    def __init__(self, payload=None, status=200, body=None):
        self.payload = payload
        self.status = status
        self.body = body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=mock.Mock(real_url="https://api.example.com"),
                history=(),
                status=self.status,
                message="Upstream error",
            )

    async def json(self, content_type="application/json"):
        if self.body is not None:
            return json.loads(self.body)
        return self.payload


class FakeSession:
    """Serves responses in order, repeating the last one."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.urls = []
        self.closed = False

    def get(self, url):
        self.urls.append(url)
        return self.responses[min(len(self.urls), len(self.responses)) - 1]

    async def close(self):
        self.closed = True


def fetch(*responses):
    session = FakeSession(*responses)
    fetcher = Rss2JsonFetcher(endpoint="https://api.example.com/v1/api.json", session=session)
    return session, asyncio.run(fetcher.fetch_items(SOURCE))


def test_fetch_items_ok():
    session, items = fetch(FakeResponse({
        "status": "ok",
        "items": [
            {"title": "Yen slides", "pubDate": "2024-03-12 10:00:00", "link": "https://fx/1",
             "enclosure": {"link": "https://img/1.jpg"}},
            {"title": "Gold firm"},
        ],
    }))

    assert [i.title for i in items] == ["Yen slides", "Gold firm"]
    assert items[0].enclosure_link == "https://img/1.jpg"
    query = parse_qs(urlparse(session.urls[0]).query)
    assert query["rss_url"] == ["https://www.fxstreet.com/rss/news"]


def test_missing_items_is_empty_feed():
    _, items = fetch(FakeResponse({"status": "ok"}))
    assert items == []


@pytest.mark.parametrize("response", [
    FakeResponse({"status": "error", "message": "Cannot download this RSS feed"}),
    FakeResponse(["not", "an", "object"]),
    FakeResponse(body="<html>Bad gateway</html>"),
    FakeResponse(status=422),
])
def test_failures_raise_feed_error(response):
    with pytest.raises(FeedError):
        fetch(response)


def test_injected_session_is_not_closed():
    session = FakeSession(FakeResponse({"status": "ok"}))
    fetcher = Rss2JsonFetcher(session=session)
    asyncio.run(fetcher.close_session())
    assert not session.closed


@pytest.fixture
def no_retry_wait(monkeypatch):
    real_sleep = asyncio.sleep

    async def no_wait(delay, *args, **kwargs):
        await real_sleep(0)

    monkeypatch.setattr(asyncio, "sleep", no_wait)


def test_server_error_is_retried(no_retry_wait):
    session, items = fetch(
        FakeResponse(status=503),
        FakeResponse({"status": "ok", "items": [{"title": "Oil steadies"}]}),
    )
    assert [i.title for i in items] == ["Oil steadies"]
    assert len(session.urls) == 2


def test_server_error_gives_up_after_max_tries(no_retry_wait):
    session = FakeSession(FakeResponse(status=502))
    fetcher = Rss2JsonFetcher(session=session)
    with pytest.raises(FeedError):
        asyncio.run(fetcher.fetch_items(SOURCE))
    assert len(session.urls) == MAX_TRIES


def test_client_error_is_not_retried(no_retry_wait):
    session = FakeSession(FakeResponse(status=422))
    fetcher = Rss2JsonFetcher(session=session)
    with pytest.raises(FeedError):
        asyncio.run(fetcher.fetch_items(SOURCE))
    assert len(session.urls) == 1
