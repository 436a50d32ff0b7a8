"""
rss2json feed fetcher for Marketwire.
"""
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import backoff

from marketwire.core.article import RawFeedItem
from marketwire.core.errors import FeedError
from marketwire.fetchers.sources import FeedSource
from marketwire.utils.http import DEFAULT_HEADERS, MAX_TRIES, proxy_url

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://api.rss2json.com/v1/api.json'


def _is_permanent(e: Exception) -> bool:
    """Client errors (4xx) are not worth retrying."""
    return isinstance(e, aiohttp.ClientResponseError) and e.status < 500


class Rss2JsonFetcher:
    """
    Fetches RSS feeds converted to JSON by the rss2json proxy.
    """
    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        session: Optional[aiohttp.ClientSession] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the Rss2JsonFetcher.

        Args:
            endpoint: Proxy endpoint URL
            session: Session to use instead of creating one lazily
            headers: Request headers for a lazily created session
        """
        self.endpoint = endpoint
        self.headers = headers or dict(DEFAULT_HEADERS)
        self._session = session
        self._owns_session = session is None

    @property
    def session(self):
        """The injected session, or one created on first request."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self.headers)
        return self._session

    async def close_session(self):
        """Close the aiohttp session if this fetcher created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @backoff.on_exception(
        backoff.expo,
        aiohttp.ClientError,
        max_tries=MAX_TRIES,
        giveup=_is_permanent,
        logger=logger,
    )
    async def _get_json(self, url: str) -> Any:
        async with self.session.get(url) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def fetch_items(self, source: FeedSource) -> List[RawFeedItem]:
        """
        Fetch one feed through the proxy.

        Args:
            source: The feed to fetch

        Returns:
            The feed's items, possibly empty

        Raises:
            FeedError: on network failure, non-success status or a malformed payload
        """
        url = proxy_url(self.endpoint, source.url)
        try:
            payload = await self._get_json(url)
        except aiohttp.ClientError as e:
            raise FeedError(f"{source.source_name}: request failed: {e}") from e
        except ValueError as e:
            raise FeedError(f"{source.source_name}: malformed JSON: {e}") from e

        if not isinstance(payload, dict):
            raise FeedError(f"{source.source_name}: unexpected payload type {type(payload).__name__}")

        status = payload.get('status')
        if status != 'ok':
            message = payload.get('message') or 'no message'
            raise FeedError(f"{source.source_name}: proxy status {status!r} ({message})")

        items = payload.get('items')
        if not isinstance(items, list):
            items = []

        logger.debug(f"Fetched {len(items)} items from {source.source_name}")
        return [RawFeedItem.from_payload(item) for item in items]
