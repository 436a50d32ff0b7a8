"""
HTTP utilities for Marketwire.
"""
from urllib.parse import urlencode

MAX_CONCURRENT_REQUESTS = 8
REQUEST_TIMEOUT = 15  # seconds, per source including retries
MAX_TRIES = 3

DEFAULT_HEADERS = {
    'User-Agent': 'marketwire/0.1 (+rss aggregator)',
    'Accept': 'application/json',
}


def proxy_url(endpoint: str, feed_url: str) -> str:
    """
    Build the feed-to-JSON proxy request URL for one feed.

    Args:
        endpoint: Proxy endpoint, e.g. https://api.rss2json.com/v1/api.json
        feed_url: The RSS feed to convert

    Returns:
        The request URL with the feed passed as rss_url
    """
    separator = '&' if '?' in endpoint else '?'
    return f"{endpoint}{separator}{urlencode({'rss_url': feed_url})}"
