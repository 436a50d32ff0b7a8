"""
Text utilities for Marketwire.
"""
import re
from typing import Optional

from bs4 import BeautifulSoup

TAG_PATTERN = re.compile(r'<[^>]*>?')
WHITESPACE_PATTERN = re.compile(r'\s+')
ELLIPSIS = '...'


def strip_markup(text: str) -> str:
    """
    Remove markup tags and decode &nbsp; to a plain space.

    Args:
        text: Markup-laden text

    Returns:
        Plain text with whitespace runs collapsed
    """
    text = TAG_PATTERN.sub('', text)
    text = text.replace('&nbsp;', ' ')
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + ELLIPSIS


def first_image_src(markup: Optional[str]) -> Optional[str]:
    """
    Find the first src attribute in a fragment of markup.

    Args:
        markup: HTML fragment, may be None

    Returns:
        The src value, or None if there is none
    """
    if not markup or 'src' not in markup:
        return None
    soup = BeautifulSoup(markup, 'html.parser')
    tag = soup.find(src=True)
    if tag is None:
        return None
    src = tag.get('src')
    if isinstance(src, list):
        src = ' '.join(src)
    return src.strip() or None


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def stable_hash(seed: str) -> int:
    """
    Rolling hash over UTF-16 code units: hash = code + ((hash << 5) - hash).

    The shift wraps to a signed 32-bit integer, so the result matches the
    same loop evaluated with 32-bit shift semantics on any platform.
    """
    h = 0
    data = seed.encode('utf-16-le')
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = code + (_to_int32(_to_int32(h) << 5) - h)
    return h
