"""
Marketwire - Financial News Aggregator

Pulls market news from a set of RSS feeds, tags each story with a coarse
sentiment and breaking-news signal, and keeps a rolling seven day archive
so the feed survives flaky sources.
"""

__version__ = "0.1.0"
