"""Podcast synchronization module.

Provides functionality for:
- Fetching and parsing RSS feeds
- Caching episode lists on disk
- Downloading episodes
"""

from .cache import CacheFormatError, CacheStore, decode_episodes, encode_episodes
from .downloader import EpisodeDownloader, MultiWriter
from .feed_parser import FeedParseError, FeedParser
from .feed_sync import Podcast
from .fetcher import FeedFetcher
from .models import DATE_LAYOUT, Episode

__all__ = [
    "CacheFormatError",
    "CacheStore",
    "decode_episodes",
    "encode_episodes",
    "EpisodeDownloader",
    "MultiWriter",
    "FeedParseError",
    "FeedParser",
    "Podcast",
    "FeedFetcher",
    "DATE_LAYOUT",
    "Episode",
]
