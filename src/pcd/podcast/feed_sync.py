"""Podcast aggregate: feed synchronization and the local episode cache.

A Podcast syncs in two phases:

1. Fetch and extract. Either succeeds and replaces ``episodes`` or fails
   and leaves ``episodes`` untouched.
2. Encode and persist. May fail on its own; the failure is raised as a
   CacheWriteError while ``episodes`` keeps the freshly synced list, so
   the cache file on disk is stale until the next successful sync.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import CacheWriteError, ErrorKind, PodcastError
from .cache import CacheFormatError, CacheStore, decode_episodes, encode_episodes
from .feed_parser import FeedParseError, FeedParser
from .fetcher import FeedFetcher
from .models import DATE_LAYOUT, Episode

logger = logging.getLogger(__name__)

# Maximum width of the title column in the episode listing
TITLE_LENGTH = 60
ELLIPSIS = "..."


@dataclass
class Podcast:
    """A configured podcast and its in-memory episode list.

    Not safe for concurrent use; run sync() and load() on one instance
    from a single thread.
    """

    id: int
    name: str
    feed: str
    path: str

    # Login data if the feed requires basic authentication
    username: str = ""
    password: str = ""

    episodes: List[Episode] = field(default_factory=list)

    def sync(
        self,
        fetcher: Optional[FeedFetcher] = None,
        parser: Optional[FeedParser] = None,
        store: Optional[CacheStore] = None,
    ) -> None:
        """Fetch the feed, replace the episode list and rewrite the cache.

        Args:
            fetcher: Feed fetcher to use (a temporary one is created if omitted)
            parser: Feed parser to use
            store: Cache store to write to

        Raises:
            PodcastError: If fetching or parsing fails; episodes are untouched
            CacheWriteError: If persisting fails; episodes are already updated
        """
        logger.info(f"Syncing podcast: {self.name}")

        episodes = self._fetch_episodes(fetcher, parser or FeedParser())
        self.episodes = episodes

        try:
            blob = encode_episodes(self.episodes)
        except CacheFormatError as e:
            logger.error(f"Could not encode episodes of {self.name}: {e}")
            raise CacheWriteError(ErrorKind.ENCODE_ERROR, cause=e) from e

        (store or CacheStore()).write(self.path, blob)

        logger.info(f"Sync complete for '{self.name}': {len(self.episodes)} episodes")

    def _fetch_episodes(self, fetcher: Optional[FeedFetcher], parser: FeedParser) -> List[Episode]:
        """Fetch and parse the feed without touching the podcast's state."""
        if fetcher is None:
            with FeedFetcher() as own_fetcher:
                content = own_fetcher.fetch(self.feed, self.username, self.password)
        else:
            content = fetcher.fetch(self.feed, self.username, self.password)

        try:
            return parser.parse(content)
        except FeedParseError as e:
            raise PodcastError(ErrorKind.PARSER_ISSUE, cause=e) from e

    def load(self, store: Optional[CacheStore] = None) -> None:
        """Replace the episode list with the cached one.

        Never touches the network or the cache file.

        Raises:
            PodcastError: CACHE_UNAVAILABLE if the cache is missing or unreadable
        """
        blob = (store or CacheStore()).read(self.path)

        try:
            episodes = decode_episodes(blob)
        except CacheFormatError as e:
            logger.error(f"Could not decode episodes: {e}")
            raise PodcastError(ErrorKind.CACHE_UNAVAILABLE, cause=e) from e

        self.episodes = episodes

    def get_episode(self, number: int) -> Episode:
        """Return an episode by its 1-based position in the listing.

        Raises:
            IndexError: If no episode has that number
        """
        if not 1 <= number <= len(self.episodes):
            raise IndexError(f"{self.name} has no episode {number}")
        return self.episodes[number - 1]

    def __str__(self) -> str:
        lines = [f"All episodes of {self.name} (id: {self.id})"]

        width = min(max((len(e.title) for e in self.episodes), default=0), TITLE_LENGTH)

        for index, episode in enumerate(self.episodes, start=1):
            lines.append(
                f"{index:<4d} {truncate_title(episode.title):<{width}} "
                f"{episode.date.strftime(DATE_LAYOUT):>20}"
            )

        return "\n".join(lines) + "\n"


def truncate_title(title: str, limit: int = TITLE_LENGTH) -> str:
    """Cut a title to ``limit`` characters, marking the cut with an ellipsis."""
    if len(title) <= limit:
        return title
    return title[: limit - len(ELLIPSIS)] + ELLIPSIS
