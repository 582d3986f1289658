"""RSS feed parser that extracts episode records.

Uses the feedparser library to read the feed document, then keeps every
item whose publication date matches DATE_LAYOUT, in document order.
"""

import io
import logging
import xml.sax
from datetime import datetime
from typing import List, Optional

import feedparser

from .models import DATE_LAYOUT, Episode

logger = logging.getLogger(__name__)


class FeedParseError(ValueError):
    """The content could not be parsed as a feed."""


class FeedParser:
    """Parser for podcast RSS feeds.

    Example:
        parser = FeedParser()
        episodes = parser.parse(response_bytes)
        for episode in episodes:
            print(f"  - {episode.title}")
    """

    def parse(self, content: bytes) -> List[Episode]:
        """Parse raw feed bytes into an ordered list of episodes.

        Items whose date cannot be parsed are logged and skipped; they
        leave no placeholder in the result.

        Args:
            content: Raw feed document as returned by the server

        Returns:
            Episodes in feed order (possibly empty)

        Raises:
            FeedParseError: If the content is not a recognizable, well-formed feed
        """
        # A stream keeps feedparser from treating the content as a URL or path
        feed = feedparser.parse(io.BytesIO(content))

        if not feed.get("version"):
            reason = feed.get("bozo_exception") or "unknown feed format"
            logger.error(f"Could not parse the content from the feed: {reason}")
            raise FeedParseError("Could not parse the content from the feed")

        if feed.bozo:
            # Malformed XML still yields the items read before the error
            if isinstance(feed.bozo_exception, xml.sax.SAXException):
                logger.error(f"Feed is not well-formed XML: {feed.bozo_exception}")
                raise FeedParseError("Could not parse the content from the feed")
            logger.warning(f"Feed parsing warning: {feed.bozo_exception}")

        episodes = []
        for entry in feed.entries:
            episode = self._parse_episode(entry)
            if episode:
                episodes.append(episode)

        logger.info(f"Parsed {len(episodes)} of {len(feed.entries)} feed items")
        return episodes

    def _parse_episode(self, entry: feedparser.FeedParserDict) -> Optional[Episode]:
        """Build an Episode from a feed entry, or None if its date is unusable."""
        raw_date = entry.get("published", "")
        try:
            date = datetime.strptime(raw_date, DATE_LAYOUT)
        except (TypeError, ValueError) as e:
            logger.warning(f"Could not parse episode {entry.get('title')!r}: {e}")
            return None

        url, length = self._extract_enclosure(entry)

        return Episode(
            title=entry.get("title", ""),
            date=date,
            url=url,
            length=length,
        )

    def _extract_enclosure(self, entry: feedparser.FeedParserDict) -> tuple:
        """Return (url, length) of the entry's first enclosure.

        Missing enclosures yield ("", 0); a non-numeric length yields 0.
        """
        enclosures = entry.get("enclosures", [])
        if not enclosures:
            return "", 0

        enclosure = enclosures[0]
        url = enclosure.get("href") or enclosure.get("url") or ""

        length = 0
        if enclosure.get("length"):
            try:
                length = int(enclosure.length)
            except (ValueError, TypeError):
                pass

        return url, length
