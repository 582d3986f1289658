"""Tests for the RSS feed parser."""

import locale
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import feedparser
import pytest

from pcd.podcast.feed_parser import FeedParseError, FeedParser
from pcd.podcast.models import DATE_LAYOUT


@pytest.fixture
def parser():
    """Provide a new FeedParser instance for tests."""
    return FeedParser()


# Four items, two of which have unusable dates
SAMPLE_RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Test Podcast</title>
    <link>https://example.com</link>
    <description>A podcast for testing</description>

    <item>
      <title>Episode 1: Introduction</title>
      <pubDate>Mon, 01 Jan 2024 12:00:00 +0000</pubDate>
      <enclosure url="https://example.com/ep1.mp3" length="54000000" type="audio/mpeg"/>
    </item>

    <item>
      <title>Episode 2: Broken date</title>
      <pubDate>sometime last week</pubDate>
      <enclosure url="https://example.com/ep2.mp3" length="100" type="audio/mpeg"/>
    </item>

    <item>
      <title>Episode 3: Deep Dive</title>
      <pubDate>Mon, 08 Jan 2024 09:30:00 -0500</pubDate>
      <enclosure url="https://example.com/ep3.mp3" length="27000000" type="audio/mpeg"/>
    </item>

    <item>
      <title>Episode 4: No date</title>
      <enclosure url="https://example.com/ep4.mp3" length="100" type="audio/mpeg"/>
    </item>
  </channel>
</rss>"""


def _rss(items: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Feed</title>'
        f"{items}"
        "</channel></rss>"
    ).encode("utf-8")


class TestFeedParser:
    """Tests for episode extraction."""

    def test_skips_items_with_unparseable_dates(self, parser):
        """Test that only items with valid dates survive, in feed order."""
        episodes = parser.parse(SAMPLE_RSS_FEED)

        assert [e.title for e in episodes] == [
            "Episode 1: Introduction",
            "Episode 3: Deep Dive",
        ]

    def test_episode_fields(self, parser):
        """Test that title, date, URL and length are extracted."""
        ep1 = parser.parse(SAMPLE_RSS_FEED)[0]

        assert ep1.title == "Episode 1: Introduction"
        assert ep1.date == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert ep1.url == "https://example.com/ep1.mp3"
        assert ep1.length == 54000000

    def test_date_keeps_offset(self, parser):
        """Test that numeric zone offsets are preserved."""
        ep3 = parser.parse(SAMPLE_RSS_FEED)[1]

        assert ep3.date.utcoffset() == timedelta(hours=-5)
        assert ep3.date == datetime(2024, 1, 8, 14, 30, tzinfo=timezone.utc)

    def test_order_is_preserved(self, parser):
        """Test that no sorting is applied to the items."""
        content = _rss(
            "<item><title>Newer</title><pubDate>Tue, 02 Jan 2024 00:00:00 +0000</pubDate></item>"
            "<item><title>Older</title><pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate></item>"
            "<item><title>Newest</title><pubDate>Wed, 03 Jan 2024 00:00:00 +0000</pubDate></item>"
        )

        episodes = parser.parse(content)

        assert [e.title for e in episodes] == ["Newer", "Older", "Newest"]

    def test_duplicates_are_kept(self, parser):
        """Test that identical items are not deduplicated."""
        item = "<item><title>Same</title><pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate></item>"

        episodes = parser.parse(_rss(item * 3))

        assert len(episodes) == 3

    def test_missing_enclosure(self, parser):
        """Test that an item without enclosure gets an empty URL and zero length."""
        content = _rss(
            "<item><title>No audio</title><pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate></item>"
        )

        episode = parser.parse(content)[0]

        assert episode.url == ""
        assert episode.length == 0

    def test_non_numeric_length(self, parser):
        """Test that a malformed enclosure length becomes zero."""
        content = _rss(
            "<item><title>Odd length</title>"
            "<pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate>"
            '<enclosure url="https://example.com/a.mp3" length="big" type="audio/mpeg"/>'
            "</item>"
        )

        episode = parser.parse(content)[0]

        assert episode.url == "https://example.com/a.mp3"
        assert episode.length == 0

    def test_missing_title(self, parser):
        """Test that an item without title keeps an empty title."""
        content = _rss("<item><pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate></item>")

        assert parser.parse(content)[0].title == ""

    def test_empty_channel(self, parser):
        """Test that a feed without items yields an empty list."""
        assert parser.parse(_rss("")) == []

    def test_all_items_invalid(self, parser):
        """Test that a feed where every date is bad yields an empty list."""
        content = _rss(
            "<item><title>A</title><pubDate>2024-01-01</pubDate></item>"
            "<item><title>B</title><pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate></item>"
        )

        assert parser.parse(content) == []

    @pytest.mark.parametrize("content", [b"", b"this is not a feed at all"])
    def test_unparseable_content(self, parser, content):
        """Test that content that is not a feed raises FeedParseError."""
        with pytest.raises(FeedParseError):
            parser.parse(content)

    @pytest.mark.parametrize(
        "content",
        [
            # Body cut off in the middle of the third item
            SAMPLE_RSS_FEED[: SAMPLE_RSS_FEED.index(b"Episode 3")],
            _rss(
                "<item><title>A</title>"
                "<pubDate>Mon, 01 Jan 2024 00:00:00 +0000</pubDate></itm>"
            ),
        ],
        ids=["truncated", "mismatched-tag"],
    )
    def test_malformed_xml(self, parser, content):
        """Test that a recognised feed that is not well-formed XML raises FeedParseError."""
        with pytest.raises(FeedParseError):
            parser.parse(content)

    def test_encoding_notice_is_not_an_error(self, parser):
        """Test that feedparser encoding notices only log a warning."""
        result = feedparser.parse(SAMPLE_RSS_FEED)
        result["bozo"] = 1
        result["bozo_exception"] = feedparser.CharacterEncodingOverride(
            "document declared as us-ascii, but parsed as utf-8"
        )

        with patch("pcd.podcast.feed_parser.feedparser.parse", return_value=result):
            episodes = parser.parse(SAMPLE_RSS_FEED)

        assert len(episodes) == 2

    def test_dates_use_c_locale_names(self, parser):
        """Test that English day and month names parse and render under the C locale."""
        previous = locale.setlocale(locale.LC_TIME)
        locale.setlocale(locale.LC_TIME, "C")
        try:
            episodes = parser.parse(SAMPLE_RSS_FEED)
            rendered = episodes[0].date.strftime(DATE_LAYOUT)
        finally:
            locale.setlocale(locale.LC_TIME, previous)

        assert rendered == "Mon, 01 Jan 2024 12:00:00 +0000"
