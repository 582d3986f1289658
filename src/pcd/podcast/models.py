"""Episode record shared by the extractor, cache codec and downloader."""

from dataclasses import dataclass
from datetime import datetime

# RFC 1123 with a numeric zone, e.g. "Mon, 01 Jan 2024 12:00:00 +0000".
# Used for parsing feed dates and for rendering the episode listing.
# %a and %b follow LC_TIME; both assume the default C locale (English names).
DATE_LAYOUT = "%a, %d %b %Y %H:%M:%S %z"


@dataclass
class Episode:
    """A single podcast episode as declared by the feed."""

    title: str
    date: datetime
    url: str
    length: int  # Declared enclosure length in bytes, never verified
