"""Error taxonomy for podcast synchronization and downloads.

Every failure that reaches a caller is a PodcastError carrying one
ErrorKind. The low-level cause (I/O, transport or codec error) is logged
where it happens and attached as ``cause``; callers branch on ``kind``.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Caller-facing failure classifications."""

    SYNC_FAILED = "Could not sync podcast"
    REQUEST_FAILED = "Could not perform request"
    ACCESS_DENIED = "Access denied to feed"
    FEED_NOT_FOUND = "Could not find feed (404)"
    PARSER_ISSUE = "Could not parse feed"
    FILESYSTEM_ERROR = "Could not do filesystem request"
    ENCODE_ERROR = "Could not encode feed"
    CACHE_UNAVAILABLE = "Could not read episodes from cache. Perform a sync and try again."
    DOWNLOAD_FAILED = "Could not download episode"


class PodcastError(Exception):
    """A classified podcast operation failure.

    Attributes:
        kind: The ErrorKind describing what failed
        cause: The underlying exception, if any
    """

    cache_stale = False

    def __init__(self, kind: ErrorKind, cause: Optional[BaseException] = None):
        super().__init__(kind.value)
        self.kind = kind
        self.cause = cause


class CacheWriteError(PodcastError):
    """Persisting synced episodes failed after they were loaded in memory.

    The podcast's in-memory episodes reflect the remote feed, but the
    cache file on disk still holds the previous sync (or nothing).
    """

    cache_stale = True
