"""On-disk episode cache.

The cache file ``<podcast path>/.feed`` holds the base64 encoding of a
SHA-256 digest followed by a pickled list of Episode records. Pickle keeps
field names alongside the values, so no external schema is needed; the
digest and a restricted unpickler make sure only blobs written by
encode_episodes() are accepted.
"""

import base64
import binascii
import hashlib
import io
import logging
import os
import pickle
from datetime import datetime, timedelta, timezone
from typing import List

from ..errors import CacheWriteError, ErrorKind, PodcastError
from .models import Episode

logger = logging.getLogger(__name__)

CACHE_FILENAME = ".feed"
CACHE_DIR_MODE = 0o775

PICKLE_PROTOCOL = 4
_DIGEST_SIZE = hashlib.sha256().digest_size

_ALLOWED_CLASSES = {
    (Episode.__module__, Episode.__qualname__): Episode,
    ("datetime", "datetime"): datetime,
    ("datetime", "timezone"): timezone,
    ("datetime", "timedelta"): timedelta,
}

_EPISODE_FIELD_TYPES = {
    "title": str,
    "date": datetime,
    "url": str,
    "length": int,
}


class CacheFormatError(ValueError):
    """A cache blob could not be encoded or decoded."""


class _EpisodeUnpickler(pickle.Unpickler):
    """Unpickler that only resolves the classes an episode list is built from."""

    def find_class(self, module, name):
        try:
            return _ALLOWED_CLASSES[(module, name)]
        except KeyError:
            raise pickle.UnpicklingError(f"Forbidden class in cache: {module}.{name}") from None


def encode_episodes(episodes: List[Episode]) -> bytes:
    """Serialize episodes into a printable cache blob.

    Raises:
        CacheFormatError: If the episodes cannot be serialized
    """
    try:
        payload = pickle.dumps(list(episodes), protocol=PICKLE_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as e:
        raise CacheFormatError(f"Could not serialize episodes: {e}") from e

    digest = hashlib.sha256(payload).digest()
    return base64.b64encode(digest + payload)


def decode_episodes(blob: bytes) -> List[Episode]:
    """Deserialize a blob produced by encode_episodes().

    Raises:
        CacheFormatError: If the blob is corrupted, truncated or foreign
    """
    try:
        raw = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CacheFormatError(f"Cache is not valid base64: {e}") from e

    if len(raw) <= _DIGEST_SIZE:
        raise CacheFormatError("Cache is truncated")

    digest, payload = raw[:_DIGEST_SIZE], raw[_DIGEST_SIZE:]
    if hashlib.sha256(payload).digest() != digest:
        raise CacheFormatError("Cache checksum mismatch")

    try:
        episodes = _EpisodeUnpickler(io.BytesIO(payload)).load()
    except Exception as e:
        # Unpickling malformed data can fail with almost any exception type
        raise CacheFormatError(f"Could not deserialize episodes: {e}") from e

    _validate(episodes)
    return episodes


def _validate(episodes) -> None:
    """Check the decoded value is a list of well-formed episodes."""
    if not isinstance(episodes, list):
        raise CacheFormatError(f"Expected a list of episodes, got {type(episodes).__name__}")

    for index, episode in enumerate(episodes):
        if not isinstance(episode, Episode):
            raise CacheFormatError(f"Item {index} is not an episode")
        for name, expected in _EPISODE_FIELD_TYPES.items():
            value = getattr(episode, name, None)
            if not isinstance(value, expected) or isinstance(value, bool):
                raise CacheFormatError(f"Item {index} has an invalid {name!r} field")


class CacheStore:
    """Reads and writes the cache file of a podcast directory.

    Writes are full rewrites and reads are full loads; there are no partial
    updates.
    """

    def __init__(self, filename: str = CACHE_FILENAME):
        self.filename = filename

    def cache_path(self, path: str) -> str:
        """Return the cache file location for a podcast directory."""
        return os.path.join(path, self.filename)

    def write(self, path: str, blob: bytes) -> None:
        """Create the directory if needed and replace the cache file.

        Raises:
            CacheWriteError: FILESYSTEM_ERROR on any I/O failure
        """
        try:
            os.makedirs(path, mode=CACHE_DIR_MODE, exist_ok=True)
            with open(self.cache_path(path), "wb") as f:
                f.write(blob)
        except OSError as e:
            logger.error(f"Could not write cache in {path}: {e}")
            raise CacheWriteError(ErrorKind.FILESYSTEM_ERROR, cause=e) from e

    def read(self, path: str) -> bytes:
        """Return the full contents of the cache file.

        Raises:
            PodcastError: CACHE_UNAVAILABLE if the file is missing or unreadable
        """
        try:
            with open(self.cache_path(path), "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Could not open feed file: {e}")
            raise PodcastError(ErrorKind.CACHE_UNAVAILABLE, cause=e) from e
