"""HTTP feed fetcher with response classification."""

import logging
from typing import Optional

import requests

from .. import __version__
from ..errors import ErrorKind, PodcastError

logger = logging.getLogger(__name__)

_STATUS_ERRORS = {
    401: ErrorKind.ACCESS_DENIED,
    403: ErrorKind.ACCESS_DENIED,
    404: ErrorKind.FEED_NOT_FOUND,
}


class FeedFetcher:
    """Fetches raw feed documents over HTTP.

    A single GET is issued per call; nothing is retried. Only status 200
    is a success, everything else is classified into an ErrorKind.

    Example:
        with FeedFetcher(timeout=30) as fetcher:
            content = fetcher.fetch("https://example.com/feed.xml")
    """

    DEFAULT_USER_AGENT = f"pcd/{__version__}"
    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        user_agent: Optional[str] = None,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Transport timeout in seconds (None waits indefinitely)
            user_agent: Custom user agent string
        """
        self.timeout = timeout
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    def fetch(self, url: str, username: str = "", password: str = "") -> bytes:
        """Fetch a feed document.

        Args:
            url: Feed URL
            username: Basic auth username (empty for no authentication)
            password: Basic auth password

        Returns:
            The response body

        Raises:
            PodcastError: SYNC_FAILED, REQUEST_FAILED, ACCESS_DENIED or
                FEED_NOT_FOUND
        """
        auth = (username, password) if username or password else None

        try:
            with self._session.get(url, auth=auth, timeout=self.timeout, stream=True) as response:
                kind = self._classify(response.status_code)
                if kind:
                    logger.error(f"Feed request to {url} returned {response.status_code}")
                    raise PodcastError(kind)
                return response.content
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            logger.error(f"Could not build request for {url}: {e}")
            raise PodcastError(ErrorKind.SYNC_FAILED, cause=e) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise PodcastError(ErrorKind.REQUEST_FAILED, cause=e) from e

    @staticmethod
    def _classify(status_code: int) -> Optional[ErrorKind]:
        """Map an HTTP status to an ErrorKind, or None for success."""
        if status_code == 200:
            return None
        return _STATUS_ERRORS.get(status_code, ErrorKind.REQUEST_FAILED)

    def close(self):
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
